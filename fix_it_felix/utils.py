"""Utility functions for fix-it-felix."""

import hashlib
import logging
import os
import shlex
import subprocess
from collections.abc import Mapping
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

console = Console()
LOG_FORMAT = "[%(asctime)s] [felix] [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOGGER_NAME = "fix_it_felix"

COMMAND_NOT_EXECUTABLE_EXIT_CODE = 126
COMMAND_NOT_FOUND_EXIT_CODE = 127
DELETED_FILE_MARKER = "<deleted>"


def get_logger() -> logging.Logger:
    """Return the project logger without reconfiguring it."""
    return logging.getLogger(LOGGER_NAME)


def configure_logger(*, debug: bool = False) -> logging.Logger:
    """Configure and return the project logger.

    Args:
        debug: Enable debug mode

    Returns:
        Configured logger instance

    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    rich_handler = RichHandler(
        console=console,
        show_time=False,
        show_level=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    rich_handler.setFormatter(formatter)
    logger.addHandler(rich_handler)

    return logger


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated input into trimmed, non-empty tokens.

    Args:
        value: Raw comma-separated string

    Returns:
        Tokens in their original order

    """
    if not value:
        return []
    return [token.strip() for token in value.split(",") if token.strip()]


def run_command(
    command: str | list[str],
    cwd: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    capture_output: bool = True,
    check: bool = False,
) -> tuple[int, str, str]:
    """Run a command without invoking a shell.

    String commands are tokenized with ``shlex.split``. If shell features
    (pipes, redirection, ``&&``) are required, wrap explicitly via something
    like ``bash -lc '...'``.

    Args:
        command: Command to run as a string or argv list
        cwd: Working directory
        env: Extra environment variables layered over the current environment
        capture_output: Capture stdout and stderr
        check: Raise exception on non-zero exit code

    Returns:
        Tuple of (exit_code, stdout, stderr)

    """
    try:
        args = shlex.split(command) if isinstance(command, str) else command
    except ValueError as exc:
        return (2, "", f"Invalid command syntax: {exc}")

    if not args:
        return (2, "", "No command provided")

    process_env = {**os.environ, **env} if env else None

    try:
        result = subprocess.run(  # noqa: S603  # args are tokenized argv with shell disabled.
            args,
            cwd=cwd,
            env=process_env,
            capture_output=capture_output,
            text=True,
            check=check,
        )
    except FileNotFoundError:
        return (COMMAND_NOT_FOUND_EXIT_CODE, "", f"Command not found: {args[0]}")
    except PermissionError:
        return (COMMAND_NOT_EXECUTABLE_EXIT_CODE, "", f"Command not executable: {args[0]}")
    except OSError as exc:
        # e.g. ENOEXEC for a script without a shebang
        return (
            COMMAND_NOT_EXECUTABLE_EXIT_CODE,
            "",
            f"Command could not be executed: {args[0]}: {exc}",
        )
    else:
        return (result.returncode, result.stdout or "", result.stderr or "")


def hash_file(file_path: Path) -> str:
    """Hash a file's contents for change detection.

    Args:
        file_path: Path to file

    Returns:
        sha256 hex digest, or a marker when the file no longer exists

    """
    try:
        return hashlib.sha256(file_path.read_bytes()).hexdigest()
    except OSError:
        return DELETED_FILE_MARKER


def existing_files(files: list[str], project_root: Path | None = None) -> list[str]:
    """Keep files that exist on disk, deduplicated in first-seen order.

    Args:
        files: Repository-relative file paths
        project_root: Directory the paths are relative to (defaults to cwd)

    Returns:
        Filtered file list

    """
    root = project_root or Path.cwd()
    result = []
    for f in dict.fromkeys(files):
        if not f:
            continue
        if (root / f).is_file():
            result.append(f)
    return result
