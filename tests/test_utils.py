"""Tests for utils module."""

import hashlib
import logging
import shlex
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.logging import RichHandler

from fix_it_felix.utils import (
    DELETED_FILE_MARKER,
    configure_logger,
    existing_files,
    hash_file,
    run_command,
    split_csv,
)

COMMAND_NOT_FOUND_EXIT_CODE = 127
COMMAND_NOT_EXECUTABLE_EXIT_CODE = 126
COMMAND_SYNTAX_EXIT_CODE = 2


class TestRunCommand:
    """Tests for run_command function."""

    def test_success(self) -> None:
        """Test a command that succeeds."""
        returncode, stdout, stderr = run_command([sys.executable, "-c", "print('hello')"])
        assert returncode == 0
        assert stdout.strip() == "hello"
        assert stderr == ""

    def test_string_command(self) -> None:
        """Test that string commands are tokenized."""
        returncode, stdout, _ = run_command(f"{shlex.quote(sys.executable)} -c 'print(1 + 1)'")
        assert returncode == 0
        assert stdout.strip() == "2"

    def test_non_zero_exit(self) -> None:
        """Test that exit codes are passed through."""
        returncode, _, _ = run_command([sys.executable, "-c", "raise SystemExit(3)"])
        assert returncode == 3  # noqa: PLR2004

    def test_command_not_found(self) -> None:
        """Test that a missing executable maps to exit code 127."""
        returncode, stdout, stderr = run_command(["definitely-not-a-real-command-xyz"])
        assert returncode == COMMAND_NOT_FOUND_EXIT_CODE
        assert stdout == ""
        assert "Command not found" in stderr

    def test_permission_denied(self) -> None:
        """Test that a non-executable command maps to exit code 126."""
        with patch("fix_it_felix.utils.subprocess.run", side_effect=PermissionError):
            returncode, _, stderr = run_command(["./script.sh"])
        assert returncode == COMMAND_NOT_EXECUTABLE_EXIT_CODE
        assert "not executable" in stderr

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX exec semantics")
    def test_exec_format_error(self, tmp_path: Path) -> None:
        """Test that an executable script without a shebang maps to 126."""
        script = tmp_path / "noshebang.sh"
        script.write_text("echo hi\n")
        script.chmod(0o755)

        returncode, stdout, stderr = run_command([str(script)])

        assert returncode == COMMAND_NOT_EXECUTABLE_EXIT_CODE
        assert stdout == ""
        assert "could not be executed" in stderr

    def test_other_os_error(self) -> None:
        """Test that any other launch failure maps to 126."""
        error = OSError(8, "Exec format error")
        with patch("fix_it_felix.utils.subprocess.run", side_effect=error):
            returncode, _, stderr = run_command(["./broken-binary"])
        assert returncode == COMMAND_NOT_EXECUTABLE_EXIT_CODE
        assert "Exec format error" in stderr

    def test_invalid_syntax(self) -> None:
        """Test unbalanced quotes in a string command."""
        returncode, _, stderr = run_command("echo 'unterminated")
        assert returncode == COMMAND_SYNTAX_EXIT_CODE
        assert "Invalid command syntax" in stderr

    def test_empty_command(self) -> None:
        """Test an empty argv."""
        assert run_command([]) == (COMMAND_SYNTAX_EXIT_CODE, "", "No command provided")

    def test_env_is_layered(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that extra variables are added to the inherited environment."""
        monkeypatch.setenv("FELIX_INHERITED", "yes")
        code = "import os; print(os.environ['FELIX_INHERITED'], os.environ['FELIX_EXTRA'])"
        _, stdout, _ = run_command([sys.executable, "-c", code], env={"FELIX_EXTRA": "1"})
        assert stdout.strip() == "yes 1"

    def test_cwd(self, tmp_path: Path) -> None:
        """Test running in a working directory."""
        _, stdout, _ = run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"],
            cwd=tmp_path,
        )
        assert Path(stdout.strip()).resolve() == tmp_path.resolve()


class TestSplitCsv:
    """Tests for split_csv function."""

    def test_trims_and_drops_empty_tokens(self) -> None:
        """Test whitespace and empty token handling."""
        assert split_csv("src, docs , ,scripts,") == ["src", "docs", "scripts"]

    def test_empty(self) -> None:
        """Test empty and missing values."""
        assert split_csv("") == []
        assert split_csv(None) == []


class TestHashFile:
    """Tests for hash_file function."""

    def test_hash(self, tmp_path: Path) -> None:
        """Test hashing an existing file."""
        file_path = tmp_path / "a.js"
        file_path.write_bytes(b"const a = 1;\n")
        assert hash_file(file_path) == hashlib.sha256(b"const a = 1;\n").hexdigest()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test hashing a deleted file."""
        assert hash_file(tmp_path / "gone.js") == DELETED_FILE_MARKER


class TestExistingFiles:
    """Tests for existing_files function."""

    def test_filters_and_deduplicates(self, tmp_path: Path) -> None:
        """Test that missing files, directories and duplicates are dropped."""
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.js").write_text("a")
        (tmp_path / "README.md").write_text("b")

        files = ["src/a.js", "deleted.js", "src", "README.md", "src/a.js", ""]
        assert existing_files(files, tmp_path) == ["src/a.js", "README.md"]


class TestConfigureLogger:
    """Tests for configure_logger function."""

    def test_levels(self) -> None:
        """Test debug and info levels."""
        assert configure_logger(debug=True).level == logging.DEBUG
        assert configure_logger(debug=False).level == logging.INFO

    def test_single_rich_handler(self) -> None:
        """Test that reconfiguring does not stack handlers."""
        configure_logger()
        logger = configure_logger()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert not logger.propagate
