"""Command-line interface for fix-it-felix."""

import os
import sys
import traceback
from pathlib import Path

import click
from rich.console import Console

from fix_it_felix.config import CliOptions, find_project_root, get_settings
from fix_it_felix.context import load_event_context
from fix_it_felix.git_ops import CommitError
from fix_it_felix.runner import FelixRunner, RunResult
from fix_it_felix.utils import configure_logger

console = Console()


@click.command()
@click.option(
    "-f",
    "--fixers",
    help="Comma-separated fixers to run (default: eslint,prettier)",
)
@click.option(
    "-p",
    "--paths",
    help="Comma-separated paths to fix (overrides the config file)",
)
@click.option(
    "-m",
    "--commit-message",
    help="Commit message for automated fixes",
)
@click.option(
    "-c",
    "--config-path",
    help="Path to the repository config file (default: .felixrc.json)",
)
@click.option(
    "--skip-label",
    help="PR label that disables fixes (default: skip-felix)",
)
@click.option(
    "--allowed-bots",
    help="Comma-separated bot names whose commits may trigger fixes",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Report fixes as a PR comment instead of committing",
)
@click.option(
    "--skip-draft-prs",
    is_flag=True,
    help="Skip draft pull requests",
)
@click.option(
    "-d",
    "--debug",
    is_flag=True,
    help="Enable debug mode (verbose logging)",
)
@click.version_option(package_name="fix-it-felix")
def main(**kwargs: str | bool | None) -> None:
    r"""Automatically fix lint and formatting issues in a pull request.

    \f
    fix-it-felix runs inside a pull_request workflow and:
    1. Skips forks, labelled PRs and its own commits
    2. Finds the files the PR changed
    3. Runs each configured fixer on the files it handles
    4. Commits the fixes to the PR branch (or comments in dry-run mode)

    Action inputs are read from INPUT_* environment variables; CLI options
    override them.

    """
    debug = bool(kwargs.get("debug", False))
    try:
        options = _build_cli_options(kwargs)
        result = _run_main(options)

    except (ValueError, CommitError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if debug:
            console.print(traceback.format_exc())
        sys.exit(1)

    if result.has_failures:
        console.print("[red]One or more fixers failed[/red]")
        sys.exit(1)


def _build_cli_options(kwargs: dict[str, str | bool | None]) -> CliOptions:
    """Build CliOptions from Click's keyword arguments.

    Args:
        kwargs: Keyword arguments injected by Click decorators

    Returns:
        CliOptions with CLI-provided overrides

    """

    def _text(key: str) -> str | None:
        value = kwargs.get(key)
        return str(value) if value is not None else None

    return CliOptions(
        fixers=_text("fixers"),
        paths=_text("paths"),
        commit_message=_text("commit_message"),
        config_path=_text("config_path"),
        skip_label=_text("skip_label"),
        allowed_bots=_text("allowed_bots"),
        dry_run=bool(kwargs.get("dry_run", False)),
        debug=bool(kwargs.get("debug", False)),
        skip_draft_prs=bool(kwargs.get("skip_draft_prs", False)),
    )


def _run_main(options: CliOptions) -> RunResult:
    """Run main application logic using CliOptions.

    Args:
        options: CLI options grouped into a dataclass

    Returns:
        Aggregate result of the run

    """
    settings = get_settings(options)
    logger = configure_logger(debug=settings.debug)

    event = load_event_context(logger)
    runner = FelixRunner(settings, event, find_project_root(), logger)
    result = runner.run()

    _write_action_outputs(result)

    if result.has_failures:
        return result
    if result.fixes_applied:
        logger.info("Fix-it Felix applied fixes to %s files", len(result.changed_files))
    else:
        logger.info("No fixes needed - code is already clean!")
    return result


def _write_action_outputs(result: RunResult) -> None:
    """Append step outputs to ``$GITHUB_OUTPUT`` when running in Actions.

    Args:
        result: Aggregate result of the run

    """
    output_path = os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        return

    with Path(output_path).open("a", encoding="utf-8") as f:
        f.write(f"fixes_applied={str(result.fixes_applied).lower()}\n")
        f.write(f"changed_files={','.join(result.changed_files)}\n")


if __name__ == "__main__":
    main()
