"""Main runner for fix-it-felix."""

import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path

from fix_it_felix.changes import ChangeSetResolver
from fix_it_felix.config import ConfigManager, Settings
from fix_it_felix.context import PULL_REQUEST_EVENT, EventContext
from fix_it_felix.fixers import BaseFixer, FixerConfigurationError, create_fixer, is_builtin_fixer
from fix_it_felix.git_ops import GitCommitter
from fix_it_felix.github import GitHubApiError, GitHubClient
from fix_it_felix.loop_guard import LoopGuard
from fix_it_felix.messages import (
    custom_command_failure_hints,
    fixer_exit_code_error,
    fixer_unavailable_error,
)
from fix_it_felix.routing import route_files
from fix_it_felix.templates import render_template
from fix_it_felix.utils import (
    COMMAND_NOT_EXECUTABLE_EXIT_CODE,
    COMMAND_NOT_FOUND_EXIT_CODE,
    get_logger,
    hash_file,
    run_command,
)

# Exit codes that mean the tool never ran, as opposed to reporting issues
FATAL_EXIT_CODES = frozenset({COMMAND_NOT_EXECUTABLE_EXIT_CODE, COMMAND_NOT_FOUND_EXIT_CODE})


@dataclass
class FixerResult:
    """Outcome of a single fixer invocation."""

    name: str
    success: bool = False
    changed_files: list[str] = field(default_factory=list)
    output: str = ""
    error: str | None = None


@dataclass
class RunResult:
    """Aggregate outcome of a run."""

    fixes_applied: bool = False
    changed_files: list[str] = field(default_factory=list)
    fixer_results: list[FixerResult] = field(default_factory=list)
    has_failures: bool = False


class FixerRunner:
    """Executes fixers and classifies their outcome.

    A non-zero exit code is only a hard failure when the tool could not be run
    at all (126/127). Any other exit code means the tool ran and may have
    left unfixable findings behind, which does not fail the batch.
    """

    def __init__(
        self,
        project_root: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the fixer runner.

        Args:
            project_root: Repository root
            logger: Logger instance for output

        """
        self.project_root = project_root or Path.cwd()
        self.logger = logger or get_logger()

    def snapshot_working_tree(self) -> dict[str, str]:
        """Hash every file that differs from the index.

        Returns:
            Mapping of modified file path to content hash (empty on git failure)

        """
        returncode, stdout, _ = run_command(["git", "diff", "--name-only"], cwd=self.project_root)
        if returncode != 0:
            return {}
        files = [line.strip() for line in stdout.splitlines() if line.strip()]
        return {f: hash_file(self.project_root / f) for f in files}

    @staticmethod
    def diff_snapshots(before: dict[str, str], after: dict[str, str]) -> list[str]:
        """Return files whose working-tree state changed between snapshots."""
        changed = [f for f, digest in after.items() if before.get(f) != digest]
        changed.extend(f for f in before if f not in after)
        return changed

    def run(self, fixer: BaseFixer) -> FixerResult:
        """Run a fixer and report which files it altered.

        Args:
            fixer: Fixer to run

        Returns:
            FixerResult with a derived success classification

        """
        result = FixerResult(name=fixer.name)

        if not fixer.is_available():
            result.error = fixer_unavailable_error(fixer.name)
            return result

        try:
            command = fixer.get_command()
        except FixerConfigurationError as e:
            result.error = str(e)
            return result

        command_str = shlex.join(command)
        self.logger.info("Running %s: %s", fixer.name, command_str)

        before = self.snapshot_working_tree()
        exit_code, stdout, stderr = run_command(command, cwd=self.project_root, env=fixer.get_env())
        result.output = stdout + stderr
        result.changed_files = self.diff_snapshots(before, self.snapshot_working_tree())

        if exit_code == 0:
            result.success = True
        elif exit_code in FATAL_EXIT_CODES:
            result.error = fixer_exit_code_error(fixer.name, exit_code)
            if fixer.has_custom_command():
                for line in custom_command_failure_hints(command_str):
                    self.logger.error(line)
            else:
                self.logger.error("%s failed with exit code %s", fixer.name, exit_code)
        else:
            result.success = True
            self.logger.warning(
                "%s exited with code %s; remaining issues could not be fixed automatically",
                fixer.name,
                exit_code,
            )

        return result


class FelixRunner:
    """Runner that orchestrates a fix-it-felix pass over a pull request."""

    def __init__(
        self,
        settings: Settings,
        event: EventContext,
        project_root: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            settings: Action inputs
            event: Triggering workflow event
            project_root: Repository root
            logger: Logger instance for output

        """
        self.settings = settings
        self.event = event
        self.project_root = project_root or Path.cwd()
        self.logger = logger or get_logger()

        self.config = ConfigManager(settings, self.logger, project_root=self.project_root)
        self.github = GitHubClient(settings.token, self.project_root, self.logger)
        self.loop_guard = LoopGuard(self.config.get_allowed_bots(), self.project_root, self.logger)
        self.change_resolver = ChangeSetResolver(
            self.config.get_paths(),
            self.github,
            self.project_root,
            self.logger,
        )
        self.fixer_runner = FixerRunner(self.project_root, self.logger)
        self.committer = GitCommitter(settings, event.pull_request, self.project_root, self.logger)

    def should_skip(self) -> bool:
        """Check event-level skip conditions.

        Returns:
            True if this event must not be processed

        """
        if self.event.event_name != PULL_REQUEST_EVENT:
            self.logger.info("Not a pull request event")
            return True

        pr = self.event.pull_request
        if pr is None:
            self.logger.info("No pull request payload in event")
            return True

        if self.settings.skip_label and self.settings.skip_label in pr.labels:
            self.logger.info("PR has skip label: %s", self.settings.skip_label)
            return True

        if pr.is_fork:
            self.logger.info("PR is from a fork - cannot commit fixes")
            return True

        if pr.draft and self.settings.skip_draft_prs:
            self.logger.info("PR is a draft - skipping")
            return True

        return False

    def run(self) -> RunResult:
        """Run every configured fixer against the pull request's changes.

        Returns:
            Aggregate result

        """
        result = RunResult()

        if self.should_skip():
            self.logger.info("Skipping Fix-it Felix due to skip conditions")
            return result

        if self.loop_guard.should_skip_for_loop_risk():
            self.logger.info("Skipping Fix-it Felix to prevent infinite loop")
            return result

        changed_files = self.change_resolver.resolve(self.event.pull_request)
        if not changed_files:
            self.logger.info("No files changed in PR")
            return result

        self.logger.info("Found %s changed files in PR", len(changed_files))

        effective = self.config.resolve()
        self.logger.info("Running fixers: %s", ", ".join(spec.name for spec in effective.fixers))

        for spec in effective.fixers:
            if not is_builtin_fixer(spec.name):
                if not spec.config.has_custom_command():
                    self.logger.warning("Unknown fixer: %s", spec.name)
                    continue
                self.logger.info("Using custom command for fixer: %s", spec.name)

            relevant_files = route_files(
                changed_files,
                spec.name,
                spec.config,
                list(spec.paths),
                self.logger,
            )
            if not relevant_files:
                self.logger.info("No relevant files for %s", spec.name)
                continue

            self.logger.info("Running %s on %s changed files", spec.name, len(relevant_files))

            fixer = create_fixer(spec.name, spec.config, relevant_files, self.config)
            if fixer is None:
                self.logger.warning("Could not create fixer: %s", spec.name)
                continue

            self._record(result, self.fixer_runner.run(fixer))

        result.changed_files = list(dict.fromkeys(result.changed_files))

        # Any applied fix outweighs other fixers' failures
        if result.fixes_applied:
            result.has_failures = False

        self.publish(result)
        return result

    def _record(self, result: RunResult, fixer_result: FixerResult) -> None:
        """Fold one fixer's result into the aggregate."""
        result.fixer_results.append(fixer_result)
        name = fixer_result.name

        if fixer_result.success and fixer_result.changed_files:
            result.changed_files.extend(fixer_result.changed_files)
            result.fixes_applied = True
            self.logger.info("%s fixed %s files", name, len(fixer_result.changed_files))
        elif not fixer_result.success:
            result.has_failures = True
            self.logger.error("%s failed: %s", name, fixer_result.error or "Unknown error")
        else:
            self.logger.info("%s found no issues to fix", name)

    def publish(self, result: RunResult) -> None:
        """Commit the fixes, or report them on the PR in dry-run mode.

        Args:
            result: Aggregate result of the run

        """
        if not result.fixes_applied:
            return

        if self.settings.dry_run:
            self.logger.info("Dry-run mode: Changes detected but not committed")
            self.comment_on_pr(result)
            return

        self.committer.commit_changes(result.changed_files)

    def comment_on_pr(self, result: RunResult) -> None:
        """Post the dry-run summary as a PR comment (best-effort)."""
        pr = self.event.pull_request
        if pr is None:
            self.logger.warning("No pull request context available")
            return

        if not self.settings.token:
            self.logger.warning("No token available - cannot comment on PR")
            return

        body = render_template(
            "dry_run_comment.j2",
            fixes=[
                (fixer_result.name, len(fixer_result.changed_files))
                for fixer_result in result.fixer_results
                if fixer_result.success and fixer_result.changed_files
            ],
            changed_files=result.changed_files,
        )

        try:
            self.github.create_issue_comment(pr.owner, pr.repo, pr.number, body)
        except GitHubApiError as e:
            self.logger.warning("Failed to comment on PR: %s", e)
            return

        self.logger.info("Posted dry-run results as PR comment")
