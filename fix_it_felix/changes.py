"""Discover the files changed by a pull request.

Strategies are tried in order and the first one that yields at least one
existing file wins:

1. the GitHub API (every page of the PR file listing)
2. ``git diff --name-only`` against ``origin/<base>...HEAD``, ``<base sha>...HEAD``,
   ``HEAD~1`` and ``HEAD^``

If every strategy fails, the configured global paths are returned instead so
fixers can still run against whole directories.
"""

import logging
from pathlib import Path

from fix_it_felix.context import PullRequestContext
from fix_it_felix.github import GitHubApiError, GitHubClient
from fix_it_felix.utils import existing_files, get_logger, run_command


class GitDiffError(RuntimeError):
    """Raised when a ``git diff`` strategy cannot be evaluated."""


def git_diff_ranges(pr: PullRequestContext) -> list[str]:
    """Return diff ranges to try, skipping those the event cannot fill in."""
    ranges = []
    if pr.base_ref:
        ranges.append(f"origin/{pr.base_ref}...HEAD")
    if pr.base_sha:
        ranges.append(f"{pr.base_sha}...HEAD")
    ranges.extend(["HEAD~1", "HEAD^"])
    return ranges


class ChangeSetResolver:
    """Resolves the change set of a pull request with graceful fallbacks."""

    def __init__(
        self,
        fallback_paths: list[str],
        github: GitHubClient | None = None,
        project_root: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            fallback_paths: Global paths returned when every strategy fails
            github: API client (the API strategy is skipped without one)
            project_root: Repository root
            logger: Logger instance for output

        """
        self.fallback_paths = list(fallback_paths)
        self.github = github
        self.project_root = project_root or Path.cwd()
        self.logger = logger or get_logger()

    def resolve(self, pr: PullRequestContext | None) -> list[str]:
        """Return the files changed by the pull request.

        Args:
            pr: Pull request context

        Returns:
            Existing, deduplicated repository-relative paths

        """
        if pr is None:
            self.logger.warning("No pull request context available")
            return []

        files = self._from_api(pr)
        if files:
            self.logger.info("Found %s changed files via GitHub API", len(files))
            return files

        for diff_range in git_diff_ranges(pr):
            try:
                files = existing_files(self._git_diff(diff_range), self.project_root)
            except GitDiffError as e:
                self.logger.debug("Git strategy failed (%s): %s", diff_range, e)
                continue

            if files:
                self.logger.info(
                    "Found %s changed files via git strategy: %s",
                    len(files),
                    diff_range,
                )
                return files

        self.logger.warning("All git strategies failed, falling back to configured paths")
        return list(self.fallback_paths)

    def _from_api(self, pr: PullRequestContext) -> list[str]:
        """List PR files through the API; any failure yields an empty list."""
        if self.github is None:
            return []

        try:
            files = self.github.list_pull_request_files(pr.owner, pr.repo, pr.number)
        except GitHubApiError as e:
            self.logger.warning("Could not get changed files from GitHub API: %s", e)
            return []

        return existing_files(files, self.project_root)

    def _git_diff(self, diff_range: str) -> list[str]:
        """Run ``git diff --name-only <range>`` and return its non-empty lines.

        Raises:
            GitDiffError: If git exits non-zero

        """
        returncode, stdout, stderr = run_command(
            ["git", "diff", "--name-only", diff_range],
            cwd=self.project_root,
        )
        if returncode != 0:
            raise GitDiffError(stderr.strip() or f"exit code {returncode}")
        return [line.strip() for line in stdout.splitlines() if line.strip()]
