"""GitHub API access through the ``gh`` CLI."""

import json
import logging
from pathlib import Path

from fix_it_felix.utils import get_logger, run_command

PER_PAGE = 100
# GitHub stops listing pull request files after 3000 entries
MAX_PAGES = 30


class GitHubApiError(RuntimeError):
    """Raised when a ``gh api`` call fails or returns unexpected data."""


class GitHubClient:
    """Thin wrapper around ``gh api`` calls used by fix-it-felix."""

    def __init__(
        self,
        token: str,
        project_root: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Token exported to ``gh`` as ``GH_TOKEN``
            project_root: Working directory for ``gh`` invocations
            logger: Logger instance for output

        """
        self.token = token
        self.project_root = project_root
        self.logger = logger or get_logger()

    def _api(self, *args: str) -> str:
        """Run ``gh api`` and return stdout.

        Raises:
            GitHubApiError: If no token is configured or the call fails

        """
        if not self.token:
            message = "No token available"
            raise GitHubApiError(message)

        returncode, stdout, stderr = run_command(
            ["gh", "api", *args],
            cwd=self.project_root,
            env={"GH_TOKEN": self.token},
        )
        if returncode != 0:
            message = f"gh api exited with code {returncode}: {stderr.strip()}"
            raise GitHubApiError(message)
        return stdout

    def list_pull_request_files(self, owner: str, repo: str, number: int) -> list[str]:
        """List every file changed in a pull request, following pagination.

        Args:
            owner: Repository owner
            repo: Repository name
            number: Pull request number

        Returns:
            File names in API order

        Raises:
            GitHubApiError: If any page cannot be fetched or parsed

        """
        filenames: list[str] = []
        for page in range(1, MAX_PAGES + 1):
            endpoint = f"repos/{owner}/{repo}/pulls/{number}/files?per_page={PER_PAGE}&page={page}"
            raw = self._api(endpoint)
            try:
                entries = json.loads(raw)
            except json.JSONDecodeError as e:
                message = f"Invalid JSON from {endpoint}"
                raise GitHubApiError(message) from e

            if not isinstance(entries, list):
                message = f"Unexpected payload from {endpoint}"
                raise GitHubApiError(message)

            filenames.extend(
                entry["filename"]
                for entry in entries
                if isinstance(entry, dict) and isinstance(entry.get("filename"), str)
            )
            self.logger.debug("Fetched page %s of PR files (%s entries)", page, len(entries))

            if len(entries) < PER_PAGE:
                break

        return filenames

    def create_issue_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """Post a comment on a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            number: Pull request number
            body: Markdown comment body

        Raises:
            GitHubApiError: If the comment cannot be posted

        """
        self._api(
            "--method",
            "POST",
            f"repos/{owner}/{repo}/issues/{number}/comments",
            "-f",
            f"body={body}",
        )
