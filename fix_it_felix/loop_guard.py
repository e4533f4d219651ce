"""Protection against reacting to the bot's own commits."""

import logging
from pathlib import Path

from fix_it_felix.utils import get_logger, run_command

# Author substrings that identify commits made by this bot
SELF_AUTHOR_TOKENS = ("fix-it-felix", "felix", "github-actions[bot]")
GENERIC_BOT_MARKER = "[bot]"
COMMIT_SIGNATURE = "Fix-it Felix"


class LoopGuard:
    """Decides whether the latest commit makes this run a feedback loop."""

    def __init__(
        self,
        allowed_bots: list[str],
        project_root: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the guard.

        Args:
            allowed_bots: Bot names whose commits may trigger fixes
            project_root: Repository root
            logger: Logger instance for output

        """
        self.allowed_bots = [bot.lower() for bot in allowed_bots if bot]
        self.project_root = project_root
        self.logger = logger or get_logger()

    def _last_commit_field(self, pretty_format: str) -> str | None:
        """Return a field of the latest commit, or None if git fails."""
        returncode, stdout, stderr = run_command(
            ["git", "log", "-1", f"--pretty=format:{pretty_format}"],
            cwd=self.project_root,
        )
        if returncode != 0:
            self.logger.warning(
                "Could not check for infinite loop risk: git log exited with code %s: %s",
                returncode,
                stderr.strip(),
            )
            return None
        return stdout.strip()

    def is_allowed_bot(self, author: str) -> bool:
        """Return True if the author contains any allowed bot name."""
        author_lower = author.lower()
        return any(bot in author_lower for bot in self.allowed_bots)

    def should_skip_for_loop_risk(self) -> bool:
        """Check the latest commit's author and subject.

        Returns:
            True if running now would react to the bot's own (or another
            unapproved bot's) commit. Git failures return False.

        """
        author = self._last_commit_field("%an")
        if author is None:
            return False

        if self.is_allowed_bot(author):
            self.logger.info("Last commit was by allowed bot: %s - proceeding with fixes", author)
            return False

        author_lower = author.lower()
        if any(token in author_lower for token in SELF_AUTHOR_TOKENS):
            self.logger.info("Last commit was by: %s - potential infinite loop", author)
            return True

        if GENERIC_BOT_MARKER in author_lower:
            self.logger.info("Last commit was by unlisted bot: %s - potential loop", author)
            return True

        subject = self._last_commit_field("%s")
        if subject is None:
            return False

        if COMMIT_SIGNATURE.lower() in subject.lower():
            self.logger.info(
                "Last commit message contains the Felix signature - potential infinite loop",
            )
            return True

        return False
