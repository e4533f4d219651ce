"""Tests for loop_guard module."""

from unittest.mock import MagicMock, patch

import pytest

from fix_it_felix.loop_guard import LoopGuard


def _git_log(author: str, subject: str = "Regular commit"):  # noqa: ANN202
    """Return a run_command stand-in answering ``git log`` queries."""

    def fake_run(args: list[str], **_kwargs: object) -> tuple[int, str, str]:
        if args[-1] == "--pretty=format:%an":
            return (0, author, "")
        return (0, subject, "")

    return fake_run


def _skip(author: str, allowed_bots: str = "", subject: str = "Regular commit") -> bool:
    """Evaluate the loop guard for an author and allow-list."""
    bots = [bot.strip() for bot in allowed_bots.split(",") if bot.strip()]
    guard = LoopGuard(bots, logger=MagicMock())
    with patch("fix_it_felix.loop_guard.run_command", side_effect=_git_log(author, subject)):
        return guard.should_skip_for_loop_risk()


class TestLoopGuard:
    """Tests for LoopGuard.should_skip_for_loop_risk."""

    def test_skips_own_commit(self) -> None:
        """Test skipping when the last commit is by Felix."""
        assert _skip("Fix-it Felix[bot]")

    def test_skips_github_actions_bot(self) -> None:
        """Test skipping commits by github-actions[bot]."""
        assert _skip("github-actions[bot]")

    def test_skips_signature_in_message(self) -> None:
        """Test skipping when the subject carries the Felix signature."""
        assert _skip("Regular User", subject="🤖 Fix-it Felix: Auto-fixed code quality issues")

    def test_skips_generic_bot(self) -> None:
        """Test skipping unlisted bots."""
        assert _skip("dependabot[bot]")

    def test_proceeds_for_regular_user(self) -> None:
        """Test proceeding for a human author."""
        assert not _skip("Regular User")

    @pytest.mark.parametrize(
        ("allowed_bots", "author", "expected_skip"),
        [
            ("dependabot", "dependabot[bot]", False),
            ("dependabot", "dependabot", False),
            ("renovate", "renovate[bot]", False),
            ("dependabot,renovate", "renovate[bot]", False),
            ("dependabot", "other-bot[bot]", True),
            ("", "dependabot[bot]", True),
        ],
    )
    def test_allowed_bots(self, allowed_bots: str, author: str, expected_skip: bool) -> None:  # noqa: FBT001
        """Test allow-list decisions."""
        assert _skip(author, allowed_bots) is expected_skip

    def test_allowed_bot_is_case_insensitive(self) -> None:
        """Test allow-list matching ignores case."""
        assert not _skip("Dependabot[bot]", "DEPENDABOT")

    def test_self_tokens_are_case_insensitive(self) -> None:
        """Test self detection ignores case."""
        assert _skip("FIX-IT-FELIX")

    def test_signature_is_case_insensitive(self) -> None:
        """Test signature detection ignores case."""
        assert _skip("Regular User", subject="fix-it felix: formatting")

    def test_allowed_bot_overrides_self_tokens(self) -> None:
        """Test that an explicit allow wins over self detection."""
        assert not _skip("github-actions[bot]", "github-actions")

    def test_git_failure_fails_open(self) -> None:
        """Test that git errors never block the run."""
        logger = MagicMock()
        guard = LoopGuard([], logger=logger)
        with patch("fix_it_felix.loop_guard.run_command", return_value=(128, "", "not a git repo")):
            assert not guard.should_skip_for_loop_risk()
        logger.warning.assert_called_once()

    def test_subject_failure_fails_open(self) -> None:
        """Test that a failing subject query proceeds."""
        guard = LoopGuard([], logger=MagicMock())
        with patch(
            "fix_it_felix.loop_guard.run_command",
            side_effect=[(0, "Regular User", ""), (1, "", "boom")],
        ):
            assert not guard.should_skip_for_loop_risk()
