"""GitHub Actions event context for fix-it-felix."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from fix_it_felix.utils import get_logger

PULL_REQUEST_EVENT = "pull_request"


@dataclass(frozen=True)
class PullRequestContext:
    """Pull request fields from the event payload."""

    number: int
    base_ref: str
    base_sha: str
    head_ref: str
    base_repo_full_name: str
    head_repo_full_name: str
    labels: tuple[str, ...] = ()
    draft: bool = False

    @property
    def owner(self) -> str:
        """Return the base repository owner."""
        return self.base_repo_full_name.partition("/")[0]

    @property
    def repo(self) -> str:
        """Return the base repository name."""
        return self.base_repo_full_name.partition("/")[2]

    @property
    def is_fork(self) -> bool:
        """Return True if the head branch lives in another repository."""
        return self.head_repo_full_name != self.base_repo_full_name


@dataclass(frozen=True)
class EventContext:
    """The triggering workflow event."""

    event_name: str
    repository: str = ""
    pull_request: PullRequestContext | None = field(default=None)


def _nested_str(payload: dict, *keys: str) -> str:
    """Walk nested dictionaries and return a string leaf (or empty string)."""
    value: object = payload
    for key in keys:
        if not isinstance(value, dict):
            return ""
        value = value.get(key)
    return value if isinstance(value, str) else ""


def parse_pull_request(payload: object) -> PullRequestContext | None:
    """Build a PullRequestContext from an event's ``pull_request`` object.

    Args:
        payload: Parsed ``pull_request`` JSON object

    Returns:
        PullRequestContext, or None if the payload is missing or malformed

    """
    if not isinstance(payload, dict):
        return None

    number = payload.get("number")
    if not isinstance(number, int):
        return None

    labels = tuple(
        label["name"]
        for label in payload.get("labels") or []
        if isinstance(label, dict) and isinstance(label.get("name"), str)
    )

    return PullRequestContext(
        number=number,
        base_ref=_nested_str(payload, "base", "ref"),
        base_sha=_nested_str(payload, "base", "sha"),
        head_ref=_nested_str(payload, "head", "ref"),
        base_repo_full_name=_nested_str(payload, "base", "repo", "full_name"),
        head_repo_full_name=_nested_str(payload, "head", "repo", "full_name"),
        labels=labels,
        draft=payload.get("draft") is True,
    )


def load_event_context(logger: logging.Logger | None = None) -> EventContext:
    """Read the workflow event from the GitHub Actions environment.

    Args:
        logger: Logger instance for output

    Returns:
        EventContext (without a pull request when the payload is unreadable)

    """
    logger = logger or get_logger()
    event_name = os.environ.get("GITHUB_EVENT_NAME", "")
    repository = os.environ.get("GITHUB_REPOSITORY", "")
    event_path = os.environ.get("GITHUB_EVENT_PATH")

    pull_request = None
    if event_path:
        try:
            event = json.loads(Path(event_path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read event payload %s: %s", event_path, e)
        else:
            if isinstance(event, dict):
                pull_request = parse_pull_request(event.get("pull_request"))

    return EventContext(event_name=event_name, repository=repository, pull_request=pull_request)
