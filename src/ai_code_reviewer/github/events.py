"""
GitHub Event Payload

Reads the pull request event that triggered the workflow run and
resolves which diff should be reviewed.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from .client import GitHubClient


logger = logging.getLogger(__name__)

ACTION_OPENED = "opened"
ACTION_SYNCHRONIZE = "synchronize"
SUPPORTED_ACTIONS = {ACTION_OPENED, ACTION_SYNCHRONIZE}


class EventPayloadError(Exception):
    """Triggering event payload is missing or unreadable"""


@dataclass
class PullRequestEvent:
    """Pull request event fields used by the review run."""
    action: str
    owner: str
    repository: str
    pull_number: int
    before: Optional[str] = None
    after: Optional[str] = None

    @property
    def is_supported(self) -> bool:
        return self.action in SUPPORTED_ACTIONS

    @classmethod
    def from_payload(cls, payload: Dict) -> "PullRequestEvent":
        """
        Build an event from a decoded GitHub webhook payload.

        Raises:
            EventPayloadError: If required fields are missing
        """
        try:
            repository = payload['repository']
            number = payload.get('number') or payload['pull_request']['number']
            return cls(
                action=payload.get('action', ''),
                owner=repository['owner']['login'],
                repository=repository['name'],
                pull_number=int(number),
                before=payload.get('before'),
                after=payload.get('after'),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise EventPayloadError(f"Invalid pull request event payload: {e}") from e


def load_event(event_path: Optional[str]) -> PullRequestEvent:
    """
    Load the triggering event from the JSON file GitHub Actions provides.

    Args:
        event_path: Path to the event payload (GITHUB_EVENT_PATH)

    Returns:
        Parsed PullRequestEvent

    Raises:
        EventPayloadError: If the file cannot be read or decoded
    """
    if not event_path:
        raise EventPayloadError("No event payload path given (GITHUB_EVENT_PATH is not set)")

    try:
        with open(Path(event_path), 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise EventPayloadError(f"Cannot read event payload {event_path}: {e}") from e

    event = PullRequestEvent.from_payload(payload)
    logger.info(f"Event action: {event.action} on {event.owner}/{event.repository}#{event.pull_number}")
    return event


def fetch_event_diff(client: GitHubClient, event: PullRequestEvent) -> Optional[str]:
    """
    Retrieve the diff matching the event type.

    ``opened`` reviews the whole pull request; ``synchronize`` reviews only
    the pushed commit range. Unsupported actions return None.
    """
    if event.action == ACTION_OPENED:
        return client.get_pull_request_diff(event.owner, event.repository, event.pull_number)

    if event.action == ACTION_SYNCHRONIZE:
        if not event.before or not event.after:
            raise EventPayloadError("Synchronize event is missing before/after commit SHAs")
        return client.compare_commits_diff(event.owner, event.repository, event.before, event.after)

    logger.info(f"Unsupported event action: {event.action!r}")
    return None
