"""
GitHub Integration Layer

This module provides GitHub API integration for PR diff retrieval,
unified diff parsing, event handling, and review publication.
"""

from .client import GitHubClient, GitHubAPIError, RateLimitExceeded
from .parser import UnifiedDiffParser, DiffParseError
from .events import PullRequestEvent, EventPayloadError, load_event, fetch_event_diff
from .publisher import ReviewPublisher

__all__ = [
    'GitHubClient',
    'GitHubAPIError',
    'RateLimitExceeded',
    'UnifiedDiffParser',
    'DiffParseError',
    'PullRequestEvent',
    'EventPayloadError',
    'load_event',
    'fetch_event_diff',
    'ReviewPublisher',
]
