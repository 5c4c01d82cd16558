"""
Data Models

AI Code Reviewer 시스템의 핵심 데이터 모델들
"""

from .pr_diff import ChangeRequestContext, DiffFile, DiffHunk, ChangeLine, DEV_NULL
from .review import (
    ReviewSuggestion,
    GitHubComment,
    ReviewBatch,
    BatchOutcome,
    PublicationReport,
    ReviewResult,
    REVIEW_EVENT_COMMENT,
)

__all__ = [
    "ChangeRequestContext",
    "DiffFile",
    "DiffHunk",
    "ChangeLine",
    "DEV_NULL",
    "ReviewSuggestion",
    "GitHubComment",
    "ReviewBatch",
    "BatchOutcome",
    "PublicationReport",
    "ReviewResult",
    "REVIEW_EVENT_COMMENT",
]
