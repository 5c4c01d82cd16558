"""
Comment Mapper

Turns model suggestions for a hunk into GitHub review comments
anchored on the owning file.
"""

import logging
from typing import List

from ..models.pr_diff import DiffFile, DiffHunk
from ..models.review import ReviewSuggestion, GitHubComment


logger = logging.getLogger(__name__)


class CommentMapper:
    """Maps ReviewSuggestion objects to GitHubComment objects."""

    def map_suggestions(
        self,
        diff_file: DiffFile,
        suggestions: List[ReviewSuggestion]
    ) -> List[GitHubComment]:
        """
        Map suggestions onto a file.

        Suggestions for a file without a usable target path (deleted
        files) are dropped. Line numbers are passed through as integers
        without checking them against the hunk.

        Args:
            diff_file: File the suggestions were produced for
            suggestions: Suggestions from the model

        Returns:
            List of GitHubComment objects
        """
        path = diff_file.reviewable_path
        if not path:
            if suggestions:
                logger.debug(f"Dropping {len(suggestions)} suggestions for file without target path")
            return []

        return [
            GitHubComment(
                path=path,
                line=int(suggestion.line_number),
                body=suggestion.comment_text,
            )
            for suggestion in suggestions
        ]

    def filter_to_hunk(self, hunk: DiffHunk, comments: List[GitHubComment]) -> List[GitHubComment]:
        """
        Keep only comments anchored on a line rendered for the hunk.

        Args:
            hunk: Hunk the comments were produced for
            comments: Mapped comments

        Returns:
            Comments whose line is one of the hunk's resolved line numbers
        """
        valid_lines = set(hunk.resolved_line_numbers)
        kept = [c for c in comments if c.line in valid_lines]

        dropped = len(comments) - len(kept)
        if dropped:
            logger.warning(f"Dropped {dropped} comments outside {hunk.header}")
        return kept
