"""
Diff Analyzer

Drives the per-hunk review pipeline across a parsed diff:
prompt construction, model review, and comment mapping.
"""

import asyncio
import logging
from fnmatch import fnmatch
from typing import List, Optional, Sequence, Tuple

from ..models.pr_diff import ChangeRequestContext, DiffFile, DiffHunk
from ..models.review import GitHubComment
from ..llm.prompts import PromptBuilder
from ..llm.generator import ReviewGenerator
from .mapper import CommentMapper


logger = logging.getLogger(__name__)


class DiffAnalyzer:
    """
    Reviews every hunk of every reviewable file.

    Comments are collected in file order, then hunk order. A hunk whose
    review fails contributes nothing and the remaining hunks still run.
    """

    def __init__(
        self,
        review_generator: ReviewGenerator,
        prompt_builder: Optional[PromptBuilder] = None,
        comment_mapper: Optional[CommentMapper] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
        max_concurrent_reviews: int = 1,
        drop_out_of_range_lines: bool = False,
    ):
        """
        Initialize diff analyzer.

        Args:
            review_generator: Model-backed suggestion source
            prompt_builder: Prompt renderer
            comment_mapper: Suggestion to comment mapper
            exclude_patterns: Glob patterns of paths to skip
            max_concurrent_reviews: Hunks reviewed at the same time (1 = sequential)
            drop_out_of_range_lines: Drop comments not anchored on a line of their hunk
        """
        if max_concurrent_reviews < 1:
            raise ValueError("max_concurrent_reviews must be at least 1")

        self.review_generator = review_generator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.comment_mapper = comment_mapper or CommentMapper()
        self.exclude_patterns = [p for p in (exclude_patterns or []) if p]
        self.max_concurrent_reviews = max_concurrent_reviews
        self.drop_out_of_range_lines = drop_out_of_range_lines

    def is_excluded(self, path: str) -> bool:
        """Check a path against the exclusion globs."""
        return any(fnmatch(path, pattern) for pattern in self.exclude_patterns)

    def select_files(self, diff_files: List[DiffFile]) -> List[DiffFile]:
        """Drop deleted and excluded files, keeping parser order."""
        selected = []
        for diff_file in diff_files:
            if diff_file.is_deleted:
                logger.debug(f"Skipping deleted file: {diff_file.display_path}")
                continue
            if self.is_excluded(diff_file.target_path):
                logger.info(f"Skipping excluded file: {diff_file.target_path}")
                continue
            selected.append(diff_file)
        return selected

    async def analyze(
        self,
        context: ChangeRequestContext,
        diff_files: List[DiffFile]
    ) -> List[GitHubComment]:
        """
        Review all hunks and collect their comments.

        Args:
            context: Pull request metadata
            diff_files: Parsed diff

        Returns:
            Ordered list of GitHubComment objects for the whole pull request
        """
        units: List[Tuple[DiffFile, DiffHunk]] = [
            (diff_file, hunk)
            for diff_file in self.select_files(diff_files)
            for hunk in diff_file.hunks
        ]
        logger.info(f"Reviewing {len(units)} hunks in {context.full_name}#{context.pull_number}")

        if self.max_concurrent_reviews == 1:
            per_hunk = []
            for diff_file, hunk in units:
                per_hunk.append(await self._review_hunk(context, diff_file, hunk))
        else:
            semaphore = asyncio.Semaphore(self.max_concurrent_reviews)

            async def bounded(diff_file: DiffFile, hunk: DiffHunk) -> List[GitHubComment]:
                async with semaphore:
                    return await self._review_hunk(context, diff_file, hunk)

            # gather keeps the input order
            per_hunk = await asyncio.gather(*(bounded(f, h) for f, h in units))

        comments: List[GitHubComment] = []
        for hunk_comments in per_hunk:
            comments.extend(hunk_comments)

        logger.info(f"Collected {len(comments)} comments from {len(units)} hunks")
        return comments

    async def _review_hunk(
        self,
        context: ChangeRequestContext,
        diff_file: DiffFile,
        hunk: DiffHunk
    ) -> List[GitHubComment]:
        """Run prompt, model and mapping for one hunk."""
        prompt = self.prompt_builder.build_review_prompt(context, diff_file, hunk)
        suggestions = await self.review_generator.generate_suggestions(prompt)

        if suggestions is None:
            logger.warning(f"No review result for {diff_file.target_path} {hunk.header}")
            return []

        try:
            comments = self.comment_mapper.map_suggestions(diff_file, suggestions)
        except ValueError as e:
            logger.error(f"Could not map suggestions for {diff_file.target_path} {hunk.header}: {e}")
            return []

        if self.drop_out_of_range_lines:
            comments = self.comment_mapper.filter_to_hunk(hunk, comments)

        logger.debug(f"{diff_file.target_path} {hunk.header}: {len(comments)} comments")
        return comments
