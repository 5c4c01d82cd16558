"""
Main Review Action

Orchestrates one review run from the triggering pull request event
to the published GitHub review comments.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

from openai import AsyncOpenAI

from .config import AppConfig
from .github.client import GitHubClient
from .github.events import PullRequestEvent, fetch_event_diff
from .github.parser import UnifiedDiffParser
from .github.publisher import ReviewPublisher
from .llm.generator import ReviewGenerator, GenerationConfig
from .llm.prompts import PromptBuilder
from .models.pr_diff import DiffFile
from .models.review import GitHubComment, PublicationReport, ReviewResult
from .review.analyzer import DiffAnalyzer
from .review.mapper import CommentMapper


logger = logging.getLogger(__name__)


class ReviewAction:
    """
    Main AI code review interface.

    Orchestrates the complete review process:
    1. Fetch PR metadata and the diff matching the event
    2. Parse the diff into files and hunks
    3. Review every hunk with the language model
    4. Publish the comments as batched COMMENT reviews

    Clients passed in are owned by the caller; clients created here are
    closed by ``aclose``.
    """

    def __init__(
        self,
        config: AppConfig,
        github_client: Optional[GitHubClient] = None,
        openai_client: Optional[AsyncOpenAI] = None,
        sleep=asyncio.sleep,
    ):
        """
        Initialize review action.

        Args:
            config: Application configuration
            github_client: Optional GitHub client (created from config if omitted)
            openai_client: Optional OpenAI client (created from config if omitted)
            sleep: Coroutine used for the batch stagger delay
        """
        self.config = config

        logger.info("Initializing review action components...")

        self._owns_github_client = github_client is None
        self.github_client = github_client or GitHubClient(
            config.github.token,
            base_url=config.github.api_base_url,
            timeout=config.github.timeout_seconds,
        )

        self._owns_openai_client = openai_client is None
        self.openai_client = openai_client or AsyncOpenAI(
            api_key=config.openai.api_key,
            base_url=config.openai.base_url,
            timeout=config.openai.timeout_seconds,
        )

        self.diff_parser = UnifiedDiffParser()
        self.review_generator = ReviewGenerator(
            client=self.openai_client,
            model_name=config.openai.model,
            generation_config=GenerationConfig(
                max_tokens=config.openai.max_tokens,
                temperature=config.openai.temperature,
                top_p=config.openai.top_p,
                frequency_penalty=config.openai.frequency_penalty,
                presence_penalty=config.openai.presence_penalty,
            ),
        )
        self.diff_analyzer = DiffAnalyzer(
            review_generator=self.review_generator,
            prompt_builder=PromptBuilder(),
            comment_mapper=CommentMapper(),
            exclude_patterns=config.review.exclude_patterns,
            max_concurrent_reviews=config.review.max_concurrent_reviews,
            drop_out_of_range_lines=config.review.drop_out_of_range_lines,
        )
        self.publisher = ReviewPublisher(
            github_client=self.github_client,
            batch_size=config.review.batch_size,
            batch_interval=config.review.batch_interval_seconds,
            sleep=sleep,
        )

        logger.info("Review action initialized successfully")

    async def run(self, event: PullRequestEvent) -> ReviewResult:
        """
        Review the pull request referenced by an event.

        Args:
            event: Triggering pull request event

        Returns:
            ReviewResult; status is ``skipped`` for unsupported events and
            ``failed`` when a fatal error occurred or a batch was rejected
        """
        start_time = datetime.now()
        repository = f"{event.owner}/{event.repository}"

        if not event.is_supported:
            logger.info(f"Unsupported event action {event.action!r}; nothing to review")
            return self._result(event, start_time, 'skipped', [], {'action': event.action})

        logger.info(f"Starting review: {repository}#{event.pull_number} ({event.action})")

        try:
            context = await asyncio.to_thread(
                self.github_client.get_change_request_context,
                event.owner, event.repository, event.pull_number
            )
            diff_text = await asyncio.to_thread(fetch_event_diff, self.github_client, event)

            if not diff_text:
                logger.info("No diff found")
                return self._result(event, start_time, 'completed', [], {'action': event.action})

            diff_files = self.diff_parser.parse(diff_text)
            comments = await self.diff_analyzer.analyze(context, diff_files)

            publication = None
            if self.config.review.dry_run:
                for comment in comments:
                    logger.info(f"[dry-run] {comment.path}:{comment.line} {comment.body}")
            elif comments:
                publication = await self.publisher.publish(context, comments)

        except Exception as e:
            logger.error(f"Review failed: {repository}#{event.pull_number} - {e}")
            return self._result(event, start_time, 'failed', [], {'error': str(e)})

        status = 'completed'
        if publication is not None and not publication.all_succeeded:
            status = 'failed'

        result = self._result(event, start_time, status, comments, {}, publication)
        result.metadata = self._create_metadata(event, diff_files, result)
        logger.info(
            f"Review {status}: {repository}#{event.pull_number} "
            f"({result.total_comments} comments, {result.processing_time:.2f}s)"
        )
        return result

    def _result(
        self,
        event: PullRequestEvent,
        start_time: datetime,
        status: str,
        comments: List[GitHubComment],
        metadata: Dict,
        publication: Optional[PublicationReport] = None,
    ) -> ReviewResult:
        return ReviewResult(
            repository=f"{event.owner}/{event.repository}",
            pr_number=event.pull_number,
            status=status,
            comments=comments,
            processing_time=(datetime.now() - start_time).total_seconds(),
            metadata=metadata,
            created_at=start_time,
            publication=publication,
        )

    def _create_metadata(
        self,
        event: PullRequestEvent,
        diff_files: List[DiffFile],
        result: ReviewResult,
    ) -> Dict:
        """Create metadata for the review result."""
        reviewed = self.diff_analyzer.select_files(diff_files)
        publication = result.publication
        return {
            'action': event.action,
            'diff_stats': {
                'files_parsed': len(diff_files),
                'files_reviewed': len(reviewed),
                'hunks_reviewed': sum(len(f.hunks) for f in reviewed),
                'total_additions': sum(f.additions for f in diff_files),
                'total_deletions': sum(f.deletions for f in diff_files),
            },
            'review_stats': {
                'comments': result.total_comments,
                'files_with_comments': result.files_with_comments,
                'model': self.review_generator.get_model_info(),
                'dry_run': self.config.review.dry_run,
            },
            'publication_stats': {
                'batches': publication.total_batches if publication else 0,
                'failed_batches': len(publication.failed_batches) if publication else 0,
                'published_comments': publication.published_comments if publication else 0,
            },
        }

    async def aclose(self) -> None:
        """Close the clients created by this action."""
        logger.info("Cleaning up review action resources")
        if self._owns_github_client:
            self.github_client.close()
        if self._owns_openai_client:
            await self.openai_client.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit with cleanup."""
        await self.aclose()
