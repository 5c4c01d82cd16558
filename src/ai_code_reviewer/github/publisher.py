"""
Review Publisher

Splits review comments into fixed-size batches and submits one
COMMENT review per batch with a staggered start to stay under
GitHub's secondary rate limits.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List

from .client import GitHubClient
from ..models.pr_diff import ChangeRequestContext
from ..models.review import (
    GitHubComment,
    ReviewBatch,
    BatchOutcome,
    PublicationReport,
    REVIEW_EVENT_COMMENT,
)


logger = logging.getLogger(__name__)


class ReviewPublisher:
    """
    Publishes review comments to a pull request in batches.

    Batch ``i`` waits ``i * batch_interval`` seconds before it is sent.
    All submissions are awaited before ``publish`` returns, and a failed
    batch is logged and reported without affecting the others.

    Submissions run in worker threads and may overlap in flight when a
    request outlasts the interval (or the interval is zero), so the
    GitHub client they share must tolerate concurrent calls.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        batch_size: int = 20,
        batch_interval: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize review publisher.

        Args:
            github_client: Client used for review creation
            batch_size: Maximum comments per review
            batch_interval: Seconds between consecutive batch start times
            sleep: Coroutine used for the stagger delay
        """
        if batch_size <= 0:
            raise ValueError("Batch size must be positive")
        if batch_interval < 0:
            raise ValueError("Batch interval must be non-negative")

        self.github_client = github_client
        self.batch_size = batch_size
        self.batch_interval = batch_interval
        self._sleep = sleep

    def build_batches(
        self,
        context: ChangeRequestContext,
        comments: List[GitHubComment]
    ) -> List[ReviewBatch]:
        """Partition comments into contiguous batches of at most batch_size."""
        batches = []
        for index, start in enumerate(range(0, len(comments), self.batch_size)):
            batches.append(ReviewBatch(
                owner=context.owner,
                repository=context.repository,
                pull_number=context.pull_number,
                index=index,
                comments=comments[start:start + self.batch_size],
                event=REVIEW_EVENT_COMMENT,
            ))
        return batches

    async def publish(
        self,
        context: ChangeRequestContext,
        comments: List[GitHubComment]
    ) -> PublicationReport:
        """
        Submit all comments and wait for every batch to finish.

        Args:
            context: Target pull request
            comments: Ordered comments to publish

        Returns:
            PublicationReport with one outcome per batch, in batch order
        """
        batches = self.build_batches(context, comments)
        if not batches:
            logger.info("No comments to publish")
            return PublicationReport()

        logger.info(f"Publishing {len(comments)} comments in {len(batches)} batches")

        tasks = [asyncio.create_task(self._submit(batch)) for batch in batches]
        outcomes = await asyncio.gather(*tasks)

        report = PublicationReport(outcomes=list(outcomes))
        if report.all_succeeded:
            logger.info(f"Published {report.published_comments} comments")
        else:
            logger.error(
                f"{len(report.failed_batches)} of {report.total_batches} batches failed; "
                f"published {report.published_comments} of {len(comments)} comments"
            )
        return report

    async def _submit(self, batch: ReviewBatch) -> BatchOutcome:
        """Wait for the batch's slot, then create the review."""
        delay = batch.index * self.batch_interval
        if delay > 0:
            await self._sleep(delay)

        logger.debug(f"Sending batch {batch.index} ({batch.size} comments)")
        try:
            review = await asyncio.to_thread(
                self.github_client.create_review,
                batch.owner,
                batch.repository,
                batch.pull_number,
                batch.comments,
                batch.event,
            )
        except Exception as e:
            logger.error(f"Failed to publish batch {batch.index} ({batch.size} comments): {e}")
            return BatchOutcome(index=batch.index, size=batch.size, success=False, error=str(e))

        review_id = review.get('id') if isinstance(review, dict) else None
        return BatchOutcome(index=batch.index, size=batch.size, success=True, review_id=review_id)
