"""
GitHub API Client

Handles GitHub API authentication, rate limiting, and communication.
Provides methods for PR metadata and diff retrieval and review creation.
"""

import time
import logging
import threading
from typing import Dict, List, Optional
from datetime import datetime
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.pr_diff import ChangeRequestContext
from ..models.review import GitHubComment, REVIEW_EVENT_COMMENT


logger = logging.getLogger(__name__)

DIFF_MEDIA_TYPE = 'application/vnd.github.v3.diff'


class GitHubAPIError(Exception):
    """GitHub API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class RateLimitExceeded(GitHubAPIError):
    """GitHub API rate limit exceeded"""
    def __init__(self, reset_time: datetime):
        super().__init__(f"Rate limit exceeded. Resets at {reset_time}", status_code=429)
        self.reset_time = reset_time


class GitHubClient:
    """
    GitHub API client with authentication, rate limiting, and error handling.

    Provides methods for:
    - Pull request metadata retrieval
    - Unified diff retrieval (whole PR or commit range)
    - Review creation with line-anchored comments
    """

    def __init__(self, token: str, base_url: str = "https://api.github.com", timeout: int = 30):
        """
        Initialize GitHub client.

        Args:
            token: GitHub access token
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout: Request timeout in seconds
        """
        if not token:
            raise ValueError("GitHub token is required")

        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = self._create_session()
        # Review batches may share this client from several worker threads
        self._rate_limit_lock = threading.Lock()
        self.rate_limit_remaining = 5000
        self.rate_limit_reset = datetime.now()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy and authentication."""
        session = requests.Session()

        # Idempotent requests only; review creation is never retried
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'AI-Code-Reviewer/1.0'
        })

        return session

    def _check_rate_limit(self) -> None:
        """Check and handle GitHub API rate limits."""
        with self._rate_limit_lock:
            remaining, reset = self.rate_limit_remaining, self.rate_limit_reset

        if remaining <= 10 and datetime.now() < reset:
            wait_time = (reset - datetime.now()).total_seconds()
            if wait_time > 0:
                logger.warning(f"Rate limit low ({remaining}), resets in {wait_time:.1f}s")
                raise RateLimitExceeded(reset)

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        remaining = response.headers.get('X-RateLimit-Remaining')
        reset = response.headers.get('X-RateLimit-Reset')

        with self._rate_limit_lock:
            if remaining is not None:
                self.rate_limit_remaining = int(remaining)
            if reset is not None:
                self.rate_limit_reset = datetime.fromtimestamp(int(reset))

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API with rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            GitHubAPIError: For API errors
            RateLimitExceeded: When rate limit is exceeded
        """
        self._check_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise GitHubAPIError(f"Request failed: {str(e)}")

        self._update_rate_limit(response)

        if response.status_code == 429 or (
            response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0'
        ):
            reset_time = datetime.fromtimestamp(int(response.headers.get('X-RateLimit-Reset', time.time() + 3600)))
            raise RateLimitExceeded(reset_time)

        if not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {'message': response.text}
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {error_data.get('message', 'Unknown error')}",
                status_code=response.status_code,
                response_data=error_data
            )

        return response

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> Dict:
        """
        Get pull request information.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Pull request data
        """
        logger.info(f"Fetching PR {owner}/{repo}#{pr_number}")

        response = self._make_request('GET', f'/repos/{owner}/{repo}/pulls/{pr_number}')
        return response.json()

    def get_change_request_context(self, owner: str, repo: str, pr_number: int) -> ChangeRequestContext:
        """Fetch PR title and description as a ChangeRequestContext."""
        pr_data = self.get_pull_request(owner, repo, pr_number)
        return ChangeRequestContext(
            owner=owner,
            repository=repo,
            pull_number=pr_number,
            title=pr_data.get('title') or "",
            description=pr_data.get('body') or "",
        )

    def get_pull_request_diff(self, owner: str, repo: str, pr_number: int) -> str:
        """
        Get the unified diff of a whole pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Unified diff text
        """
        logger.info(f"Fetching diff for {owner}/{repo}#{pr_number}")

        response = self._make_request(
            'GET',
            f'/repos/{owner}/{repo}/pulls/{pr_number}',
            headers={'Accept': DIFF_MEDIA_TYPE}
        )
        return response.text

    def compare_commits_diff(self, owner: str, repo: str, base: str, head: str) -> str:
        """
        Get the unified diff between two commits.

        Args:
            owner: Repository owner
            repo: Repository name
            base: Base commit SHA
            head: Head commit SHA

        Returns:
            Unified diff text
        """
        logger.info(f"Fetching compare diff for {owner}/{repo} {base[:7]}...{head[:7]}")

        response = self._make_request(
            'GET',
            f'/repos/{owner}/{repo}/compare/{base}...{head}',
            headers={'Accept': DIFF_MEDIA_TYPE}
        )
        return response.text

    def create_review(
        self,
        owner: str,
        repo: str,
        pr_number: int,
        comments: List[GitHubComment],
        event: str = REVIEW_EVENT_COMMENT
    ) -> Dict:
        """
        Create a pull request review carrying line-anchored comments.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number
            comments: Comments to attach to the review
            event: Review event label

        Returns:
            Created review data
        """
        logger.info(f"Creating review on {owner}/{repo}#{pr_number} with {len(comments)} comments")

        response = self._make_request(
            'POST',
            f'/repos/{owner}/{repo}/pulls/{pr_number}/reviews',
            json={
                'comments': [comment.to_dict() for comment in comments],
                'event': event,
            }
        )
        return response.json()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
