"""GitHub REST API client with pagination, retries and rate-limit handling.

Every list endpoint is followed through the ``Link`` response header until
no ``rel="next"`` entry remains. Requests answered with 429 or 503 are
retried with exponential backoff (honouring ``Retry-After`` when GitHub
sends it), and every response is checked against the remaining quota so
the client pauses before GitHub starts rejecting requests.

The client keeps no per-request mutable state: each call builds its own
headers and passes the timeout explicitly, so one instance can be shared
by several threads (one per repository, for example).
"""

import logging
import re
import time
from typing import Any, Callable, NamedTuple, Optional, TypeVar, Union

import requests
from pydantic import BaseModel, ConfigDict

from models.data_models import Commit, Language, PullRequest, Repository, Review

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

BASE_URL = "https://api.github.com"
PER_PAGE = 100

RETRYABLE_STATUSES = (429, 503)
INITIAL_BACKOFF_MS = 1_000
MAX_BACKOFF_MS = 60_000
MAX_RETRIES = 7  # waits of 1s, 2s, 4s, 8s, 16s, 32s, 60s

# Pause until the quota resets once fewer requests than this remain
RATE_LIMIT_THRESHOLD = 100

REQUEST_TIMEOUT_SECONDS = 30

LINK_NEXT_PATTERN = re.compile(r'<([^>]+)>;\s*rel="next"')


class GitHubApiError(requests.HTTPError):
    """Terminal GitHub API failure (non-retryable status or retries exhausted)."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class NoCondition(BaseModel):
    """Plain request without conditional headers."""

    model_config = ConfigDict(frozen=True)


class ETag(BaseModel):
    """Conditional request on a previously seen entity tag (If-None-Match)."""

    model_config = ConfigDict(frozen=True)
    value: str


class Since(BaseModel):
    """Conditional request on a modification date (If-Modified-Since)."""

    model_config = ConfigDict(frozen=True)
    value: str


# Exactly one variant per request, so the two headers can never be combined
Conditional = Union[NoCondition, ETag, Since]
NO_CONDITION = NoCondition()


class PageResult(NamedTuple):
    """One decoded response page: JSON payload and the next page URL (if any).

    Both fields are None for a 304 Not Modified response.
    """

    data: Any
    next_url: Optional[str]


def parse_next_page_url(link_header: Optional[str]) -> Optional[str]:
    """Extract the ``rel="next"`` URL from a GitHub Link header.

    Example header:
        <https://api.github.com/user/repos?page=2>; rel="next",
        <https://api.github.com/user/repos?page=5>; rel="last"

    Args:
        link_header: Raw Link header value (may be None or empty)

    Returns:
        The next page URL, or None if there is no next page
    """
    if not link_header:
        return None
    match = LINK_NEXT_PATTERN.search(link_header)
    return match.group(1) if match else None


class GitHubApiClient:
    """Fetch repositories, commits, pull requests, reviews and languages from GitHub."""

    def __init__(
        self,
        token: str,
        username: str,
        http: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        """Initialize GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            username: Account whose commits are extracted (commit author filter)
            http: Object exposing ``get(url, headers=..., timeout=...)``.
                Defaults to the ``requests`` module, which shares no state
                between calls.
            sleep: Blocking sleep function taking seconds (injectable for tests)
            clock: Returns current epoch seconds (injectable for tests)
            timeout: Per-request HTTP timeout in seconds
        """
        self.token = token
        self.username = username
        self.base_url = BASE_URL
        self.http = http if http is not None else requests
        self.sleep = sleep
        self.clock = clock
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Endpoint methods
    # ------------------------------------------------------------------

    def get_repositories(self) -> list[Repository]:
        """Fetch all repositories owned by the authenticated user."""
        url = f"{self.base_url}/user/repos?per_page={PER_PAGE}&type=owner"
        return self.fetch_all_pages(url, Repository)

    def get_commits(self, repo_full_name: str) -> list[Commit]:
        """Fetch the configured user's commits in a repository."""
        url = (
            f"{self.base_url}/repos/{repo_full_name}/commits"
            f"?per_page={PER_PAGE}&author={self.username}"
        )
        return self.fetch_all_pages(url, Commit)

    def get_pull_requests(self, repo_full_name: str) -> list[PullRequest]:
        """Fetch all pull requests (open, closed and merged) in a repository."""
        url = f"{self.base_url}/repos/{repo_full_name}/pulls?state=all&per_page={PER_PAGE}"
        return self.fetch_all_pages(url, PullRequest)

    def get_reviews(self, repo_full_name: str, pr_number: int) -> list[Review]:
        """Fetch reviews for one pull request."""
        url = (
            f"{self.base_url}/repos/{repo_full_name}/pulls/{pr_number}"
            f"/reviews?per_page={PER_PAGE}"
        )
        return self.fetch_all_pages(url, Review)

    def get_languages(
        self,
        repo_full_name: str,
        conditional: Conditional = NO_CONDITION,
    ) -> Language:
        """Fetch language byte counts for a repository.

        This endpoint does not paginate; it returns a single JSON object.
        A 304 response yields an empty language map.
        """
        url = f"{self.base_url}/repos/{repo_full_name}/languages"
        data = self.execute_with_retry(self.build_request(url, conditional))
        return Language(repo_full_name=repo_full_name, languages=data or {})

    # ------------------------------------------------------------------
    # Pagination, retries and rate limiting
    # ------------------------------------------------------------------

    def fetch_all_pages(
        self,
        url: str,
        model: type[T],
        conditional: Conditional = NO_CONDITION,
    ) -> list[T]:
        """Fetch every page of a list endpoint and concatenate the items.

        Pages are requested one after another by following the Link header,
        so items come back in page-arrival order, then within-page order.
        The conditional header (if any) only applies to the first page.

        Args:
            url: First page URL
            model: Pydantic model each JSON array item is validated into
            conditional: Optional ETag / Since condition for the first request

        Returns:
            All items from all pages

        Raises:
            GitHubApiError: If any page fails after retries
            requests.RequestException: On network or JSON decoding errors
            pydantic.ValidationError: If an item does not match ``model``
        """
        results: list[T] = []
        next_url: Optional[str] = url
        condition = conditional

        while next_url:
            page = self.execute_page_with_retry(self.build_request(next_url, condition))
            condition = NO_CONDITION

            if page.data is not None:
                items = [model.model_validate(item) for item in page.data]
                results.extend(items)
                logger.debug(f"Fetched page with {len(items)} items from {next_url}")

            next_url = page.next_url

        return results

    def build_request(self, url: str, conditional: Conditional = NO_CONDITION) -> requests.Request:
        """Build an authenticated GET request with optional conditional header."""
        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if isinstance(conditional, ETag):
            headers["If-None-Match"] = conditional.value
        elif isinstance(conditional, Since):
            headers["If-Modified-Since"] = conditional.value

        return requests.Request("GET", url, headers=headers)

    def execute_with_retry(self, request: requests.Request) -> Any:
        """Execute a request with retries and return only the decoded body."""
        return self.execute_page_with_retry(request).data

    def execute_page_with_retry(self, request: requests.Request) -> PageResult:
        """Execute a request, retrying 429/503 responses with exponential backoff.

        Raises:
            GitHubApiError: On non-retryable statuses, or when the retry
                budget is exhausted (carries the last status code)
        """
        backoff_ms = INITIAL_BACKOFF_MS

        for attempt in range(MAX_RETRIES + 1):
            response = self.http.get(request.url, headers=request.headers, timeout=self.timeout)
            status_code = response.status_code
            self._log_response(request.url, response)

            # Throttle check runs on every response, retryable ones included
            self._pause_if_rate_limited(response)

            if status_code in RETRYABLE_STATUSES:
                if attempt == MAX_RETRIES:
                    raise GitHubApiError(
                        f"Max retries exceeded for {request.url} (last status: {status_code})",
                        status_code=status_code,
                        url=request.url,
                    )
                wait_ms = self._retry_wait_ms(response, backoff_ms)
                logger.warning(
                    f"Received {status_code} from {request.url}. "
                    f"Retrying in {wait_ms}ms (attempt {attempt + 1}/{MAX_RETRIES})"
                )
                self.sleep(wait_ms / 1000)
                backoff_ms = min(backoff_ms * 2, MAX_BACKOFF_MS)
                continue

            # Not modified: no new data since the ETag / date we sent
            if status_code == 304:
                return PageResult(None, None)

            if status_code < 200 or status_code >= 300:
                raise GitHubApiError(
                    f"GitHub API error: {status_code} for {request.url}",
                    status_code=status_code,
                    url=request.url,
                )

            return PageResult(response.json(), parse_next_page_url(response.headers.get("Link")))

        # Unreachable: the last attempt either returns or raises
        raise GitHubApiError(f"Exhausted retries for {request.url}", url=request.url)

    def _retry_wait_ms(self, response: requests.Response, backoff_ms: int) -> int:
        """Use Retry-After (seconds) when present, otherwise the current backoff."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return int(retry_after) * 1000
            except ValueError:
                logger.debug(f"Ignoring non-numeric Retry-After header: {retry_after!r}")
        return backoff_ms

    def _pause_if_rate_limited(self, response: requests.Response) -> None:
        """Sleep until the quota resets if the remaining quota is low."""
        remaining_header = response.headers.get("X-RateLimit-Remaining")
        reset_header = response.headers.get("X-RateLimit-Reset")

        if remaining_header is None or reset_header is None:
            return

        try:
            remaining = int(remaining_header)
            reset_epoch = int(reset_header)
        except ValueError:
            logger.debug(
                f"Ignoring malformed rate limit headers: "
                f"remaining={remaining_header!r}, reset={reset_header!r}"
            )
            return

        if remaining < RATE_LIMIT_THRESHOLD:
            # +1 second safety margin past the reset time
            sleep_seconds = max(reset_epoch - int(self.clock()) + 1, 1)
            logger.warning(
                f"⏳ Rate limit low ({remaining} remaining). "
                f"Pausing for {sleep_seconds}s until reset."
            )
            self.sleep(sleep_seconds)

    def _log_response(self, url: str, response: requests.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        logger.info(
            f"GitHub API {response.status_code} {url} | "
            f"rate-limit-remaining: {remaining if remaining is not None else 'n/a'}"
        )
