"""Pull request extraction with incremental filtering on updated_at."""

import logging
from datetime import datetime
from typing import Optional

from extractors.filters import filter_since
from models.data_models import PullRequest

logger = logging.getLogger(__name__)


class PullRequestExtractor:
    """Extract a repository's pull requests and load them into the warehouse."""

    def __init__(self, client, loader):
        self.client = client
        self.loader = loader

    def extract_and_load(
        self,
        repo_full_name: str,
        since: Optional[datetime] = None,
    ) -> list[PullRequest]:
        """
        Extract pull requests for a repository and load them.

        Args:
            repo_full_name: Repository in "owner/repo" form
            since: If set, only PRs updated after this instant are kept

        Returns:
            The kept pull requests; reviews are fetched for exactly these
        """
        logger.info(
            f"Extracting pull requests for {repo_full_name} "
            f"(since: {since.isoformat() if since else 'full'})"
        )

        pull_requests = self.client.get_pull_requests(repo_full_name)
        pull_requests = filter_since(pull_requests, since, lambda pr: pr.updated_at)

        logger.info(f"Fetched {len(pull_requests)} pull requests for {repo_full_name}")

        if pull_requests:
            result = self.loader.load_pull_requests(repo_full_name, pull_requests)
            if result.has_errors:
                logger.warning(
                    f"PR load for {repo_full_name} had {len(result.errors)} errors "
                    f"out of {result.total_rows} rows"
                )

        return pull_requests
