"""Commit extraction with incremental filtering on the authored date."""

import logging
from datetime import datetime
from typing import Optional

from extractors.filters import filter_since

logger = logging.getLogger(__name__)


class CommitExtractor:
    """Extract a repository's commits and load them into the warehouse."""

    def __init__(self, client, loader):
        self.client = client
        self.loader = loader

    def extract_and_load(self, repo_full_name: str, since: Optional[datetime] = None) -> int:
        """
        Extract commits for a repository and load them.

        Args:
            repo_full_name: Repository in "owner/repo" form
            since: If set, only commits authored after this instant are kept
                (commits with a missing or unparsable date are always kept)

        Returns:
            Number of commit rows loaded
        """
        logger.info(
            f"Extracting commits for {repo_full_name} "
            f"(since: {since.isoformat() if since else 'full'})"
        )

        commits = self.client.get_commits(repo_full_name)
        commits = filter_since(commits, since, lambda c: c.authored_date)

        logger.info(f"Fetched {len(commits)} commits for {repo_full_name}")

        if not commits:
            return 0

        result = self.loader.load_commits(repo_full_name, commits)
        if result.has_errors:
            logger.warning(
                f"Commit load for {repo_full_name} had {len(result.errors)} errors "
                f"out of {result.total_rows} rows"
            )
        return result.successful_rows
