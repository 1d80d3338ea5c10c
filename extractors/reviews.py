"""Review extraction for a repository's pull requests."""

import logging

from models.data_models import PullRequest

logger = logging.getLogger(__name__)


class ReviewExtractor:
    """Extract reviews for each given pull request and load them."""

    def __init__(self, client, loader):
        self.client = client
        self.loader = loader

    def extract_and_load(self, repo_full_name: str, pull_requests: list[PullRequest]) -> int:
        """
        Extract reviews PR by PR, loading each PR's reviews in one batch.

        Args:
            repo_full_name: Repository in "owner/repo" form
            pull_requests: PRs whose reviews to fetch (may be empty)

        Returns:
            Total number of review rows loaded
        """
        total_loaded = 0

        for pr in pull_requests:
            logger.debug(f"Extracting reviews for PR #{pr.number} in {repo_full_name}")

            reviews = self.client.get_reviews(repo_full_name, pr.number)
            if not reviews:
                continue

            result = self.loader.load_reviews(repo_full_name, pr.number, reviews)
            if result.has_errors:
                logger.warning(
                    f"Review load for {repo_full_name} PR #{pr.number} had "
                    f"{len(result.errors)} errors"
                )
            total_loaded += result.successful_rows

        logger.info(
            f"Loaded {total_loaded} reviews for {repo_full_name} "
            f"across {len(pull_requests)} PRs"
        )
        return total_loaded
