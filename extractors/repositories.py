"""Repository extraction: lists the user's repositories and loads them."""

import logging

from models.data_models import Repository

logger = logging.getLogger(__name__)


class RepositoryExtractor:
    """Fetch all owned repositories and load them into the warehouse."""

    def __init__(self, client, loader):
        self.client = client
        self.loader = loader

    def extract_and_load(self) -> list[Repository]:
        """Returns the repositories (the scope for every per-repo extractor)."""
        logger.info("Extracting repositories...")
        repositories = self.client.get_repositories()
        logger.info(f"Fetched {len(repositories)} repositories from GitHub")

        if repositories:
            result = self.loader.load_repositories(repositories)
            if result.has_errors:
                logger.warning(
                    f"Repository load had {len(result.errors)} errors out of {result.total_rows} rows"
                )

        return repositories
