"""Language statistics extraction (always a full refresh)."""

import logging

from models.data_models import Repository

logger = logging.getLogger(__name__)


class LanguageExtractor:
    """Fetch language byte counts per repository and load them as flat rows."""

    def __init__(self, client, loader):
        self.client = client
        self.loader = loader

    def extract_and_load(self, repositories: list[Repository]) -> int:
        """Returns the number of language rows loaded."""
        languages = []

        for repo in repositories:
            logger.debug(f"Extracting languages for {repo.full_name}")
            language = self.client.get_languages(repo.full_name)
            if language.languages:
                languages.append(language)

        logger.info(
            f"Fetched language data for {len(repositories)} repositories "
            f"({len(languages)} with languages)"
        )

        if not languages:
            return 0

        result = self.loader.load_languages(languages)
        if result.has_errors:
            logger.warning(
                f"Language load had {len(result.errors)} errors out of {result.total_rows} rows"
            )
        return result.successful_rows
