"""
Extraction orchestrator.

Runs the whole pipeline:
    ensure warehouse infrastructure
    -> (incremental) read watermarks
    -> repositories
    -> per repository: commits, pull requests, reviews, languages
    -> advance watermarks for entity types that fully succeeded

Every per-repository step is isolated: a failure is recorded as a result
for that (entity, repo) pair and the run moves on. Only a failed
infrastructure setup stops the run before any data is moved.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Optional

from extractors import (
    CommitExtractor,
    LanguageExtractor,
    PullRequestExtractor,
    RepositoryExtractor,
    ReviewExtractor,
)
from models.data_models import PullRequest, Repository
from orchestrator.results import (
    ENTITY_COMMITS,
    ENTITY_INFRASTRUCTURE,
    ENTITY_LANGUAGES,
    ENTITY_PULL_REQUESTS,
    ENTITY_REPOSITORIES,
    ENTITY_REVIEWS,
    ENTITY_TYPES,
    SCOPE_ALL,
    SCOPE_NONE,
    ExtractionResult,
    ExtractionSummary,
)
from storage.watermarks import WatermarkStore

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class ExtractionOrchestrator:
    """Coordinate extractors, aggregate results and advance watermarks."""

    def __init__(
        self,
        client,
        loader,
        watermarks: Optional[WatermarkStore] = None,
        max_workers: int = 1,
        repository_extractor: Optional[RepositoryExtractor] = None,
        commit_extractor: Optional[CommitExtractor] = None,
        pull_request_extractor: Optional[PullRequestExtractor] = None,
        review_extractor: Optional[ReviewExtractor] = None,
        language_extractor: Optional[LanguageExtractor] = None,
    ):
        """
        Args:
            client: GitHubApiClient shared by all extractors
            loader: BigQueryLoader (infrastructure + entity loads)
            watermarks: Watermark store; defaults to the loader
            max_workers: Repositories processed concurrently (1 = sequential)
            *_extractor: Optional pre-built extractors (built from client/loader otherwise)
        """
        self.client = client
        self.loader = loader
        self.watermarks = watermarks if watermarks is not None else loader
        self.max_workers = max(1, max_workers)
        self.repository_extractor = repository_extractor or RepositoryExtractor(client, loader)
        self.commit_extractor = commit_extractor or CommitExtractor(client, loader)
        self.pull_request_extractor = pull_request_extractor or PullRequestExtractor(client, loader)
        self.review_extractor = review_extractor or ReviewExtractor(client, loader)
        self.language_extractor = language_extractor or LanguageExtractor(client, loader)

    def run(self, full_mode: bool = False) -> ExtractionSummary:
        """
        Run the extraction pipeline.

        Args:
            full_mode: If True, ignore watermarks and fetch everything;
                otherwise only commits / PRs newer than their watermark are kept

        Returns:
            ExtractionSummary with one result per step (never raises for step failures)
        """
        run_start = time.monotonic()
        logger.info(f"Starting {'FULL' if full_mode else 'INCREMENTAL'} extraction")

        results: list[ExtractionResult] = []

        try:
            self.loader.ensure_infrastructure_exists()
        except Exception as e:
            logger.error(f"Failed to initialize BigQuery infrastructure: {e}")
            results.append(ExtractionResult.failed(
                ENTITY_INFRASTRUCTURE, SCOPE_NONE, str(e), _elapsed_ms(run_start)
            ))
            summary = ExtractionSummary(results=results, total_duration_ms=_elapsed_ms(run_start))
            self._log_summary(summary)
            return summary

        commits_since: Optional[datetime] = None
        prs_since: Optional[datetime] = None
        if not full_mode:
            commits_since = self.watermarks.get_last_extraction_timestamp(ENTITY_COMMITS)
            prs_since = self.watermarks.get_last_extraction_timestamp(ENTITY_PULL_REQUESTS)
            logger.info(
                f"Incremental mode: commits since: "
                f"{commits_since.isoformat() if commits_since else 'none (full)'}, "
                f"PRs since: {prs_since.isoformat() if prs_since else 'none (full)'}"
            )

        # Captured before any fetch so nothing created during the run is skipped next time
        extraction_timestamp = datetime.now(timezone.utc)

        repositories: list[Repository] = []
        step_start = time.monotonic()
        try:
            repositories = self.repository_extractor.extract_and_load()
            results.append(ExtractionResult.succeeded(
                ENTITY_REPOSITORIES, SCOPE_ALL,
                len(repositories), len(repositories), _elapsed_ms(step_start),
            ))
        except Exception as e:
            logger.error(f"Failed to extract repositories: {e}")
            results.append(ExtractionResult.failed(
                ENTITY_REPOSITORIES, SCOPE_ALL, str(e), _elapsed_ms(step_start)
            ))

        results.extend(self._extract_repositories(repositories, commits_since, prs_since))

        # All repository units have finished here; advance only on complete results
        for entity_type in ENTITY_TYPES:
            self._advance_watermark_if_successful(results, entity_type, extraction_timestamp)

        summary = ExtractionSummary(results=results, total_duration_ms=_elapsed_ms(run_start))
        self._log_summary(summary)
        return summary

    def _extract_repositories(
        self,
        repositories: list[Repository],
        commits_since: Optional[datetime],
        prs_since: Optional[datetime],
    ) -> list[ExtractionResult]:
        """Run the per-repository unit for every repository and join the results.

        Results are collected in repository listing order regardless of
        ``max_workers``; the returned list is complete only once every unit
        has finished.
        """
        if not repositories:
            return []

        if self.max_workers == 1:
            results: list[ExtractionResult] = []
            for repo in repositories:
                results.extend(self._extract_repository(repo, commits_since, prs_since))
            return results

        logger.info(
            f"Extracting {len(repositories)} repositories with {self.max_workers} workers"
        )
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._extract_repository, repo, commits_since, prs_since)
                for repo in repositories
            ]
            # Joined from this thread only, in submission order
            results = []
            for future in futures:
                results.extend(future.result())
        return results

    def _extract_repository(
        self,
        repo: Repository,
        commits_since: Optional[datetime],
        prs_since: Optional[datetime],
    ) -> list[ExtractionResult]:
        """Commits -> pull requests -> reviews -> languages for one repository."""
        repo_name = repo.full_name
        results: list[ExtractionResult] = []

        self._run_step(
            results, ENTITY_COMMITS, repo_name,
            lambda: self.commit_extractor.extract_and_load(repo_name, commits_since),
        )

        pull_requests: list[PullRequest] = self._run_step(
            results, ENTITY_PULL_REQUESTS, repo_name,
            lambda: self.pull_request_extractor.extract_and_load(repo_name, prs_since),
            count_of=len,
        ) or []

        # Runs even when the PR step failed, then with no PRs to review
        self._run_step(
            results, ENTITY_REVIEWS, repo_name,
            lambda: self.review_extractor.extract_and_load(repo_name, pull_requests),
        )

        self._run_step(
            results, ENTITY_LANGUAGES, repo_name,
            lambda: self.language_extractor.extract_and_load([repo]),
        )

        return results

    def _run_step(
        self,
        results: list[ExtractionResult],
        entity_type: str,
        repo_name: str,
        step: Callable,
        count_of: Callable = int,
    ):
        """Run one extraction step, recording success or failure.

        Returns the step's return value, or None if it raised.
        """
        step_start = time.monotonic()
        try:
            value = step()
        except Exception as e:
            logger.error(f"Failed to extract {entity_type} for {repo_name}: {e}")
            results.append(ExtractionResult.failed(
                entity_type, repo_name, str(e), _elapsed_ms(step_start)
            ))
            return None

        count = count_of(value)
        results.append(ExtractionResult.succeeded(
            entity_type, repo_name, count, count, _elapsed_ms(step_start)
        ))
        return value

    def _advance_watermark_if_successful(
        self,
        results: list[ExtractionResult],
        entity_type: str,
        timestamp: datetime,
    ) -> None:
        """Advance the watermark only if the entity type had successes and no failures."""
        entity_results = [r for r in results if r.entity_type == entity_type]
        any_success = any(r.success for r in entity_results)
        any_failure = any(not r.success for r in entity_results)

        if not any_success or any_failure:
            if any_failure:
                logger.info(f"Not advancing {entity_type} watermark: run had failures")
            return

        try:
            self.watermarks.update_last_extraction_timestamp(entity_type, timestamp)
        except Exception as e:
            logger.error(f"Failed to update extraction metadata for {entity_type}: {e}")

    def _log_summary(self, summary: ExtractionSummary) -> None:
        logger.info("=== Extraction Summary ===")
        logger.info(f"Total duration: {summary.total_duration_ms}ms")
        logger.info(
            f"Total results: {len(summary.results)} "
            f"({summary.success_count} successful, {summary.failure_count} failed)"
        )

        for entity_type in ENTITY_TYPES:
            logger.info(
                f"  {entity_type}: extracted={summary.total_extracted_for_entity(entity_type)}, "
                f"loaded={summary.total_loaded_for_entity(entity_type)}, "
                f"failures={summary.failures_for_entity(entity_type)}"
            )

        if summary.has_failures:
            logger.warning(f"Extraction completed with {summary.failure_count} failures")
            for r in summary.failures:
                logger.warning(f"  FAILED: {r.entity_type} [{r.repo_full_name}]: {r.error_message}")
