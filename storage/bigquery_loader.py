"""
BigQuery storage client for extracted GitHub data.

Responsibilities:
- Create the raw/staging/mart datasets and raw tables if missing
- Stream entity rows into the raw tables with per-row error reporting
- Read and upsert per-entity extraction watermarks (_extraction_metadata)

Inserts are append-only; deduplication by key happens in the downstream
SQL models. Row-level rejections are reported, never raised.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import NotFound
from google.cloud import bigquery

from models.data_models import (
    Commit,
    InsertResult,
    Language,
    PullRequest,
    Repository,
    Review,
    RowError,
)
from storage import schemas

logger = logging.getLogger(__name__)


class BigQueryLoader:
    """Client for loading extraction results into BigQuery."""

    def __init__(self, project_id: str, client: Optional[bigquery.Client] = None):
        """
        Initialize BigQuery loader.

        Args:
            project_id: GCP project that owns the datasets
            client: Optional pre-built BigQuery client. By default one is created
                using Application Default Credentials (GOOGLE_APPLICATION_CREDENTIALS).
        """
        self.project_id = project_id
        self.client = client if client is not None else bigquery.Client(project=project_id)
        logger.info(f"Initialized BigQueryLoader for project {project_id}")

    # ------------------------------------------------------------------
    # Infrastructure
    # ------------------------------------------------------------------

    def ensure_infrastructure_exists(self) -> None:
        """
        Create datasets and raw tables that don't exist yet.

        Idempotent. Any API error (auth, network, permissions) propagates so
        the caller can abort before moving data.
        """
        self.ensure_datasets_exist()
        self.ensure_tables_exist()

    def ensure_datasets_exist(self) -> None:
        for dataset_name in schemas.DATASETS:
            dataset_id = f"{self.project_id}.{dataset_name}"
            try:
                self.client.get_dataset(dataset_id)
                logger.debug(f"Dataset already exists: {dataset_name}")
            except NotFound:
                dataset = bigquery.Dataset(dataset_id)
                dataset.location = schemas.DATASET_LOCATION
                self.client.create_dataset(dataset)
                logger.info(f"Created dataset: {dataset_name}")

    def ensure_tables_exist(self) -> None:
        for table_name in schemas.RAW_TABLES:
            table_id = self._table_id(schemas.RAW_DATASET, table_name)
            try:
                self.client.get_table(table_id)
                logger.debug(f"Table already exists: {schemas.RAW_DATASET}.{table_name}")
            except NotFound:
                self.client.create_table(schemas.build_table(self.project_id, table_name))
                logger.info(f"Created table: {schemas.RAW_DATASET}.{table_name}")

    def find_missing_infrastructure(self) -> List[str]:
        """
        List datasets and tables that do not exist yet (for setup verification).

        Returns:
            Names like "devpulse_mart" or "devpulse_raw.raw_commits"; empty if complete
        """
        missing = []
        for dataset_name in schemas.DATASETS:
            try:
                self.client.get_dataset(f"{self.project_id}.{dataset_name}")
            except NotFound:
                missing.append(dataset_name)

        for table_name in schemas.RAW_TABLES:
            try:
                self.client.get_table(self._table_id(schemas.RAW_DATASET, table_name))
            except NotFound:
                missing.append(f"{schemas.RAW_DATASET}.{table_name}")

        return missing

    # ------------------------------------------------------------------
    # Generic row insertion
    # ------------------------------------------------------------------

    def insert_rows(
        self,
        dataset_name: str,
        table_name: str,
        rows: List[Dict[str, Any]],
    ) -> InsertResult:
        """
        Stream rows into a table in a single insert call.

        Each row gets an ingestion_timestamp. Rows rejected by BigQuery are
        reported in the result; only a failure of the whole call raises.

        Args:
            dataset_name: Target dataset
            table_name: Target table
            rows: Row dicts keyed by column name

        Returns:
            InsertResult with attempted rows, accepted rows and per-row errors
        """
        if not rows:
            logger.debug(f"No rows to insert into {dataset_name}.{table_name}")
            return InsertResult()

        now = datetime.now(timezone.utc).isoformat()
        stamped = [{**row, schemas.PARTITION_FIELD: now} for row in rows]

        insert_errors = self.client.insert_rows_json(
            self._table_id(dataset_name, table_name), stamped
        )

        errors: List[RowError] = []
        failed_rows = set()
        for entry in insert_errors or []:
            row_index = entry.get("index", -1)
            failed_rows.add(row_index)
            for error in entry.get("errors", []):
                message = error.get("message", "unknown error")
                errors.append(RowError(row_index=row_index, message=message))
                logger.error(
                    f"Insert error in {dataset_name}.{table_name} row {row_index}: "
                    f"{message} (reason: {error.get('reason')})"
                )

        successful_rows = len(rows) - len(failed_rows)
        logger.info(
            f"Inserted {successful_rows}/{len(rows)} rows into "
            f"{dataset_name}.{table_name} ({len(errors)} errors)"
        )

        return InsertResult(
            total_rows=len(rows),
            successful_rows=successful_rows,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Entity loaders
    # ------------------------------------------------------------------

    def load_repositories(self, repositories: List[Repository]) -> InsertResult:
        rows = [
            {
                "id": repo.id,
                "name": repo.name,
                "full_name": repo.full_name,
                "owner_login": repo.owner.login if repo.owner else None,
                "language": repo.language,
                "created_at": repo.created_at,
                "updated_at": repo.updated_at,
                "visibility": repo.visibility,
                "fork": repo.fork,
                "stargazers_count": repo.stargazers_count,
            }
            for repo in repositories
        ]
        return self.insert_rows(schemas.RAW_DATASET, schemas.TABLE_RAW_REPOSITORIES, rows)

    def load_commits(self, repo_full_name: str, commits: List[Commit]) -> InsertResult:
        rows = []
        for commit in commits:
            row: Dict[str, Any] = {"sha": commit.sha, "repo_full_name": repo_full_name}
            if commit.commit is not None:
                row["message"] = commit.commit.message
                if commit.commit.author is not None:
                    row["author_name"] = commit.commit.author.name
                    row["author_email"] = commit.commit.author.email
                    row["author_date"] = commit.commit.author.date
            if commit.stats is not None:
                row["additions"] = commit.stats.additions
                row["deletions"] = commit.stats.deletions
                row["changed_files"] = commit.stats.total
            rows.append(row)
        return self.insert_rows(schemas.RAW_DATASET, schemas.TABLE_RAW_COMMITS, rows)

    def load_pull_requests(self, repo_full_name: str, pull_requests: List[PullRequest]) -> InsertResult:
        rows = [
            {
                "number": pr.number,
                "repo_full_name": repo_full_name,
                "title": pr.title,
                "state": pr.state,
                "user_login": pr.user.login if pr.user else None,
                "created_at": pr.created_at,
                "updated_at": pr.updated_at,
                "merged_at": pr.merged_at,
                "merge_commit_sha": pr.merge_commit_sha,
            }
            for pr in pull_requests
        ]
        return self.insert_rows(schemas.RAW_DATASET, schemas.TABLE_RAW_PULL_REQUESTS, rows)

    def load_reviews(self, repo_full_name: str, pr_number: int, reviews: List[Review]) -> InsertResult:
        rows = [
            {
                "id": review.id,
                "repo_full_name": repo_full_name,
                "pr_number": pr_number,
                "user_login": review.user.login if review.user else None,
                "state": review.state,
                "submitted_at": review.submitted_at,
                "body": review.body,
            }
            for review in reviews
        ]
        return self.insert_rows(schemas.RAW_DATASET, schemas.TABLE_RAW_REVIEWS, rows)

    def load_languages(self, languages: List[Language]) -> InsertResult:
        """Flatten each repo's {language: bytes} map into one row per language."""
        rows = [
            {
                "repo_full_name": language.repo_full_name,
                "language_name": name,
                "byte_count": byte_count,
            }
            for language in languages
            for name, byte_count in language.languages.items()
        ]
        return self.insert_rows(schemas.RAW_DATASET, schemas.TABLE_RAW_LANGUAGES, rows)

    # ------------------------------------------------------------------
    # Extraction watermarks
    # ------------------------------------------------------------------

    def get_last_extraction_timestamp(self, entity_type: str) -> Optional[datetime]:
        """
        Get the last successful extraction timestamp for an entity type.

        Never raises: if the query fails the error is logged and None is
        returned, which makes the caller do a full fetch for that entity.

        Args:
            entity_type: e.g. "commits", "pull_requests"

        Returns:
            Timezone-aware datetime, or None if no watermark is recorded
        """
        query = (
            f"SELECT last_extracted_at FROM `{self._table_id(schemas.RAW_DATASET, schemas.TABLE_EXTRACTION_METADATA)}` "
            f"WHERE entity_type = @entity_type"
        )
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter("entity_type", "STRING", entity_type),
            ]
        )

        try:
            for row in self.client.query(query, job_config=job_config).result():
                if row["last_extracted_at"] is not None:
                    return row["last_extracted_at"]
        except Exception as e:
            logger.error(f"Failed to query extraction metadata for {entity_type}: {e}")

        return None

    def update_last_extraction_timestamp(self, entity_type: str, timestamp: datetime) -> None:
        """
        Upsert the last successful extraction timestamp for an entity type.

        Raises:
            Exception: Any BigQuery error, after logging it
        """
        query = (
            f"MERGE `{self._table_id(schemas.RAW_DATASET, schemas.TABLE_EXTRACTION_METADATA)}` T "
            "USING (SELECT @entity_type AS entity_type, @timestamp AS last_extracted_at, "
            "CURRENT_TIMESTAMP() AS updated_at) S "
            "ON T.entity_type = S.entity_type "
            "WHEN MATCHED THEN UPDATE SET "
            "last_extracted_at = S.last_extracted_at, updated_at = S.updated_at "
            "WHEN NOT MATCHED THEN INSERT (entity_type, last_extracted_at, updated_at) "
            "VALUES (S.entity_type, S.last_extracted_at, S.updated_at)"
        )
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter("entity_type", "STRING", entity_type),
                bigquery.ScalarQueryParameter("timestamp", "TIMESTAMP", timestamp),
            ]
        )

        try:
            self.client.query(query, job_config=job_config).result()
            logger.info(f"Updated extraction metadata for {entity_type}: {timestamp.isoformat()}")
        except Exception as e:
            logger.error(f"Failed to update extraction metadata for {entity_type}: {e}")
            raise

    def _table_id(self, dataset_name: str, table_name: str) -> str:
        return f"{self.project_id}.{dataset_name}.{table_name}"
