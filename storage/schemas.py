"""
BigQuery dataset and table definitions for the raw layer.

Every raw table is partitioned by ingestion_timestamp (DAY) and clustered on
the columns downstream models filter by. The extraction metadata table holds
one watermark row per entity type and is not partitioned.
"""

from typing import NamedTuple, Optional
from google.cloud import bigquery

RAW_DATASET = "devpulse_raw"
STAGING_DATASET = "devpulse_staging"
MART_DATASET = "devpulse_mart"
DATASETS = (RAW_DATASET, STAGING_DATASET, MART_DATASET)
DATASET_LOCATION = "US"

TABLE_RAW_REPOSITORIES = "raw_repositories"
TABLE_RAW_COMMITS = "raw_commits"
TABLE_RAW_PULL_REQUESTS = "raw_pull_requests"
TABLE_RAW_REVIEWS = "raw_reviews"
TABLE_RAW_LANGUAGES = "raw_languages"
TABLE_EXTRACTION_METADATA = "_extraction_metadata"

PARTITION_FIELD = "ingestion_timestamp"


class TableSpec(NamedTuple):
    schema: list[bigquery.SchemaField]
    cluster_fields: Optional[list[str]]
    partitioned: bool = True


def _required(name: str, field_type: str) -> bigquery.SchemaField:
    return bigquery.SchemaField(name, field_type, mode="REQUIRED")


def _ingestion_timestamp() -> bigquery.SchemaField:
    return _required(PARTITION_FIELD, "TIMESTAMP")


RAW_TABLES: dict[str, TableSpec] = {
    TABLE_RAW_COMMITS: TableSpec(
        schema=[
            _required("sha", "STRING"),
            bigquery.SchemaField("repo_full_name", "STRING"),
            bigquery.SchemaField("author_name", "STRING"),
            bigquery.SchemaField("author_email", "STRING"),
            bigquery.SchemaField("author_date", "TIMESTAMP"),
            bigquery.SchemaField("message", "STRING"),
            bigquery.SchemaField("additions", "INT64"),
            bigquery.SchemaField("deletions", "INT64"),
            bigquery.SchemaField("changed_files", "INT64"),
            _ingestion_timestamp(),
        ],
        cluster_fields=["repo_full_name"],
    ),
    TABLE_RAW_PULL_REQUESTS: TableSpec(
        schema=[
            _required("number", "INT64"),
            bigquery.SchemaField("repo_full_name", "STRING"),
            bigquery.SchemaField("title", "STRING"),
            bigquery.SchemaField("state", "STRING"),
            bigquery.SchemaField("user_login", "STRING"),
            bigquery.SchemaField("created_at", "TIMESTAMP"),
            bigquery.SchemaField("updated_at", "TIMESTAMP"),
            bigquery.SchemaField("merged_at", "TIMESTAMP"),
            bigquery.SchemaField("merge_commit_sha", "STRING"),
            _ingestion_timestamp(),
        ],
        cluster_fields=["repo_full_name", "state"],
    ),
    TABLE_RAW_REVIEWS: TableSpec(
        schema=[
            _required("id", "INT64"),
            bigquery.SchemaField("repo_full_name", "STRING"),
            bigquery.SchemaField("pr_number", "INT64"),
            bigquery.SchemaField("user_login", "STRING"),
            bigquery.SchemaField("state", "STRING"),
            bigquery.SchemaField("submitted_at", "TIMESTAMP"),
            bigquery.SchemaField("body", "STRING"),
            _ingestion_timestamp(),
        ],
        cluster_fields=["repo_full_name"],
    ),
    TABLE_RAW_REPOSITORIES: TableSpec(
        schema=[
            _required("id", "INT64"),
            bigquery.SchemaField("name", "STRING"),
            bigquery.SchemaField("full_name", "STRING"),
            bigquery.SchemaField("owner_login", "STRING"),
            bigquery.SchemaField("language", "STRING"),
            bigquery.SchemaField("created_at", "TIMESTAMP"),
            bigquery.SchemaField("updated_at", "TIMESTAMP"),
            bigquery.SchemaField("visibility", "STRING"),
            bigquery.SchemaField("fork", "BOOL"),
            bigquery.SchemaField("stargazers_count", "INT64"),
            _ingestion_timestamp(),
        ],
        cluster_fields=["language"],
    ),
    TABLE_RAW_LANGUAGES: TableSpec(
        schema=[
            bigquery.SchemaField("repo_full_name", "STRING"),
            bigquery.SchemaField("language_name", "STRING"),
            bigquery.SchemaField("byte_count", "INT64"),
            _ingestion_timestamp(),
        ],
        cluster_fields=["repo_full_name"],
    ),
    TABLE_EXTRACTION_METADATA: TableSpec(
        schema=[
            _required("entity_type", "STRING"),
            _required("last_extracted_at", "TIMESTAMP"),
            bigquery.SchemaField("updated_at", "TIMESTAMP"),
        ],
        cluster_fields=None,
        partitioned=False,
    ),
}


def build_table(project_id: str, table_name: str) -> bigquery.Table:
    """Build the Table object (schema, partitioning, clustering) for a raw table."""
    spec = RAW_TABLES[table_name]
    table = bigquery.Table(f"{project_id}.{RAW_DATASET}.{table_name}", schema=spec.schema)

    if spec.partitioned:
        table.time_partitioning = bigquery.TimePartitioning(
            type_=bigquery.TimePartitioningType.DAY,
            field=PARTITION_FIELD,
        )
    if spec.cluster_fields:
        table.clustering_fields = spec.cluster_fields

    return table
