#!/usr/bin/env python3
"""
DevPulse Extractor - Main CLI entrypoint

Extracts the authenticated user's GitHub activity (repositories, commits,
pull requests, reviews, languages) and streams it into the BigQuery raw
layer. Incremental runs only keep commits and pull requests newer than the
last successful extraction.

Usage:
    python main.py                      # Incremental extraction (default)
    python main.py --incremental        # Same as above
    python main.py --full               # Ignore watermarks, fetch everything
    python main.py --workers 4          # Process 4 repositories concurrently

Exit code is 0 when every step succeeded, 1 otherwise.
"""

import argparse
import logging
import sys

from fetchers.github import GitHubApiClient
from orchestrator import ExtractionOrchestrator
from storage.bigquery_loader import BigQueryLoader
from utils.config_loader import load_config
from utils.logger import setup_logger

logger = logging.getLogger(__name__)


def run_extraction(
    full_mode: bool = False,
    max_workers: int = 1,
    config=None,
    client: GitHubApiClient = None,
    loader: BigQueryLoader = None,
) -> int:
    """
    Run one extraction and print the summary report.

    Args:
        full_mode: Ignore watermarks and fetch the complete dataset
        max_workers: Repositories processed concurrently
        config: Config object (optional, loaded from environment if not provided)
        client: GitHubApiClient instance (optional, will create if not provided)
        loader: BigQueryLoader instance (optional, will create if not provided)

    Returns:
        int: Process exit code (0 if no step failed, 1 otherwise)
    """
    if client is None or loader is None:
        if config is None:
            config = load_config()
        if client is None:
            client = GitHubApiClient(
                config.credentials.github_token,
                config.credentials.github_username,
            )
        if loader is None:
            loader = BigQueryLoader(config.credentials.gcp_project_id)

    orchestrator = ExtractionOrchestrator(client, loader, max_workers=max_workers)
    summary = orchestrator.run(full_mode=full_mode)

    print(summary.format_report())

    if summary.has_failures:
        logger.error(f"Extraction finished with {summary.failure_count} failed step(s)")
        return 1

    logger.info("✓ Extraction finished successfully")
    return 0


def main():
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="DevPulse Extractor - Load GitHub activity into BigQuery",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Incremental run (default): only new commits / PRs since the last run
  python main.py

  # Full refresh
  python main.py --full

  # Process repositories in parallel
  python main.py --workers 4
        """
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--full",
        action="store_true",
        help="Full extraction: ignore watermarks and fetch all data"
    )
    mode.add_argument(
        "--incremental",
        action="store_true",
        help="Incremental extraction: only data newer than the last run (default)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of repositories to process concurrently (default: 1)"
    )

    args = parser.parse_args()

    if args.workers < 1:
        parser.error("--workers must be at least 1")

    # Exits with code 1 on invalid configuration
    config = load_config()
    setup_logger(config.log_level)

    logger.info("=" * 80)
    logger.info(f"DevPulse Extractor ({'full' if args.full else 'incremental'} mode)")
    logger.info("=" * 80)

    try:
        exit_code = run_extraction(
            full_mode=args.full,
            max_workers=args.workers,
            config=config,
        )
    except Exception as e:
        logger.error(f"Extraction failed: {e}", exc_info=True)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
