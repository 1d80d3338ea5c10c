#!/usr/bin/env python3
"""
Warehouse setup script for devpulse-extractor.

Creates the BigQuery datasets and raw tables (partitioned and clustered)
that the extractor writes to. The extractor also does this on every run;
this script lets you provision or check the warehouse up front.

Usage:
    python setup/setup_warehouse.py           # Create datasets and tables
    python setup/setup_warehouse.py --verify  # Verify existing datasets and tables
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from storage import schemas
from storage.bigquery_loader import BigQueryLoader
from utils.config_loader import load_config
from utils.logger import setup_logger

logger = logging.getLogger(__name__)


def verify_warehouse(loader: BigQueryLoader) -> bool:
    """Report which datasets and raw tables exist. Returns True if none are missing."""
    try:
        missing = set(loader.find_missing_infrastructure())
    except Exception as e:
        logger.error(f"✗ Warehouse verification failed: {e}")
        return False

    for dataset_name in schemas.DATASETS:
        if dataset_name in missing:
            logger.error(f"✗ Dataset '{dataset_name}' does not exist")
        else:
            logger.info(f"✓ Dataset '{dataset_name}' exists")

    for table_name in schemas.RAW_TABLES:
        qualified = f"{schemas.RAW_DATASET}.{table_name}"
        if qualified in missing:
            logger.error(f"✗ Table '{qualified}' does not exist")
        else:
            logger.info(f"✓ Table '{qualified}' exists")

    return not missing


def create_warehouse(loader: BigQueryLoader) -> bool:
    """Create missing datasets and raw tables."""
    logger.info("\n" + "="*80)
    logger.info("CREATING WAREHOUSE")
    logger.info("="*80 + "\n")

    try:
        loader.ensure_infrastructure_exists()
    except Exception as e:
        logger.error(f"✗ Warehouse creation failed: {e}")
        return False

    logger.info("\n✓ Warehouse datasets and tables are in place")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Set up BigQuery datasets and tables for devpulse-extractor"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify existing datasets and tables without creating"
    )

    args = parser.parse_args(argv)

    config = load_config()
    setup_logger(config.log_level)
    logger.info("✓ Configuration loaded")

    loader = BigQueryLoader(config.credentials.gcp_project_id)

    if args.verify:
        logger.info("\n" + "="*80)
        logger.info("VERIFYING WAREHOUSE")
        logger.info("="*80 + "\n")

        if verify_warehouse(loader):
            logger.info("\n✓ Warehouse verification successful")
            return 0
        logger.error("\n✗ Warehouse verification failed")
        logger.error("Run without --verify to create the missing objects")
        return 1

    if create_warehouse(loader):
        logger.info("\n" + "="*80)
        logger.info("NEXT STEPS")
        logger.info("="*80)
        logger.info("\n1. Verify the warehouse:")
        logger.info("   python setup/setup_warehouse.py --verify")
        logger.info("\n2. Run a full extraction:")
        logger.info("   python main.py --full")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
