"""Run the weekly schedule sync - can be run as a cron job."""
import logging
import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlmodel import Session

from db import create_db_and_tables, engine
from sheets import SheetsClient
from sync import weekly_sync

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    create_db_and_tables()

    with Session(engine) as session:
        result = weekly_sync(session, SheetsClient.from_env())

        if result.success:
            logger.info(f"SUCCESS: {result.message}")
            logger.info(f"Entries synced: {result.entries_synced}, weeks deleted: {result.weeks_deleted}")
            sys.exit(0)
        else:
            logger.error(f"ERROR: {result.message}")
            sys.exit(1)
