#!/usr/bin/env python3
"""
Seed the configured database with the demo user and the sample perfume catalogue.
Rows that already exist (same email / same name+brand) are left alone.

Usage: DATABASE_URL=postgresql://... python scripts/seed_db.py [--create-tables]
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add backend directory to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from rich.console import Console
from rich.table import Table

from weatherscent.core.config import settings
from weatherscent.core.logging import configure_logging
from weatherscent.storage import SqlStorage, StorageError

logger = logging.getLogger("seed_db")
console = Console()


async def seed(create_tables: bool) -> int:
    if not settings.database_url:
        logger.error("DATABASE_URL is required")
        return 1

    storage = SqlStorage.from_url(settings.database_url, echo=settings.db_echo)
    try:
        if create_tables:
            await storage.create_schema()
            logger.info("Tables created")

        created = await storage.seed_sample_data()
        table = Table(title="Seeding completed")
        table.add_column("Table", style="cyan")
        table.add_column("Rows added", justify="right", style="green")
        table.add_row("users", str(created["users"]))
        table.add_row("perfumes", str(created["perfumes"]))
        console.print(table)
        return 0
    except StorageError as e:
        logger.error(f"Seeding failed: {e}")
        return 1
    finally:
        await storage.close()


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables before seeding (instead of running alembic upgrade head)",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level)
    sys.exit(asyncio.run(seed(args.create_tables)))


if __name__ == "__main__":
    main()
