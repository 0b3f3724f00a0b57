"""
Database initialization for the archive.

This module handles:
1. Creating the schema tables, indexes and search-text triggers
2. Wiping all submitted data (dev-only clean)
"""

import logging
import sqlite3

from javidan.database import Database, transaction
from javidan.schema import ALL_TABLES, SCHEMA_SQL

logger = logging.getLogger(__name__)


def init_database(conn: sqlite3.Connection):
    """Create all missing tables, indexes and triggers"""
    logger.info("Creating schema tables...")
    conn.executescript(SCHEMA_SQL)

    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
    tables = [row[0] for row in cursor.fetchall()]
    logger.info(f"Database now has {len(tables)} tables: {', '.join(tables)}")


def clean_database(conn: sqlite3.Connection):
    """
    Delete every subject, media, link and audit row and reset the
    auto-increment sequences.
    USE WITH CAUTION - will delete all data!
    """
    logger.warning("Cleaning database: deleting all records, media and links")
    with transaction(conn):
        for table in ALL_TABLES:
            conn.execute(f"DELETE FROM {table}")
        conn.execute(
            f"DELETE FROM sqlite_sequence WHERE name IN ({', '.join('?' for _ in ALL_TABLES)})",
            ALL_TABLES
        )
    logger.info("Database clean complete")


if __name__ == "__main__":
    # Configure logging for CLI usage
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    import sys

    from javidan.config import settings

    database = Database(settings.database_path)
    with database.session() as conn:
        init_database(conn)
        if len(sys.argv) > 1 and sys.argv[1] == "--reset":
            print("WARNING: This will delete ALL submitted data!")
            response = input("Type 'yes' to confirm: ")
            if response.lower() == 'yes':
                clean_database(conn)
            else:
                print("Reset cancelled")
