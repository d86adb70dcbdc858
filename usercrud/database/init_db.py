"""
Schema sync for the users and registrations tables.

Tables are created if absent; there is no migration history. Run directly to
create the tables and check that they exist:

    python -m usercrud.database.init_db
"""

import logging
import os
import sys
from typing import List

import psycopg2
from dotenv import load_dotenv

from usercrud.database.db_connection import Database

ENV_FILE = ".env"
TABLES = ["users", "registrations"]

# registrations.password is UNIQUE to stay compatible with existing databases
SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id BIGSERIAL PRIMARY KEY,
        name TEXT,
        email TEXT UNIQUE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS registrations (
        id BIGSERIAL PRIMARY KEY,
        email TEXT UNIQUE,
        password TEXT UNIQUE
    );
    """,
]


def init_db(db: Database) -> None:
    """
    Create the users and registrations tables if they don't exist yet.
    Call this once at startup, before serving requests.

    Raises:
        psycopg2.Error: If any statement fails; nothing is committed.
    """
    with db.connection() as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA:
                cur.execute(statement)
    logging.info(f"Schema ready: {', '.join(TABLES)}")


def missing_tables(db: Database) -> List[str]:
    """
    Return the names of expected tables that are not present.
    """
    missing = []
    with db.connection() as conn:
        with conn.cursor() as cur:
            for table in TABLES:
                cur.execute("SELECT to_regclass(%s);", (table,))
                if cur.fetchone()[0] is None:
                    missing.append(table)
    return missing


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")

    if not os.path.isfile(ENV_FILE):
        logging.critical("Error loading .env file")
        return 1
    load_dotenv(ENV_FILE)

    try:
        db = Database.connect()
    except psycopg2.Error as e:
        logging.critical(f"Failed to connect to the database: {e}")
        return 1

    try:
        init_db(db)
        missing = missing_tables(db)
    except psycopg2.Error as e:
        logging.error(f"Schema sync failed: {e}")
        return 1
    finally:
        db.close()

    for table in TABLES:
        print(f" - {table}: {'MISSING' if table in missing else 'Found'}")

    return 1 if missing else 0


if __name__ == "__main__":
    sys.exit(main())
