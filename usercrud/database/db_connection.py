"""
PostgreSQL connection helper.

Provides the Database handle that is opened once at startup and handed to
the Flask app, plus get_db() for use by the route handlers.
"""

import os
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from flask import current_app
from psycopg2.extensions import connection as Connection
from psycopg2.extras import DictCursor
from psycopg2.pool import ThreadedConnectionPool

# Pool bounds; one connection per concurrent request
MIN_CONNECTIONS = 1
MAX_CONNECTIONS = 10


def load_db_settings() -> Dict[str, Any]:
    """
    Read connection parameters from the DB_* environment variables.

    Returns:
        dict: Keyword arguments accepted by psycopg2.connect().
    """
    return {
        "host": os.getenv("DB_HOST"),
        "port": os.getenv("DB_PORT"),
        "user": os.getenv("DB_USER"),
        "password": os.getenv("DB_PASSWORD"),
        "dbname": os.getenv("DB_NAME"),
        "sslmode": "disable",
    }


class Database:
    """
    Process-wide persistence handle backed by a thread-safe connection pool.

    Usage:
        with db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(...)
    """

    def __init__(self, pool: ThreadedConnectionPool, max_connections: int = MAX_CONNECTIONS) -> None:
        self._pool = pool
        # getconn() raises PoolError when exhausted; borrowers wait here instead
        self._slots = threading.BoundedSemaphore(max_connections)

    @classmethod
    def connect(cls, settings: Optional[Dict[str, Any]] = None) -> "Database":
        """
        Open the pool. At least one connection is established immediately, so
        an unreachable database fails here rather than on the first request.

        Raises:
            psycopg2.Error: If the connection cannot be established.
        """
        settings = settings if settings is not None else load_db_settings()
        pool = ThreadedConnectionPool(
            MIN_CONNECTIONS,
            MAX_CONNECTIONS,
            cursor_factory=DictCursor,
            **settings,
        )
        logging.info("Successfully connected to the database!")
        return cls(pool)

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """
        Borrow a pooled connection for one transaction.

        Blocks while every connection is in use. Commits when the block exits
        normally, rolls back and re-raises when it raises. The connection
        always goes back to the pool; closed connections are discarded
        instead of reused.
        """
        with self._slots:
            conn = self._pool.getconn()
            try:
                yield conn
                conn.commit()
            except Exception:
                if not conn.closed:
                    conn.rollback()
                raise
            finally:
                self._pool.putconn(conn, close=bool(conn.closed))

    def close(self) -> None:
        self._pool.closeall()


def get_db() -> Database:
    """
    Return the Database registered on the current Flask app by create_app().
    """
    return current_app.extensions["db"]
