"""
PostgreSQL connection pool management using psycopg3

Connection settings come from constructor arguments, falling back to the
DB_HOST, DB_PORT, DB_NAME, DB_USER and DB_PASSWORD environment variables.
Rows are returned as dictionaries.
"""
import os
import time
from contextlib import contextmanager

from psycopg import OperationalError
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from sheetload.core.errors import DestinationUnavailable
from sheetload.observability.logger import get_logger

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    Pool of psycopg connections to the warehouse database.

    The pool is created closed; call ``open()`` (or use it as a context
    manager) before borrowing connections.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        min_size: int = 1,
        max_size: int = 5,
        timeout: float = 30.0,
    ) -> None:
        """
        Args:
            host: Database host (DB_HOST, default localhost)
            port: Database port (DB_PORT, default 5432)
            database: Database name (DB_NAME, default warehouse)
            user: Database user (DB_USER, default sheetload)
            password: Database password (DB_PASSWORD, required)
            min_size: Connections kept open
            max_size: Upper bound on open connections
            timeout: Seconds to wait for a connection

        Raises:
            ValueError: If no password is configured
        """
        self.host = host or os.getenv("DB_HOST", "localhost")
        self.port = port or int(os.getenv("DB_PORT", "5432"))
        self.database = database or os.getenv("DB_NAME", "warehouse")
        self.user = user or os.getenv("DB_USER", "sheetload")
        password = password or os.getenv("DB_PASSWORD")
        if not password:
            raise ValueError("No database password: set DB_PASSWORD or pass password=")

        self.min_size = min_size
        self.max_size = max_size
        self.timeout = timeout
        self.conninfo = make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=password,
            connect_timeout=int(self.timeout),
        )
        self._pool: ConnectionPool | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}/{self.database}"

    def open(self, max_retries: int = 3, retry_delay: float = 2.0) -> None:
        """
        Open the pool, retrying while the server is not reachable.

        Raises:
            DestinationUnavailable: If every attempt fails
        """
        if self._pool is not None:
            return

        pool = ConnectionPool(
            conninfo=self.conninfo,
            min_size=self.min_size,
            max_size=self.max_size,
            timeout=self.timeout,
            kwargs={"row_factory": dict_row},
            open=False,
        )

        attempt = 0
        while True:
            attempt += 1
            try:
                pool.open(wait=True, timeout=self.timeout)
                break
            except OperationalError as e:
                logger.warning(
                    "Database connection attempt failed",
                    extra={"attempt": attempt, "max_retries": max_retries, "address": self.address},
                )
                if attempt >= max_retries:
                    pool.close()
                    raise DestinationUnavailable(
                        f"cannot connect after {max_retries} attempts: {e}", self.address
                    ) from e
                time.sleep(retry_delay)

        self._pool = pool
        logger.debug("Connection pool open", extra={"address": self.address, "max_size": self.max_size})

    def close(self) -> None:
        if self._pool is not None:
            self._pool.close()
            self._pool = None

    @contextmanager
    def get_connection(self):
        """
        Borrow a connection; it is committed (or rolled back on error) on return.

        Raises:
            RuntimeError: If the pool has not been opened
        """
        if self._pool is None:
            raise RuntimeError("Connection pool is not open; call open() first")
        with self._pool.connection() as conn:
            yield conn

    @contextmanager
    def get_cursor(self):
        with self.get_connection() as conn, conn.cursor() as cur:
            yield cur

    def execute_query(self, query, params: tuple | None = None) -> list[dict]:
        """Run a SELECT and return every row."""
        with self.get_cursor() as cur:
            cur.execute(query, params)
            return cur.fetchall()

    def execute_command(self, command, params: tuple | None = None) -> int:
        """Run a statement that returns no rows; returns the affected row count."""
        with self.get_cursor() as cur:
            cur.execute(command, params)
            return cur.rowcount

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
