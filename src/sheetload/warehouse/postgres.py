"""
PostgreSQL destination.

REPLACE runs DELETE + COPY inside one transaction, so concurrent readers see
the previous contents until commit. APPEND_SNAPSHOT widens the table with
ALTER TABLE ADD COLUMN and COPYs the new snapshot in the same transaction.
Both take a transaction-scoped advisory lock keyed on the table name, which
serializes writers across processes.
"""

from collections.abc import Sequence
from contextlib import contextmanager
from datetime import datetime

import psycopg
from psycopg import sql

from sheetload.core.errors import DestinationUnavailable, SchemaMismatch
from sheetload.core.models import Row, WriteMode
from sheetload.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .destination import Destination
from .schema_mgmt import SNAPSHOT_COLUMN, check_compatible, infer_sql_type

logger = get_logger(__name__)


class PostgresDestination(Destination):
    """
    A PostgreSQL table, optionally schema-qualified ("analytics.people").
    """

    def __init__(self, pool: DatabaseConnectionPool, table: str):
        """
        Initialize Postgres destination.

        Args:
            pool: Open database connection pool
            table: Table name, "table" or "schema.table"
        """
        super().__init__(table)
        self.pool = pool
        parts = table.split(".")
        if len(parts) == 1:
            self.schema_name, self.table_name = "public", parts[0]
        elif len(parts) == 2:
            self.schema_name, self.table_name = parts
        else:
            raise ValueError(f"Invalid table name: {table}")
        self.identifier = sql.Identifier(self.schema_name, self.table_name)

    def get_columns(self) -> list[str] | None:
        try:
            with self.pool.get_cursor() as cur:
                return self._columns(cur)
        except psycopg.OperationalError as e:
            raise DestinationUnavailable(str(e), self.name) from e

    def read(self) -> list[Row]:
        """Return every row of the table (small tables and tests only)."""
        query = sql.SQL("SELECT * FROM {}").format(self.identifier)
        try:
            return self.pool.execute_query(query)
        except psycopg.OperationalError as e:
            raise DestinationUnavailable(str(e), self.name) from e

    def _columns(self, cur: psycopg.Cursor) -> list[str] | None:
        cur.execute(
            """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema = %s AND table_name = %s
            ORDER BY ordinal_position
            """,
            (self.schema_name, self.table_name),
        )
        rows = cur.fetchall()
        if not rows:
            # Zero-column tables still exist; distinguish them from missing ones
            cur.execute("SELECT to_regclass(%s) AS oid", (f'"{self.schema_name}"."{self.table_name}"',))
            found = cur.fetchone()
            return [] if found and found["oid"] is not None else None
        return [row["column_name"] for row in rows]

    def _begin(self, cur: psycopg.Cursor, timeout: float) -> None:
        """Apply the statement timeout and take the table's advisory lock."""
        cur.execute("SELECT set_config('statement_timeout', %s, true)", (f"{int(timeout * 1000)}ms",))
        cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (f"{self.schema_name}.{self.table_name}",))

    def _create_table(self, cur: psycopg.Cursor, columns: Sequence[str], rows: Sequence[Row], snapshot: bool) -> None:
        definitions = [
            sql.SQL("{} {}").format(sql.Identifier(name), sql.SQL(infer_sql_type(row.get(name) for row in rows)))
            for name in columns
        ]
        if snapshot:
            definitions.append(sql.SQL("{} TIMESTAMPTZ NOT NULL").format(sql.Identifier(SNAPSHOT_COLUMN)))
        cur.execute(
            sql.SQL("CREATE TABLE {} ({})").format(self.identifier, sql.SQL(", ").join(definitions))
        )
        logger.info("Created destination table", extra={"destination": self.name, "columns": list(columns)})

    def _copy(self, cur: psycopg.Cursor, columns: Sequence[str], rows: Sequence[tuple]) -> None:
        if not rows:
            return
        statement = sql.SQL("COPY {} ({}) FROM STDIN").format(
            self.identifier,
            sql.SQL(", ").join(sql.Identifier(name) for name in columns),
        )
        with cur.copy(statement) as copy:
            for values in rows:
                copy.write_row(values)

    def replace(self, columns: Sequence[str], rows: Sequence[Row], timeout: float) -> int:
        values = [tuple(row.get(name) for name in columns) for row in rows]
        with self._transaction() as cur:
            self._begin(cur, timeout)
            existing = self._columns(cur)
            check_compatible(existing, columns, WriteMode.REPLACE, self.name)

            if existing is None:
                self._create_table(cur, columns, rows, snapshot=False)
            else:
                cur.execute(sql.SQL("DELETE FROM {}").format(self.identifier))

            self._copy(cur, columns, values)
        return len(rows)

    def append_snapshot(
        self,
        columns: Sequence[str],
        rows: Sequence[Row],
        captured_at: datetime,
        timeout: float,
    ) -> tuple[int, bool]:
        with self._transaction() as cur:
            self._begin(cur, timeout)
            existing = self._columns(cur)
            added = check_compatible(existing, columns, WriteMode.APPEND_SNAPSHOT, self.name)

            if existing is None:
                self._create_table(cur, columns, rows, snapshot=True)
            else:
                cur.execute(
                    sql.SQL("SELECT 1 AS found FROM {} WHERE {} = %s LIMIT 1").format(
                        self.identifier, sql.Identifier(SNAPSHOT_COLUMN)
                    ),
                    (captured_at,),
                )
                if cur.fetchone() is not None:
                    return 0, True

                for name in added:
                    cur.execute(
                        sql.SQL("ALTER TABLE {} ADD COLUMN {} {}").format(
                            self.identifier,
                            sql.Identifier(name),
                            sql.SQL(infer_sql_type(row.get(name) for row in rows)),
                        )
                    )
                if added:
                    logger.info("Widened destination schema", extra={"destination": self.name, "added": added})

            target = [*columns, SNAPSHOT_COLUMN]
            self._copy(cur, target, [(*(row.get(name) for name in columns), captured_at) for row in rows])
        return len(rows), False

    @contextmanager
    def _transaction(self):
        """
        Yield a cursor inside one transaction, translating psycopg errors.

        Any error rolls the whole transaction back, so a failed or timed-out
        REPLACE leaves the previous contents in place.
        """
        try:
            with self.pool.get_connection() as conn:
                with conn.transaction():
                    with conn.cursor() as cur:
                        yield cur
        except psycopg.errors.QueryCanceled as e:
            raise DestinationUnavailable("statement timed out", self.name) from e
        except psycopg.OperationalError as e:
            raise DestinationUnavailable(str(e), self.name) from e
        except psycopg.DataError as e:
            raise SchemaMismatch(f"value incompatible with column type: {e}", self.name) from e
