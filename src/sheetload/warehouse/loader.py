"""
Loader: writes accepted rows to a destination in a given write mode.

Writes to the same destination name are serialized within the process;
a second writer waits up to the load timeout and is then rejected with
DestinationUnavailable.
"""

import threading
import time
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from sheetload.core.errors import DestinationUnavailable, SchemaMismatch
from sheetload.core.models import LoadResult, Row, WriteMode
from sheetload.observability import metrics
from sheetload.observability.logger import get_logger, log_operation

from .destination import Destination
from .schema_mgmt import SNAPSHOT_COLUMN

logger = get_logger(__name__)

_destination_locks: dict[str, threading.Lock] = {}
_registry_lock = threading.Lock()


def destination_lock(name: str) -> threading.Lock:
    """Return the process-wide write lock for a destination name."""
    with _registry_lock:
        lock = _destination_locks.get(name)
        if lock is None:
            lock = _destination_locks[name] = threading.Lock()
        return lock


class Loader:
    """
    Writes validated rows to a Destination.
    """

    def __init__(self, timeout: float = 60.0):
        """
        Initialize loader.

        Args:
            timeout: Seconds allowed for acquiring the destination and writing
        """
        self.timeout = timeout

    def load(
        self,
        accepted_rows: Iterable[Row],
        destination: Destination,
        mode: WriteMode | str,
        captured_at: datetime | None = None,
        columns: Sequence[str] | None = None,
    ) -> LoadResult:
        """
        Write rows to the destination.

        Args:
            accepted_rows: Rows that passed validation
            destination: Target table
            mode: REPLACE or APPEND_SNAPSHOT
            captured_at: Snapshot timestamp (APPEND_SNAPSHOT); defaults to now.
                Reusing it on retry makes the append idempotent.
            columns: Column set of the rows; needed when there are no rows,
                otherwise taken from the first row

        Returns:
            LoadResult with the count of rows written and the mode used

        Raises:
            DestinationUnavailable: If the destination is busy, unreachable or times out
            SchemaMismatch: If the rows do not fit the destination schema
        """
        mode = WriteMode(mode)
        rows = [dict(row) for row in accepted_rows]
        columns = self._resolve_columns(rows, destination, columns)

        if mode == WriteMode.APPEND_SNAPSHOT and captured_at is None:
            captured_at = datetime.now(timezone.utc)

        lock = destination_lock(destination.name)
        if not lock.acquire(timeout=self.timeout):
            raise DestinationUnavailable(
                f"another run is writing; gave up after {self.timeout}s", destination.name
            )

        skipped = False
        try:
            with log_operation(
                "load", logger=logger, destination=destination.name, mode=mode.value, rows=len(rows)
            ) as op:
                if mode == WriteMode.REPLACE:
                    written = destination.replace(columns, rows, self.timeout)
                else:
                    written, skipped = destination.append_snapshot(columns, rows, captured_at, self.timeout)
        finally:
            lock.release()

        if skipped:
            logger.warning(
                "Snapshot already present; skipped append",
                extra={"destination": destination.name, "captured_at": captured_at.isoformat()},
            )

        metrics.record_load(destination.name, mode.value, written, op.duration)

        return LoadResult(
            destination=destination.name,
            mode=mode,
            rows_written=written,
            captured_at=captured_at if mode == WriteMode.APPEND_SNAPSHOT else None,
            skipped=skipped,
            duration_seconds=op.duration,
        )

    def _resolve_columns(
        self,
        rows: list[Row],
        destination: Destination,
        columns: Sequence[str] | None,
    ) -> list[str]:
        if columns is None:
            if rows:
                columns = list(rows[0])
            else:
                existing = destination.get_columns() or []
                columns = [name for name in existing if name != SNAPSHOT_COLUMN]

        expected = set(columns)
        for index, row in enumerate(rows):
            if set(row) != expected:
                raise SchemaMismatch(
                    f"row {index} columns {sorted(row)} differ from {sorted(expected)}",
                    destination.name,
                )
        return list(columns)


def load(
    accepted_rows: Iterable[Row],
    destination: Destination,
    mode: WriteMode | str,
    captured_at: datetime | None = None,
    columns: Sequence[str] | None = None,
    timeout: float = 60.0,
) -> LoadResult:
    """Write rows with a one-off Loader."""
    return Loader(timeout=timeout).load(accepted_rows, destination, mode, captured_at, columns)
