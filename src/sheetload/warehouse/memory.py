"""
In-process destination.

Used for dry runs and tests. Writes build a complete new row tuple and
publish it with a single reference swap, so readers never see a partial write.
"""

import threading
from collections.abc import Sequence
from datetime import datetime

from sheetload.core.errors import DestinationUnavailable
from sheetload.core.models import Row, WriteMode

from .destination import Destination
from .schema_mgmt import SNAPSHOT_COLUMN, check_compatible


class InMemoryDestination(Destination):
    """Table held in memory."""

    def __init__(
        self,
        name: str = "memory",
        columns: Sequence[str] | None = None,
        rows: Sequence[Row] = (),
    ):
        super().__init__(name)
        self._columns: list[str] | None = list(columns) if columns is not None else None
        self._rows: tuple[Row, ...] = tuple(dict(row) for row in rows)
        self._write_lock = threading.Lock()

    def get_columns(self) -> list[str] | None:
        return list(self._columns) if self._columns is not None else None

    def read(self) -> list[Row]:
        """Return a copy of the current contents."""
        rows = self._rows
        return [dict(row) for row in rows]

    def __len__(self) -> int:
        return len(self._rows)

    def _acquire(self, timeout: float) -> None:
        if not self._write_lock.acquire(timeout=timeout):
            raise DestinationUnavailable(f"timed out after {timeout}s waiting for write lock", self.name)

    def replace(self, columns: Sequence[str], rows: Sequence[Row], timeout: float) -> int:
        self._acquire(timeout)
        try:
            check_compatible(self._columns, columns, WriteMode.REPLACE, self.name)
            new_rows = tuple({name: row.get(name) for name in columns} for row in rows)
            self._columns = list(columns)
            self._rows = new_rows
        finally:
            self._write_lock.release()
        return len(rows)

    def append_snapshot(
        self,
        columns: Sequence[str],
        rows: Sequence[Row],
        captured_at: datetime,
        timeout: float,
    ) -> tuple[int, bool]:
        self._acquire(timeout)
        try:
            added = check_compatible(self._columns, columns, WriteMode.APPEND_SNAPSHOT, self.name)

            if any(row.get(SNAPSHOT_COLUMN) == captured_at for row in self._rows):
                return 0, True

            if self._columns is None:
                target_columns = [*columns, SNAPSHOT_COLUMN]
                existing_rows: tuple[Row, ...] = ()
            else:
                target_columns = [*self._columns, *added]
                # Widening adds null columns to earlier snapshots
                existing_rows = tuple({**row, **{name: None for name in added}} for row in self._rows)

            appended = tuple(
                {name: (captured_at if name == SNAPSHOT_COLUMN else row.get(name)) for name in target_columns}
                for row in rows
            )
            self._columns = target_columns
            self._rows = existing_rows + appended
        finally:
            self._write_lock.release()
        return len(rows), False
