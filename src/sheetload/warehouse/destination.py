"""
Destination interface: a table that supports full replacement and appends.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from sheetload.core.models import Row


class Destination(ABC):
    """
    A table-oriented store owned by the target system.

    Implementations check schema compatibility inside the same critical
    section that performs the write, so the check cannot go stale.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def get_columns(self) -> list[str] | None:
        """Return the current column names, or None if the table does not exist."""

    @abstractmethod
    def replace(self, columns: Sequence[str], rows: Sequence[Row], timeout: float) -> int:
        """
        Swap the table contents for ``rows`` atomically.

        Readers observe either the previous contents or the new contents.

        Returns:
            Number of rows written

        Raises:
            DestinationUnavailable: If the store cannot be reached or times out
            SchemaMismatch: If ``columns`` differ from the existing schema
        """

    @abstractmethod
    def append_snapshot(
        self,
        columns: Sequence[str],
        rows: Sequence[Row],
        captured_at: datetime,
        timeout: float,
    ) -> tuple[int, bool]:
        """
        Append ``rows`` tagged with ``captured_at``; existing rows are kept.

        A snapshot whose ``captured_at`` is already present is not written
        again, which makes retries with the same timestamp idempotent.

        Returns:
            (rows written, skipped because the snapshot already exists)

        Raises:
            DestinationUnavailable: If the store cannot be reached or times out
            SchemaMismatch: If existing columns are missing from ``columns``
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
