"""
Dataset model: the immutable tabular result of a fetch.
"""

from collections.abc import Iterator, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Union

from pydantic import BaseModel, Field, model_validator

Scalar = Union[str, int, float, bool, None]
Row = dict[str, Scalar]


class Dataset(BaseModel):
    """
    Ordered rows sharing the column set established by the header.

    Attributes:
        source: Locator the rows were fetched from
        columns: Header column names, in source order
        rows: Row mappings (column name -> scalar). The dicts are shared with
            every reader and must not be modified; iter_rows() yields copies.
        fetched_at: When the fetch completed
    """

    source: str
    columns: tuple[str, ...]
    rows: tuple[Row, ...] = ()
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def check_consistent_columns(self) -> "Dataset":
        """Every row must carry exactly the header's columns."""
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"Duplicate column names in header: {list(self.columns)}")

        expected = set(self.columns)
        for index, row in enumerate(self.rows):
            if set(row) != expected:
                raise ValueError(
                    f"Row {index} columns {sorted(row)} do not match header {sorted(expected)}"
                )
        return self

    @classmethod
    def from_records(
        cls,
        records: Sequence[Mapping[str, Any]],
        source: str = "memory",
        columns: Sequence[str] | None = None,
    ) -> "Dataset":
        """
        Build a dataset from row mappings.

        The header is taken from ``columns`` when given, otherwise from the
        first record.
        """
        if columns is None:
            columns = list(records[0].keys()) if records else []
        return cls(
            source=source,
            columns=tuple(columns),
            rows=tuple(dict(record) for record in records),
        )

    def iter_rows(self) -> Iterator[Row]:
        """Yield copies of the rows so consumers cannot mutate the dataset."""
        for row in self.rows:
            yield dict(row)

    def __len__(self) -> int:
        return len(self.rows)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "source": "https://docs.google.com/spreadsheets/d/abc123/export?format=csv",
                "columns": ["name", "age"],
                "rows": [
                    {"name": "Alice", "age": 30},
                    {"name": "", "age": -5},
                ],
            }
        }
