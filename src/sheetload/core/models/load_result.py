"""
Write modes and the result of a load.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class WriteMode(str, Enum):
    """
    How accepted rows are written to the destination.

    REPLACE: destination contents are swapped for the new rows atomically.
    APPEND_SNAPSHOT: rows are added with a captured_at column; prior rows stay.
    """

    REPLACE = "replace"
    APPEND_SNAPSHOT = "append_snapshot"


class LoadResult(BaseModel):
    """
    Outcome of a successful load.

    Attributes:
        destination: Destination table identifier
        mode: Write mode used
        rows_written: Number of rows written
        captured_at: Snapshot timestamp (APPEND_SNAPSHOT only)
        skipped: True when an identical snapshot was already present
        duration_seconds: Time spent writing
    """

    destination: str
    mode: WriteMode
    rows_written: int = Field(..., ge=0)
    captured_at: datetime | None = None
    skipped: bool = False
    duration_seconds: float = 0.0

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "destination": "analytics.people",
                "mode": "append_snapshot",
                "rows_written": 1,
                "captured_at": "2025-11-17T08:00:00Z",
                "skipped": False,
            }
        }
