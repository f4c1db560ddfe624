"""
Destination schema compatibility checks and column type inference.
"""

from collections.abc import Iterable, Sequence

from sheetload.core.errors import SchemaMismatch
from sheetload.core.models import Scalar, WriteMode

SNAPSHOT_COLUMN = "captured_at"


def check_compatible(
    existing: Sequence[str] | None,
    incoming: Sequence[str],
    mode: WriteMode,
    target: str,
) -> list[str]:
    """
    Check incoming columns against an existing destination schema.

    REPLACE needs exactly the existing column set. APPEND_SNAPSHOT needs every
    existing column (plus the snapshot column) and may add new ones.

    Args:
        existing: Destination columns, or None if the table does not exist yet
        incoming: Columns of the rows being written
        mode: Write mode
        target: Destination name for error messages

    Returns:
        Columns to add to the destination, in incoming order

    Raises:
        SchemaMismatch: If the column sets are incompatible
    """
    if mode == WriteMode.APPEND_SNAPSHOT and SNAPSHOT_COLUMN in incoming:
        raise SchemaMismatch(
            f"column '{SNAPSHOT_COLUMN}' is reserved for snapshot timestamps",
            target,
            unexpected=[SNAPSHOT_COLUMN],
        )

    if existing is None:
        return []

    existing_set = set(existing)
    incoming_set = set(incoming)

    if mode == WriteMode.REPLACE:
        missing = [name for name in existing if name not in incoming_set]
        unexpected = [name for name in incoming if name not in existing_set]
        if missing or unexpected:
            raise SchemaMismatch(
                f"REPLACE needs the existing column set; missing {missing}, unexpected {unexpected}",
                target,
                missing=missing,
                unexpected=unexpected,
            )
        return []

    if SNAPSHOT_COLUMN not in existing_set:
        raise SchemaMismatch(
            f"existing table has no '{SNAPSHOT_COLUMN}' column and cannot hold snapshots",
            target,
            missing=[SNAPSHOT_COLUMN],
        )

    # Appends may widen the schema but never narrow it
    missing = [name for name in existing if name != SNAPSHOT_COLUMN and name not in incoming_set]
    if missing:
        raise SchemaMismatch(
            f"rows are missing existing columns {missing}",
            target,
            missing=missing,
        )

    return [name for name in incoming if name not in existing_set]


def infer_sql_type(values: Iterable[Scalar]) -> str:
    """
    Pick a PostgreSQL column type that holds every non-null value.

    Mixed int/float widens to DOUBLE PRECISION; any other mix is TEXT.
    """
    kinds = set()
    for value in values:
        if value is None:
            continue
        if isinstance(value, bool):
            kinds.add("bool")
        elif isinstance(value, int):
            kinds.add("int")
        elif isinstance(value, float):
            kinds.add("float")
        else:
            kinds.add("text")

    if kinds == {"bool"}:
        return "BOOLEAN"
    if kinds == {"int"}:
        return "BIGINT"
    if kinds and kinds <= {"int", "float"}:
        return "DOUBLE PRECISION"
    return "TEXT"
