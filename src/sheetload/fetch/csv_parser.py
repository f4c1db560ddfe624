"""
CSV text → Dataset parsing shared by the HTTP and file fetchers.
"""

import csv
import io
import re

from pydantic import ValidationError

from sheetload.core.errors import MalformedSource
from sheetload.core.models import Dataset, Scalar

_INT_RE = re.compile(r"^[+-]?(0|[1-9][0-9]*)$")
_FLOAT_RE = re.compile(r"^[+-]?([0-9]+\.[0-9]*|\.[0-9]+|[0-9]+)([eE][+-]?[0-9]+)?$")


def infer_scalar(text: str) -> Scalar:
    """
    Convert one CSV cell into a scalar.

    Empty cells become None, "true"/"false" become bools, and plain numbers
    become int or float. Numbers with leading zeros ("007") stay strings so
    identifiers and postal codes survive.
    """
    if text == "":
        return None

    lowered = text.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"

    stripped = text.strip()
    if _INT_RE.match(stripped):
        return int(stripped)
    if _FLOAT_RE.match(stripped) and not re.match(r"^[+-]?0[0-9]", stripped):
        return float(stripped)
    return text


def decode_bytes(content: bytes, source: str, encoding: str = "utf-8-sig") -> str:
    """
    Decode raw bytes, stripping a UTF-8 byte order mark.

    Raises:
        MalformedSource: If the bytes are not valid in ``encoding``
    """
    try:
        return content.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise MalformedSource(f"cannot decode content as {encoding}: {e}", source) from e


def parse_csv(
    text: str,
    source: str,
    delimiter: str = ",",
    infer_types: bool = True,
) -> Dataset:
    """
    Parse CSV text with exactly one header row into a Dataset.

    Blank lines are skipped. Every data line must have as many fields as the
    header.

    Args:
        text: CSV content
        source: Locator, used in the dataset and in error messages
        delimiter: Field delimiter
        infer_types: Convert cells with infer_scalar; otherwise keep strings

    Raises:
        MalformedSource: If the header is missing, blank or duplicated, or a
            line is ragged
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff"), newline=""), delimiter=delimiter, strict=True)

    header: list[str] | None = None
    rows = []
    try:
        for values in reader:
            if not values:
                continue

            if header is None:
                header = [name.strip() for name in values]
                _check_header(header, source)
                continue

            if len(values) != len(header):
                raise MalformedSource(
                    f"line {reader.line_num}: expected {len(header)} fields, got {len(values)}",
                    source,
                )

            if infer_types:
                rows.append({name: infer_scalar(value) for name, value in zip(header, values)})
            else:
                rows.append({name: (value if value != "" else None) for name, value in zip(header, values)})
    except csv.Error as e:
        raise MalformedSource(f"line {reader.line_num}: {e}", source) from e

    if header is None:
        raise MalformedSource("resource has no header row", source)

    try:
        return Dataset(source=source, columns=tuple(header), rows=tuple(rows))
    except ValidationError as e:
        raise MalformedSource(str(e), source) from e


def _check_header(header: list[str], source: str) -> None:
    blank = [index for index, name in enumerate(header) if not name]
    if blank:
        raise MalformedSource(f"header has blank column names at positions {blank}", source)

    seen = set()
    duplicates = []
    for name in header:
        if name in seen:
            duplicates.append(name)
        seen.add(name)
    if duplicates:
        raise MalformedSource(f"header has duplicate column names: {duplicates}", source)
