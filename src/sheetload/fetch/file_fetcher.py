"""
Local CSV file fetcher.
"""

from pathlib import Path
from urllib.parse import unquote, urlparse

from sheetload.core.errors import SourceUnavailable
from sheetload.core.models import Dataset

from .base import Fetcher
from .csv_parser import decode_bytes, parse_csv


def locator_to_path(locator: str) -> Path:
    """Accept a plain path or a file:// URL."""
    if locator.startswith("file://"):
        return Path(unquote(urlparse(locator).path))
    return Path(locator)


class FileFetcher(Fetcher):
    """
    Reads a CSV file from the local filesystem.
    """

    name = "file"

    def __init__(self, encoding: str = "utf-8-sig", delimiter: str = ","):
        self.encoding = encoding
        self.delimiter = delimiter

    def fetch(self, locator: str) -> Dataset:
        path = locator_to_path(locator)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise SourceUnavailable(f"cannot read {path}: {e.strerror or e}", locator) from e

        text = decode_bytes(content, locator, self.encoding)
        return parse_csv(text, locator, delimiter=self.delimiter)
