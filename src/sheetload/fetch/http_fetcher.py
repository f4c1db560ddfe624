"""
HTTP(S) CSV fetcher.

Spreadsheet "edit" links are rewritten to the CSV export endpoint of the
same sheet before fetching:

    https://docs.google.com/spreadsheets/d/<id>/edit#gid=42
    -> https://docs.google.com/spreadsheets/d/<id>/export?format=csv&gid=42
"""

import re
from urllib.parse import parse_qs, urlparse

import httpx

from sheetload.core.errors import SourceUnavailable
from sheetload.core.models import Dataset
from sheetload.observability.logger import get_logger

from .base import Fetcher
from .csv_parser import decode_bytes, parse_csv

logger = get_logger(__name__)

# Editable links only: /d/<id>, /d/<id>/edit. Published links live under /d/e/<pubid>/
_SHEET_PATH_RE = re.compile(r"^/spreadsheets/d/(?!e(?:/|$))([A-Za-z0-9_-]+)(?:/edit)?/?$")


def export_url(locator: str) -> str:
    """
    Return the CSV export URL for an editable spreadsheet link.

    Published ("/d/e/<pubid>/pub?output=csv"), export, and non-spreadsheet
    URLs are returned unchanged.
    """
    parsed = urlparse(locator)
    if parsed.scheme != "https" or parsed.netloc != "docs.google.com":
        return locator

    match = _SHEET_PATH_RE.match(parsed.path)
    if not match:
        return locator

    gid = parse_qs(parsed.query).get("gid", [None])[0]
    if gid is None:
        gid = parse_qs(parsed.fragment).get("gid", ["0"])[0]

    return f"https://docs.google.com/spreadsheets/d/{match.group(1)}/export?format=csv&gid={gid}"


class HttpFetcher(Fetcher):
    """
    Fetches CSV over HTTP(S) with httpx.
    """

    name = "http"

    def __init__(
        self,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
        encoding: str = "utf-8-sig",
        delimiter: str = ",",
        client: httpx.Client | None = None,
    ):
        """
        Initialize HTTP fetcher.

        Args:
            timeout: Seconds before the request is abandoned
            headers: Extra request headers (e.g., Authorization)
            encoding: Content encoding
            delimiter: CSV field delimiter
            client: Pre-built client (tests pass one with a mock transport)
        """
        self.timeout = timeout
        self.headers = headers or {}
        self.encoding = encoding
        self.delimiter = delimiter
        self.client = client

    def fetch(self, locator: str) -> Dataset:
        url = export_url(locator)
        if url != locator:
            logger.debug("Rewrote spreadsheet link to export URL", extra={"locator": locator, "url": url})

        if self.client is not None:
            response = self._get(self.client, url, locator)
        else:
            with httpx.Client(timeout=self.timeout, headers=self.headers, follow_redirects=True) as client:
                response = self._get(client, url, locator)

        content_type = response.headers.get("content-type", "")
        if "text/html" in content_type:
            # Private sheets redirect to a sign-in page instead of failing
            raise SourceUnavailable("received HTML instead of CSV; resource is not publicly readable", locator)

        text = decode_bytes(response.content, locator, self.encoding)
        return parse_csv(text, locator, delimiter=self.delimiter)

    def _get(self, client: httpx.Client, url: str, locator: str) -> httpx.Response:
        try:
            response = client.get(url, timeout=self.timeout, headers=self.headers, follow_redirects=True)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise SourceUnavailable(f"timed out after {self.timeout}s", locator) from e
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(f"HTTP {e.response.status_code} from {url}", locator) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise SourceUnavailable(f"request failed: {e}", locator) from e
        return response
