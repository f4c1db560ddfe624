"""
Fetcher selection by reader name and locator scheme.
"""

from urllib.parse import urlparse

from sheetload.core.models import PipelineConfig

from .base import Fetcher
from .file_fetcher import FileFetcher
from .http_fetcher import HttpFetcher


def create_fetcher(config: PipelineConfig, spark=None) -> Fetcher:
    """
    Build the fetcher a pipeline configuration asks for.

    With reader "auto", http(s) locators use HttpFetcher and everything else
    is read as a local CSV file. The Spark reader is only used when asked for
    explicitly, and imports pyspark lazily.

    Args:
        config: Pipeline configuration
        spark: Spark session for the spark reader (created when omitted)

    Raises:
        ValueError: If the reader does not match the locator
    """
    reader = config.reader
    scheme = urlparse(config.locator).scheme.lower()

    if reader == "auto":
        reader = "http" if scheme in ("http", "https") else "file"

    if reader == "http":
        if scheme not in ("http", "https"):
            raise ValueError(f"http reader needs an http(s) locator, got '{config.locator}'")
        return HttpFetcher(timeout=config.fetch_timeout)

    if reader == "file":
        return FileFetcher()

    from .spark_fetcher import SparkFetcher, create_spark_session

    return SparkFetcher(spark or create_spark_session(f"sheetload-{config.name}"), file_format=config.file_format)
