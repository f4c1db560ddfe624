"""
Source fetchers.
"""

from .base import Fetcher
from .csv_parser import infer_scalar, parse_csv
from .factory import create_fetcher
from .file_fetcher import FileFetcher
from .http_fetcher import HttpFetcher, export_url

__all__ = [
    "Fetcher",
    "FileFetcher",
    "HttpFetcher",
    "create_fetcher",
    "export_url",
    "infer_scalar",
    "parse_csv",
]
