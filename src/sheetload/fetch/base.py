"""
Fetcher interface.
"""

from abc import ABC, abstractmethod

from sheetload.core.models import Dataset


class Fetcher(ABC):
    """
    Retrieves one tabular resource and returns it as a Dataset.

    Implementations are read-only and translate their library errors into
    SourceUnavailable (retrieval failed) or MalformedSource (parsing failed).
    """

    name: str = "fetcher"

    @abstractmethod
    def fetch(self, locator: str) -> Dataset:
        """
        Fetch the resource identified by ``locator``.

        Raises:
            SourceUnavailable: If the resource cannot be retrieved
            MalformedSource: If the resource cannot be parsed into consistent rows
        """
