"""
Warehouse destinations and the loader.
"""

from .destination import Destination
from .loader import Loader, load
from .memory import InMemoryDestination
from .schema_mgmt import SNAPSHOT_COLUMN, check_compatible, infer_sql_type

__all__ = [
    "Destination",
    "InMemoryDestination",
    "Loader",
    "load",
    "SNAPSHOT_COLUMN",
    "check_compatible",
    "infer_sql_type",
]
