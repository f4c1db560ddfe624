"""
sheetload - validated ingestion of tabular sources into warehouse tables.

Flow: fetch → validate → notify → load
"""

__version__ = "0.1.0"
