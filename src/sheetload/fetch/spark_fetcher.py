"""
Spark-backed fetcher for data-lake files (CSV, JSON, Parquet).

Rows are collected to the driver, so this is meant for sheet-sized
extracts that happen to live on Spark-readable storage.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from py4j.protocol import Py4JJavaError
from pyspark.errors import AnalysisException, PySparkException
from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType

from sheetload.core.errors import MalformedSource, SourceUnavailable
from sheetload.core.models import Dataset, Scalar

from .base import Fetcher


def create_spark_session(app_name: str = "sheetload") -> SparkSession:
    """
    Create (or reuse) a local Spark session.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    return SparkSession.builder \
        .appName(app_name) \
        .master("local[*]") \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.ui.enabled", "false") \
        .getOrCreate()


def to_scalar(value: Any) -> Scalar:
    """Convert a Spark row value into a Dataset scalar."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class SparkFetcher(Fetcher):
    """
    Reads files with Spark and collects them into a Dataset.

    Malformed records fail the read (FAILFAST) instead of being nulled out.
    """

    name = "spark"

    SUPPORTED_FORMATS = ("csv", "json", "parquet")

    def __init__(
        self,
        spark: SparkSession,
        file_format: str = "csv",
        schema: StructType | None = None,
        delimiter: str = ",",
        infer_schema: bool = True,
    ):
        """
        Initialize Spark fetcher.

        Args:
            spark: Active Spark session
            file_format: csv, json, or parquet
            schema: Optional explicit schema
            delimiter: CSV field delimiter
            infer_schema: Infer CSV column types when no schema is given

        Raises:
            ValueError: If file format is unsupported
        """
        if file_format.lower() not in self.SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported file format: {file_format}")

        self.spark = spark
        self.file_format = file_format.lower()
        self.schema = schema
        self.delimiter = delimiter
        self.infer_schema = infer_schema

    def _read(self, locator: str) -> DataFrame:
        reader = self.spark.read
        if self.schema:
            reader = reader.schema(self.schema)

        if self.file_format == "csv":
            if not self.schema and self.infer_schema:
                reader = reader.option("inferSchema", "true")
            return reader \
                .option("header", "true") \
                .option("delimiter", self.delimiter) \
                .option("mode", "FAILFAST") \
                .csv(locator)
        elif self.file_format == "json":
            return reader.option("mode", "FAILFAST").json(locator)
        return reader.parquet(locator)

    def fetch(self, locator: str) -> Dataset:
        try:
            df = self._read(locator)
        except AnalysisException as e:
            # Missing paths surface at planning time
            raise SourceUnavailable(f"cannot read {locator}: {e}", locator) from e
        except (Py4JJavaError, PySparkException) as e:
            # Schema inference scans the file eagerly
            raise MalformedSource(f"malformed {self.file_format} content: {e}", locator) from e

        columns = tuple(df.columns)
        try:
            rows = df.collect()
        except (Py4JJavaError, PySparkException) as e:
            raise MalformedSource(f"malformed {self.file_format} content: {e}", locator) from e

        return Dataset(
            source=locator,
            columns=columns,
            rows=tuple({name: to_scalar(row[name]) for name in columns} for row in rows),
        )
