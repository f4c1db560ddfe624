"""
Pytest configuration and fixtures for sheetload tests

This module provides shared fixtures for unit and integration tests.
"""
import uuid
from collections.abc import Generator

import pytest

from sheetload.core.models import Dataset
from sheetload.notify import NotificationSink
from sheetload.warehouse import InMemoryDestination


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker or a JVM"
    )


# =======================
# DATA FIXTURES
# =======================

@pytest.fixture
def people_dataset() -> Dataset:
    """Two rows: one clean, one with a blank name and a negative age"""
    return Dataset.from_records(
        [
            {"name": "Alice", "age": 30},
            {"name": "", "age": -5},
        ],
        source="memory://people",
    )


@pytest.fixture
def people_csv(tmp_path):
    """CSV file with three rows, one of them invalid"""
    path = tmp_path / "people.csv"
    path.write_text(
        "name,age,email\n"
        "Alice,30,alice@example.com\n"
        ",-5,nobody@example.com\n"
        "Bob,41,bob@example.com\n"
    )
    return path


@pytest.fixture
def rules_file(tmp_path):
    """YAML rule file with non_empty(name) and non_negative(age)"""
    path = tmp_path / "rules.yaml"
    path.write_text(
        "rules:\n"
        "  name:\n"
        "    - type: required_field\n"
        "      name: non_empty\n"
        "  age:\n"
        "    - type: range\n"
        "      name: non_negative\n"
        "      params:\n"
        "        min: 0\n"
    )
    return path


@pytest.fixture
def memory_destination() -> InMemoryDestination:
    """Empty in-memory table with a unique name (write locks are per name)"""
    return InMemoryDestination(name=f"memory.{uuid.uuid4().hex[:8]}")


# =======================
# NOTIFICATION FIXTURES
# =======================

class RecordingSink(NotificationSink):
    """Keeps every report it receives"""

    name = "recording"

    def __init__(self, only_on_rejections: bool = False):
        super().__init__(only_on_rejections)
        self.sent = []

    def send(self, report, run_id):
        self.sent.append((report, run_id))


class FailingSink(NotificationSink):
    """Raises on every delivery"""

    name = "failing"

    def send(self, report, run_id):
        raise RuntimeError("channel is down")


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session():
    """
    Local Spark session; tests using it are skipped without pyspark or a JVM

    Yields:
        SparkSession configured for local testing
    """
    pytest.importorskip("pyspark")
    from pyspark.sql import SparkSession

    try:
        spark = (
            SparkSession.builder
            .appName("sheetload-test")
            .master("local[1]")
            .config("spark.sql.shuffle.partitions", "1")
            .config("spark.ui.enabled", "false")
            .getOrCreate()
        )
    except Exception as e:
        pytest.skip(f"Spark is not available: {e}")

    spark.sparkContext.setLogLevel("WARN")
    yield spark
    spark.stop()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator:
    """
    Start PostgreSQL container for integration tests; skipped without Docker

    Yields:
        PostgresContainer instance
    """
    postgres_module = pytest.importorskip("testcontainers.postgres")

    try:
        container = postgres_module.PostgresContainer(
            image="postgres:16-alpine",
            username="test_sheetload",
            password="test_password",
            dbname="test_warehouse",
        )
        container.start()
    except Exception as e:
        pytest.skip(f"Docker is not available: {e}")

    try:
        yield container
    finally:
        container.stop()


@pytest.fixture
def pg_pool(postgres_container):
    """Open connection pool against the test container"""
    from sheetload.warehouse.connection import DatabaseConnectionPool

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_warehouse",
        user="test_sheetload",
        password="test_password",
    )
    pool.open()
    yield pool
    pool.close()
