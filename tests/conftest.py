"""
Pytest configuration and fixtures for booking-pipeline tests

Shared fixtures for unit (in-memory stores), integration (PostgreSQL via
testcontainers, Spark local mode) and E2E tests.
"""
import os

import pytest

from booking_pipeline.batch import BookingPipeline
from booking_pipeline.stores import MemoryStores


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# DATA FIXTURES
# =======================

def booking_row(booking_id: str = "BK1001", **overrides) -> dict:
    """A clean booking row as delivered by the staging layer."""
    row = {
        "booking_id": booking_id,
        "hotel_id": "H042",
        "hotel_city": "new york",
        "customer_id": "C7781",
        "customer_name": "jane doe",
        "customer_email": "Jane.Doe@Example.com",
        "check_in_date": "2026-01-11",
        "check_out_date": "2026-01-14",
        "room_type": "Deluxe",
        "num_guests": "2",
        "total_amount": "100.00",
        "currency": "USD",
        "booking_status": "Confirmed",
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_row():
    """Factory for booking rows: make_row("BK1", total_amount="-5")."""
    return booking_row


@pytest.fixture
def stores() -> MemoryStores:
    """Fresh in-memory raw, curated, tracker and aggregate stores."""
    return MemoryStores()


@pytest.fixture
def pipeline(stores) -> BookingPipeline:
    """Pipeline wired to the in-memory stores with the default ruleset."""
    return BookingPipeline.from_stores(stores)


# =======================
# SPARK FIXTURES
# =======================

@pytest.fixture(scope="session")
def spark_session():
    """
    Create a Spark session for testing with local mode

    Yields:
        SparkSession configured for local testing
    """
    from pyspark.sql import SparkSession

    spark = (
        SparkSession.builder
        .appName("booking-pipeline-test")
        .master("local[2]")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.driver.memory", "1g")
        .config("spark.ui.enabled", "false")
        .config("spark.sql.warehouse.dir", "/tmp/spark-warehouse")
        .getOrCreate()
    )
    spark.sparkContext.setLogLevel("WARN")

    yield spark

    spark.stop()


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container():
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_pipeline",
        password="test_password",
        dbname="test_bookings",
    ) as postgres:
        yield postgres


@pytest.fixture(scope="session")
def pg_pool(postgres_container):
    """
    Open connection pool against the container, with the warehouse schema created

    Yields:
        DatabaseConnectionPool
    """
    from booking_pipeline.warehouse.connection import DatabaseConnectionPool
    from booking_pipeline.warehouse.schema_mgmt import SchemaManager

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_bookings",
        user="test_pipeline",
        password="test_password",
        min_size=1,
        max_size=8,
    )
    pool.open()
    SchemaManager(pool).ensure_schema()

    yield pool

    pool.close()


@pytest.fixture(scope="function")
def pg_stores(pg_pool):
    """
    Postgres stores over an emptied warehouse

    Yields:
        PostgresStores sharing the session pool
    """
    from booking_pipeline.warehouse.schema_mgmt import SchemaManager
    from booking_pipeline.warehouse.stores import PostgresStores

    SchemaManager(pg_pool).truncate_all()
    yield PostgresStores(pg_pool)


# =======================
# FILE FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_data_dir() -> str:
    """
    Get path to test data fixtures directory

    Returns:
        Path to tests/fixtures directory
    """
    return os.path.join(os.path.dirname(__file__), "fixtures")


@pytest.fixture(scope="session")
def dirty_csv_path(test_data_dir) -> str:
    return os.path.join(test_data_dir, "bookings_dirty.csv")


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture(scope="session")
def test_env() -> dict:
    """
    Values of config/test.env, without exporting them to the process environment
    """
    from dotenv import dotenv_values

    env_path = os.path.join(
        os.path.dirname(os.path.dirname(__file__)),
        "config",
        "test.env"
    )

    return dotenv_values(env_path)


@pytest.fixture(scope="session")
def dirty_rows(dirty_csv_path) -> list[dict]:
    """Rows of the dirty CSV fixture as text, read without Spark."""
    import csv

    with open(dirty_csv_path, newline="") as f:
        return list(csv.DictReader(f))
