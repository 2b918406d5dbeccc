"""
Arguments and store wiring shared by the pipeline and admin CLIs.
"""

import argparse
from datetime import date, datetime

from booking_pipeline.config import DatabaseSettings, PipelineConfig
from booking_pipeline.core.errors import ConfigurationError
from booking_pipeline.core.rules import RulesetConfig, RulesetConfigLoader
from booking_pipeline.observability.logger import get_logger
from booking_pipeline.warehouse.stores import PostgresStores

logger = get_logger(__name__)


def add_database_arguments(parser: argparse.ArgumentParser, config: PipelineConfig) -> None:
    """Database connection options, defaulting to the environment."""
    db = config.database
    parser.add_argument("--db-host", default=db.host, help=f"Database host (default: {db.host})")
    parser.add_argument("--db-port", type=int, default=db.port, help=f"Database port (default: {db.port})")
    parser.add_argument("--db-name", default=db.database, help=f"Database name (default: {db.database})")
    parser.add_argument("--db-user", default=db.user, help=f"Database user (default: {db.user})")
    parser.add_argument(
        "--db-password",
        default=db.password,
        help="Database password (default: DB_PASSWORD)",
    )


def database_settings(args: argparse.Namespace) -> DatabaseSettings:
    return DatabaseSettings(
        host=args.db_host,
        port=args.db_port,
        database=args.db_name,
        user=args.db_user,
        password=args.db_password,
    )


def open_stores(args: argparse.Namespace) -> PostgresStores:
    """
    Open the Postgres stores described by the database arguments.

    Raises:
        ConfigurationError: If the settings are incomplete (e.g. no password)
        StoreUnavailableError: If the database cannot be reached
    """
    try:
        settings = database_settings(args)
        return PostgresStores.connect(settings)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def load_ruleset_config(path) -> RulesetConfig:
    """Ruleset from YAML, or the built-in defaults when the file does not exist."""
    try:
        return RulesetConfigLoader(path).load()
    except FileNotFoundError:
        logger.warning(f"Ruleset file not found, using built-in rules: {path}")
        return RulesetConfig()


def parse_date_arg(value: str) -> date:
    """argparse type for ISO dates."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")
