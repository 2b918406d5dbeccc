"""
Command-line interface for the scheduled booking pipeline.

Usage:
    booking-pipeline ingest --input <file> --batch-id <id> [--format csv|json]
    booking-pipeline run [--batch-id <id>] [--full-refresh]
    booking-pipeline run --dry-run --input <file>
    booking-pipeline recompute

Exit status of "run": 0 when every new record was promoted, 2 when some
records were rejected, 1 on fatal failure (store unreachable, bad batch,
bad configuration).
"""

import argparse
import sys
from contextlib import nullcontext
from pathlib import Path

from dotenv import load_dotenv
from pyspark.sql import SparkSession

from booking_pipeline.batch import BookingPipeline
from booking_pipeline.config import PipelineConfig
from booking_pipeline.core.aggregation import FullRecompute
from booking_pipeline.core.errors import ConfigurationError, PipelineError
from booking_pipeline.core.models import ExitStatus, RunSummary
from booking_pipeline.observability import metrics
from booking_pipeline.observability.logger import get_logger
from booking_pipeline.stores import MemoryStores
from booking_pipeline.utils.validation import ValidationError, validate_batch_id, validate_file_path

from .common import add_database_arguments, load_ruleset_config, open_stores

logger = get_logger(__name__)


def create_spark_session(app_name: str = "BookingIngestion") -> SparkSession:
    """
    Create Spark session for file ingestion.

    Args:
        app_name: Application name

    Returns:
        SparkSession
    """
    return (
        SparkSession.builder
        .appName(app_name)
        .master("local[*]")
        .config("spark.sql.adaptive.enabled", "true")
        .config("spark.ui.enabled", "false")
        .getOrCreate()
    )


def read_rows(file_path: str, file_format: str = "csv") -> list[dict]:
    """Read a booking export into row dictionaries (every value as text)."""
    from booking_pipeline.batch.readers import FileReader, rows_from_dataframe

    spark = create_spark_session(f"BookingIngestion-{Path(file_path).name}")
    try:
        df = FileReader(spark).read(file_path, file_format=file_format)
        return list(rows_from_dataframe(df))
    finally:
        spark.stop()


def print_summary(summary: RunSummary, dry_run: bool = False) -> None:
    title = "DRY RUN COMPLETE" if dry_run else "RUN COMPLETE"
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")
    print(f"  Batch:                   {summary.batch_id or 'all pending'}")
    print(f"  Raw records considered:  {summary.total_records}")
    print(f"  Promoted:                {summary.promoted}")
    print(f"  Rejected:                {summary.rejected}")
    print(f"  Skipped (already marked): {summary.skipped}")
    print(f"  Conflicting duplicates:  {summary.conflicting_duplicates}")
    print(f"  Aggregation:             {summary.aggregation}")
    if summary.rejections_by_reason:
        print("\nRejections by reason:")
        for reason, count in sorted(summary.rejections_by_reason.items()):
            print(f"  {reason:<25} {count:>8}")
    if summary.violations_by_kind:
        print("\nViolations by kind:")
        for kind, count in sorted(summary.violations_by_kind.items()):
            print(f"  {kind:<25} {count:>8}")
    print(f"\nExit status: {int(summary.exit_status)} ({summary.exit_status.name})")
    print(f"{'=' * 60}\n")


def ingest_command(args, config: PipelineConfig) -> ExitStatus:
    """Append a file to the raw store."""
    file_path = validate_file_path(args.input, "input")
    batch_id = validate_batch_id(args.batch_id)
    if not Path(file_path).exists():
        logger.error(f"Input file not found: {file_path}")
        print(f"\nError: input file not found: {file_path}")
        return ExitStatus.FATAL

    rows = read_rows(file_path, args.format)
    with open_stores(args) as stores:
        pipeline = BookingPipeline.from_stores(stores, ruleset_config=load_ruleset_config(args.rules))
        result = pipeline.ingest(rows, batch_id)

    print(f"\nIngested {result.accepted} rows into batch {batch_id} ({result.malformed} malformed rows dropped)\n")
    return ExitStatus.CLEAN


def run_command(args, config: PipelineConfig) -> ExitStatus:
    """Run one pipeline increment."""
    ruleset_config = load_ruleset_config(args.rules)

    if args.dry_run:
        if not args.input:
            raise ConfigurationError("--dry-run needs --input: the file is evaluated in memory only")
        file_path = validate_file_path(args.input, "input")
        batch_id = validate_batch_id(args.batch_id or Path(file_path).stem.replace(" ", "_"))
        logger.info("DRY RUN MODE: nothing will be written to the warehouse")
        stores = MemoryStores()
        context = nullcontext(stores)
        rows = read_rows(file_path, args.format)
    else:
        context = open_stores(args)
        rows = None
        batch_id = args.batch_id

    with context as stores:
        pipeline = BookingPipeline.from_stores(
            stores, ruleset_config=ruleset_config, max_workers=args.max_workers
        )
        if rows is not None:
            pipeline.ingest(rows, batch_id)
        summary = pipeline.run_increment(batch_id=batch_id, full_refresh=args.full_refresh)

    print_summary(summary, dry_run=args.dry_run)
    return summary.exit_status


def recompute_command(args, config: PipelineConfig) -> ExitStatus:
    """Rebuild both aggregate views from the curated store."""
    with open_stores(args) as stores:
        pipeline = BookingPipeline.from_stores(stores)
        with stores.tracker.exclusive_run():
            result = pipeline.aggregator.recompute(FullRecompute())
    print(f"\nAggregates rebuilt: {result['daily_rows']} daily rows, {result['city_rows']} city rows\n")
    return ExitStatus.CLEAN


COMMANDS = {
    "ingest": ingest_command,
    "run": run_command,
    "recompute": recompute_command,
}


def build_parser(config: PipelineConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Hotel booking pipeline (raw -> curated -> aggregates)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Land a daily export in the raw store
  booking-pipeline ingest --input data/bookings_2026-01-11.csv --batch-id bookings_2026-01-11

  # Promote everything pending and refresh aggregates
  booking-pipeline run

  # Evaluate a file without touching the warehouse
  booking-pipeline run --dry-run --input data/bookings_2026-01-11.csv
        """,
    )
    add_database_arguments(parser, config)
    parser.add_argument(
        "--rules",
        default=str(config.rules_path),
        help="Ruleset YAML file (default: config/ruleset.yaml)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=config.metrics_port,
        help="Expose Prometheus metrics on this port while running",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ingest_parser = subparsers.add_parser("ingest", help="Append a booking export to the raw store")
    ingest_parser.add_argument("--input", required=True, help="Path to input file")
    ingest_parser.add_argument("--batch-id", required=True, help="Identifier of the ingestion batch")
    ingest_parser.add_argument(
        "--format", default="csv", choices=["csv", "json"], help="Input file format (default: csv)"
    )

    run_parser = subparsers.add_parser("run", help="Run one pipeline increment")
    run_parser.add_argument("--batch-id", help="Only promote this raw batch")
    run_parser.add_argument(
        "--full-refresh", action="store_true", help="Rebuild aggregates instead of updating them"
    )
    run_parser.add_argument(
        "--dry-run", action="store_true", help="Evaluate --input in memory, write nothing"
    )
    run_parser.add_argument("--input", help="Input file for --dry-run")
    run_parser.add_argument(
        "--format", default="csv", choices=["csv", "json"], help="Input file format (default: csv)"
    )
    run_parser.add_argument(
        "--max-workers",
        type=int,
        default=config.max_workers,
        help=f"Threads for validation/normalization (default: {config.max_workers})",
    )

    subparsers.add_parser("recompute", help="Rebuild aggregates from the curated store")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv()
    try:
        config = PipelineConfig.from_env()
    except ConfigurationError as e:
        print(f"\nError: {e}")
        sys.exit(int(ExitStatus.FATAL))

    parser = build_parser(config)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(int(ExitStatus.FATAL))

    if args.metrics_port:
        metrics.start_metrics_server(args.metrics_port)

    try:
        status = COMMANDS[args.command](args, config)
    except (PipelineError, ValidationError) as e:
        logger.error(f"Pipeline {args.command} failed: {e}", exc_info=True)
        print(f"\nError: {e}")
        status = ExitStatus.FATAL

    sys.exit(int(status))


if __name__ == "__main__":
    main()
