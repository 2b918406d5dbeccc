"""
Admin CLI for inspecting the booking pipeline.

Usage:
    booking-admin quality-report [--json]
    booking-admin rejections [--reason DATE_ORDER_INVALID] [--limit 50]
    booking-admin audit-record --booking-id <id>
    booking-admin daily [--start YYYY-MM-DD] [--end YYYY-MM-DD]
    booking-admin cities [--top 10]
    booking-admin verify-aggregates
"""

import argparse
import json
import sys
from datetime import datetime

from dotenv import load_dotenv

from booking_pipeline.config import PipelineConfig
from booking_pipeline.core.aggregation import Aggregator
from booking_pipeline.core.errors import ConfigurationError, PipelineError
from booking_pipeline.core.normalize import Normalizer
from booking_pipeline.core.rules import ValidationRuleset
from booking_pipeline.observability.logger import get_logger
from booking_pipeline.reporting import ReportingViews, audit_record
from booking_pipeline.utils.validation import ValidationError, validate_record_id

from .common import add_database_arguments, load_ruleset_config, open_stores, parse_date_arg

logger = get_logger(__name__)


def format_timestamp(ts: datetime | str | None) -> str:
    """Format timestamp for display."""
    if isinstance(ts, str):
        return ts
    return ts.strftime("%Y-%m-%d %H:%M:%S") if ts else "N/A"


def quality_report_command(args) -> int:
    """Display promoted/rejected counts and the quality rate."""
    with open_stores(args) as stores:
        report = ReportingViews.from_stores(stores).quality_report()

    if args.json:
        print(json.dumps({**report.model_dump(), "pending": report.pending}, indent=2))
        return 0

    print(f"\n{'=' * 60}")
    print("DATA QUALITY REPORT")
    print(f"{'=' * 60}\n")
    print(f"  Raw records:     {report.total_raw}")
    print(f"  Promoted:        {report.promoted}")
    print(f"  Rejected:        {report.rejected}")
    print(f"  Not marked:      {report.pending}")
    print(f"  Quality rate:    {report.quality_rate:.2%}\n")
    if report.rejections_by_reason:
        print("Rejections by reason:")
        for reason, count in sorted(report.rejections_by_reason.items(), key=lambda x: x[1], reverse=True):
            print(f"  {reason:<30} {count:>8}")
    print(f"\n{'=' * 60}\n")
    return 0


def rejections_command(args) -> int:
    """List rejected identifiers."""
    with open_stores(args) as stores:
        markers = ReportingViews.from_stores(stores).rejections(reason=args.reason, limit=args.limit)

    if not markers:
        print("\nNo rejected records found matching the criteria.")
        return 0

    print(f"\n{'=' * 90}")
    print(f"REJECTED RECORDS{f' - Reason: {args.reason}' if args.reason else ''}")
    print(f"{'=' * 90}\n")
    print(f"{'Booking ID':<20} {'Batch':<25} {'Marked':<20} {'Violations'}")
    print(f"{'-' * 90}")
    for marker in markers:
        violations = ", ".join(v.value for v in marker.violations)
        print(f"{marker.record_id:<20} {(marker.batch_id or '-'):<25} {format_timestamp(marker.marked_at):<20} {violations}")
    print(f"\n{'=' * 90}\n")
    return 0


def audit_record_command(args) -> int:
    """Show every raw occurrence of a booking and the corrections applied to it."""
    booking_id = validate_record_id(args.booking_id)
    ruleset_config = load_ruleset_config(args.rules)
    ruleset = ValidationRuleset.from_config(ruleset_config)
    normalizer = Normalizer(ruleset_config, ruleset)

    with open_stores(args) as stores:
        audit = audit_record(stores.raw, ruleset, booking_id, normalizer=normalizer, tracker=stores.tracker)

    if not audit.found:
        print(f"\nNo raw records found for booking ID: {booking_id}")
        return 0

    print(f"\n{'=' * 80}")
    print(f"AUDIT FOR BOOKING: {booking_id}")
    print(f"{'=' * 80}\n")
    if audit.marker is not None:
        print(f"Marker: {audit.marker.status} at {format_timestamp(audit.marker.marked_at)} (batch {audit.marker.batch_id})")
    else:
        print("Marker: none (not processed yet)")
    print(f"Raw occurrences: {len(audit.occurrences)}\n")

    winner = audit.winner
    for occurrence in audit.occurrences:
        flag = " [winner]" if occurrence is winner and audit.marker is not None else ""
        print(f"#{occurrence.sequence} batch={occurrence.batch_id} ingested={format_timestamp(occurrence.ingested_at)}{flag}")
        print(f"  Eligible: {occurrence.eligible}")
        for message in occurrence.messages:
            print(f"  Violation: {message}")
        for correction in occurrence.corrections:
            print(f"  {correction.field_name:<16} '{correction.raw_value}' -> '{correction.curated_value}'")
        print()
    print(f"{'=' * 80}\n")
    return 0


def daily_command(args) -> int:
    with open_stores(args) as stores:
        rows = ReportingViews.from_stores(stores).daily_aggregates(args.start, args.end)

    print(f"\n{'Date':<12} {'Bookings':>10} {'Revenue':>16}")
    print(f"{'-' * 40}")
    for row in rows:
        print(f"{row.date.isoformat():<12} {row.total_bookings:>10} {row.total_revenue:>16}")
    print()
    return 0


def cities_command(args) -> int:
    with open_stores(args) as stores:
        rows = ReportingViews.from_stores(stores).city_aggregates(top_n=args.top)

    print(f"\n{'City':<30} {'Revenue':>16}")
    print(f"{'-' * 48}")
    for row in rows:
        print(f"{row.city:<30} {row.total_revenue:>16}")
    print()
    return 0


def verify_aggregates_command(args) -> int:
    """Compare stored aggregates against the curated store; exit 1 on drift."""
    with open_stores(args) as stores:
        with stores.tracker.exclusive_run():
            drift = Aggregator(stores.curated, stores.aggregates).verify()

    if drift.in_sync:
        print("\nAggregates are in sync with the curated store.\n")
        return 0

    print("\nAggregate drift detected:")
    if drift.daily_keys:
        print(f"  Daily keys: {', '.join(k.isoformat() for k in drift.daily_keys)}")
    if drift.city_keys:
        print(f"  City keys:  {', '.join(drift.city_keys)}")
    print("Run 'booking-pipeline recompute' to rebuild.\n")
    return 1


COMMANDS = {
    "quality-report": quality_report_command,
    "rejections": rejections_command,
    "audit-record": audit_record_command,
    "daily": daily_command,
    "cities": cities_command,
    "verify-aggregates": verify_aggregates_command,
}


def build_parser(config: PipelineConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Admin CLI for the booking pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_database_arguments(parser, config)
    parser.add_argument(
        "--rules",
        default=str(config.rules_path),
        help="Ruleset YAML file used to re-derive audits",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    quality_parser = subparsers.add_parser("quality-report", help="Promoted/rejected counts and quality rate")
    quality_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    rejections_parser = subparsers.add_parser("rejections", help="List rejected bookings")
    rejections_parser.add_argument(
        "--reason",
        choices=["INVALID_DATE", "DATE_ORDER_INVALID"],
        help="Only rejections with this reason",
    )
    rejections_parser.add_argument(
        "--limit", type=int, default=50, help="Maximum number of records to display (default: 50)"
    )

    audit_parser = subparsers.add_parser("audit-record", help="Raw occurrences and corrections for a booking")
    audit_parser.add_argument("--booking-id", required=True, help="Booking ID to audit")

    daily_parser = subparsers.add_parser("daily", help="Daily bookings and revenue")
    daily_parser.add_argument("--start", type=parse_date_arg, help="First check-in date (inclusive)")
    daily_parser.add_argument("--end", type=parse_date_arg, help="Last check-in date (inclusive)")

    cities_parser = subparsers.add_parser("cities", help="Revenue by city")
    cities_parser.add_argument("--top", type=int, help="Only the N highest-revenue cities")

    subparsers.add_parser("verify-aggregates", help="Check aggregates against the curated store")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for admin CLI."""
    load_dotenv()
    try:
        config = PipelineConfig.from_env()
    except ConfigurationError as e:
        print(f"\nError: {e}")
        sys.exit(1)

    parser = build_parser(config)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        code = COMMANDS[args.command](args)
    except (PipelineError, ValidationError) as e:
        logger.error(f"Admin command {args.command} failed: {e}", exc_info=True)
        print(f"\nError: {e}")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
