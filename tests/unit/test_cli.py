"""
Unit tests for the pipeline and admin CLIs (stores and file reading patched out).
"""

import json
from contextlib import nullcontext

import pytest

from booking_pipeline.cli import admin_cli, pipeline_cli
from booking_pipeline.stores import MemoryStores


@pytest.fixture
def no_db_env(monkeypatch):
    for name in ("DB_PASSWORD", "METRICS_PORT", "PIPELINE_MAX_WORKERS", "PIPELINE_RULES_PATH"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def memory_backend(monkeypatch, no_db_env):
    """Route both CLIs to one shared set of in-memory stores."""
    stores = MemoryStores()
    monkeypatch.setattr(pipeline_cli, "open_stores", lambda args: nullcontext(stores))
    monkeypatch.setattr(admin_cli, "open_stores", lambda args: nullcontext(stores))
    return stores


@pytest.fixture
def fake_reader(monkeypatch, dirty_rows):
    monkeypatch.setattr(pipeline_cli, "read_rows", lambda file_path, file_format="csv": list(dirty_rows))


def run_main(main, argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.mark.unit
class TestPipelineCLI:

    def test_dry_run_reports_rejections(self, no_db_env, fake_reader, capsys):
        code = run_main(pipeline_cli.main, ["run", "--dry-run", "--input", "exports/bookings_dirty.csv"])

        out = capsys.readouterr().out
        assert code == 2
        assert "DRY RUN COMPLETE" in out
        assert "bookings_dirty" in out
        assert "DATE_ORDER_INVALID" in out

    def test_dry_run_needs_input(self, no_db_env):
        assert run_main(pipeline_cli.main, ["run", "--dry-run"]) == 1

    def test_ingest_then_run(self, memory_backend, fake_reader, tmp_path, capsys):
        export = tmp_path / "bookings.csv"
        export.write_text("booking_id\n")

        assert run_main(pipeline_cli.main, ["ingest", "--input", str(export), "--batch-id", "b1"]) == 0
        assert memory_backend.raw.count() == 7

        assert run_main(pipeline_cli.main, ["run"]) == 2
        assert memory_backend.curated.count() == 4

        assert run_main(pipeline_cli.main, ["run"]) == 0
        assert "Skipped (already marked): 7" in capsys.readouterr().out

    def test_ingest_missing_file(self, memory_backend, tmp_path):
        missing = tmp_path / "nope.csv"

        assert run_main(pipeline_cli.main, ["ingest", "--input", str(missing), "--batch-id", "b1"]) == 1

    def test_ingest_bad_batch_id(self, memory_backend, tmp_path):
        export = tmp_path / "bookings.csv"
        export.write_text("booking_id\n")

        assert run_main(pipeline_cli.main, ["ingest", "--input", str(export), "--batch-id", "bad id"]) == 1

    def test_recompute(self, memory_backend, fake_reader, tmp_path, capsys):
        export = tmp_path / "bookings.csv"
        export.write_text("booking_id\n")
        run_main(pipeline_cli.main, ["ingest", "--input", str(export), "--batch-id", "b1"])
        run_main(pipeline_cli.main, ["run"])

        assert run_main(pipeline_cli.main, ["recompute"]) == 0
        assert "2 daily rows, 2 city rows" in capsys.readouterr().out

    def test_missing_password_is_fatal(self, no_db_env):
        assert run_main(pipeline_cli.main, ["run"]) == 1

    def test_no_command(self, no_db_env):
        assert run_main(pipeline_cli.main, []) == 1


@pytest.mark.unit
class TestAdminCLI:

    @pytest.fixture
    def loaded(self, memory_backend, dirty_rows):
        pipeline = pipeline_cli.BookingPipeline.from_stores(memory_backend)
        pipeline.ingest(dirty_rows, batch_id="b1")
        pipeline.run_increment()
        return memory_backend

    def test_quality_report_json(self, loaded, capsys):
        assert run_main(admin_cli.main, ["quality-report", "--json"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report["promoted"] == 4
        assert report["rejected"] == 2
        assert report["pending"] == 1
        assert report["quality_rate"] == 0.5714

    def test_rejections_by_reason(self, loaded, capsys):
        assert run_main(admin_cli.main, ["rejections", "--reason", "INVALID_DATE"]) == 0

        out = capsys.readouterr().out
        assert "BK1005" in out
        assert "BK1002" not in out

    def test_audit_record(self, loaded, capsys):
        assert run_main(admin_cli.main, ["audit-record", "--booking-id", "BK1003"]) == 0

        out = capsys.readouterr().out
        assert "Raw occurrences: 2" in out
        assert "[winner]" in out
        assert "'CONFIRMD' -> 'Confirmed'" in out

    def test_daily_and_cities(self, loaded, capsys):
        assert run_main(admin_cli.main, ["daily", "--start", "2026-01-12"]) == 0
        out = capsys.readouterr().out
        assert "2026-01-12" in out
        assert "2026-01-11" not in out

        assert run_main(admin_cli.main, ["cities", "--top", "1"]) == 0
        out = capsys.readouterr().out
        assert "New York" in out
        assert "London" not in out

    def test_verify_aggregates(self, loaded, capsys):
        assert run_main(admin_cli.main, ["verify-aggregates"]) == 0

        loaded.aggregates.replace([], [])

        assert run_main(admin_cli.main, ["verify-aggregates"]) == 1
        assert "drift detected" in capsys.readouterr().out

    def test_verify_aggregates_holds_run_lock(self, loaded, monkeypatch):
        """Curated and aggregate reads happen while no pipeline run can interleave"""
        lock_held = []
        original_verify = admin_cli.Aggregator.verify

        def verify(aggregator):
            lock_held.append(loaded.tracker._run_lock.locked())
            return original_verify(aggregator)

        monkeypatch.setattr(admin_cli.Aggregator, "verify", verify)

        assert run_main(admin_cli.main, ["verify-aggregates"]) == 0
        assert lock_held == [True]
        assert not loaded.tracker._run_lock.locked()

    def test_invalid_limit(self, loaded):
        assert run_main(admin_cli.main, ["rejections", "--limit", "0"]) == 1
