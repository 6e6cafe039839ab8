"""Tests for CLI module."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

import pytest
from conftest import InMemoryRowSource

from pick_dashboard.exporter import parse_csv
from pick_dashboard.models import AggregationMode, ResultQuery
from pick_dashboard.row_source import RowSourceError, SqliteRowSource

if TYPE_CHECKING:
    from conftest import MockFileSystem


class TestCLIParsing:
    """Tests for CLI argument parsing."""

    def test_main_returns_int(self) -> None:
        """Verifies main() returns integer exit code for shell compatibility.

        Business context:
        Exit codes enable automation. Scheduled exports check the exit
        code to decide whether to alert someone.

        Arrangement:
        1. Mock sys.argv with just the program name.
        2. Mock run_dashboard to prevent actual execution.

        Action:
        Call main() and capture return value.

        Assertion Strategy:
        Validates return is int type and equals 0 (success).

        Testing Principle:
        Validates POSIX-compliant exit code contract.
        """
        from pick_dashboard.cli import main

        with (
            patch.object(sys, "argv", ["pick-dashboard"]),
            patch("pick_dashboard.cli.run_dashboard") as mock_run,
        ):
            result = main()
        assert result == 0
        mock_run.assert_called_once_with()

    def test_version_flag(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints version and exits."""
        from pick_dashboard.cli import main

        with (
            patch.object(sys, "argv", ["pick-dashboard", "--version"]),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()
        assert exc_info.value.code == 0
        assert "pick-dashboard" in capsys.readouterr().out

    def test_dashboard_options(self) -> None:
        """dashboard passes host, port, and database through."""
        from pick_dashboard.cli import main

        argv = ["pick-dashboard", "dashboard", "--host", "0.0.0.0", "--port", "9000", "--db", "x.db"]
        with (
            patch.object(sys, "argv", argv),
            patch("pick_dashboard.cli.run_dashboard") as mock_run,
        ):
            assert main() == 0
        mock_run.assert_called_once_with(host="0.0.0.0", port=9000, database="x.db")

    def test_export_dispatch(self) -> None:
        """export builds the query and mode from flags.

        Business context:
        Cron jobs export each store separately with --store.

        Arrangement:
        Mock run_export; argv with date, mode, store, output dir.

        Action:
        Call main().

        Assertion Strategy:
        run_export receives the parsed query, mode, and directory.
        """
        from pick_dashboard.cli import main

        argv = [
            "pick-dashboard",
            "export",
            "--date",
            "2024-01-01",
            "--mode",
            "worker",
            "--store",
            "2",
            "--output-dir",
            "/out",
        ]
        with (
            patch.object(sys, "argv", argv),
            patch("pick_dashboard.cli.run_export") as mock_export,
        ):
            assert main() == 0

        args, kwargs = mock_export.call_args
        assert args == (ResultQuery("2024-01-01", store_id=2), AggregationMode.WORKER)
        assert kwargs["output_dir"] == "/out"
        assert isinstance(kwargs["row_source"], SqliteRowSource)

    def test_export_bad_date(self) -> None:
        """Invalid dates fail with exit code 1."""
        from pick_dashboard.cli import main

        with (
            patch.object(sys, "argv", ["pick-dashboard", "export", "--date", "tomorrow"]),
            patch("pick_dashboard.cli.run_export") as mock_export,
        ):
            assert main() == 1
        mock_export.assert_not_called()

    def test_export_storage_failure(self) -> None:
        """Row source failures fail with exit code 1."""
        from pick_dashboard.cli import main

        with (
            patch.object(sys, "argv", ["pick-dashboard", "export", "--date", "2024-01-01"]),
            patch("pick_dashboard.cli.run_export", side_effect=RowSourceError("locked")),
        ):
            assert main() == 1

    def test_export_missing_database(self, tmp_path) -> None:
        """Export before init-db exits 1 and leaves no database or CSV."""
        from pick_dashboard.cli import main

        db_path = tmp_path / "none.db"
        argv = [
            "pick-dashboard",
            "export",
            "--date",
            "2024-01-01",
            "--db",
            str(db_path),
            "--output-dir",
            str(tmp_path / "out"),
        ]
        with patch.object(sys, "argv", argv):
            assert main() == 1
        assert not db_path.exists()
        assert not (tmp_path / "out" / "dashboard_2024-01-01_order.csv").exists()

    def test_export_rejects_unknown_mode(self) -> None:
        """argparse rejects modes outside the choices."""
        from pick_dashboard.cli import main

        argv = ["pick-dashboard", "export", "--date", "2024-01-01", "--mode", "store"]
        with patch.object(sys, "argv", argv), pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2

    def test_init_db_dispatch(self) -> None:
        """init-db forwards database and seed flag."""
        from pick_dashboard.cli import main

        with (
            patch.object(sys, "argv", ["pick-dashboard", "init-db", "--db", "x.db", "--seed"]),
            patch("pick_dashboard.cli.run_init_db") as mock_init,
        ):
            assert main() == 0
        mock_init.assert_called_once_with(database="x.db", seed=True)


class TestRunExport:
    """Tests for run_export()."""

    def test_writes_csv(self, memory_source: InMemoryRowSource, mock_fs: MockFileSystem) -> None:
        """Export writes the CSV into a newly created directory.

        Business context:
        The CLI export must produce the same file as the dashboard
        download so both can feed the same spreadsheet.

        Arrangement:
        In-memory source and mock filesystem without /out.

        Action:
        run_export() in order mode into /out.

        Assertion Strategy:
        Directory created; file at the expected path; parsed rows
        match the three orders.
        """
        from pick_dashboard.cli import run_export

        path = run_export(
            ResultQuery("2024-01-01"),
            AggregationMode.ORDER,
            output_dir="/out",
            row_source=memory_source,
            filesystem=mock_fs,
        )

        assert path == "/out/dashboard_2024-01-01_order.csv"
        assert "/out" in mock_fs.list_dirs()
        content = mock_fs.get_file(path)
        assert content is not None
        assert len(parse_csv(content)) == 4

    def test_existing_directory(
        self, memory_source: InMemoryRowSource, mock_fs: MockFileSystem
    ) -> None:
        """Existing output directory is reused."""
        from pick_dashboard.cli import run_export

        mock_fs.makedirs("/out")
        run_export(
            ResultQuery("2024-01-01"),
            AggregationMode.EACH_PICK,
            output_dir="/out/",
            row_source=memory_source,
            filesystem=mock_fs,
        )
        assert mock_fs.list_files() == ["/out/dashboard_2024-01-01_each_pick.csv"]

    def test_propagates_row_source_error(self, mock_fs: MockFileSystem) -> None:
        """Storage errors reach the caller."""
        from pick_dashboard.cli import run_export

        source = MagicMock()
        source.fetch_pick_events.side_effect = RowSourceError("locked")
        with pytest.raises(RowSourceError):
            run_export(
                ResultQuery("2024-01-01"),
                AggregationMode.ORDER,
                row_source=source,
                filesystem=mock_fs,
            )
        assert mock_fs.list_files() == []


class TestRunInitDb:
    """Tests for run_init_db()."""

    def test_creates_and_seeds(self, tmp_path) -> None:
        """Schema is created and sample master data inserted."""
        from pick_dashboard.cli import run_init_db

        source = run_init_db(database=str(tmp_path / "new.db"), seed=True)
        assert [s.store_name for s in source.list_stores()] == ["Main", "Station", "Suburb"]
        assert source.list_work_dates() == []

    def test_without_seed(self, tmp_path) -> None:
        """Without --seed the tables are empty."""
        from pick_dashboard.cli import run_init_db

        source = run_init_db(database=str(tmp_path / "new.db"))
        assert source.list_workers() == []


class TestRunDashboard:
    """Tests for run_dashboard()."""

    def test_delegates_to_web(self) -> None:
        """run_dashboard starts the web server with the same settings."""
        from pick_dashboard.cli import run_dashboard

        with patch("pick_dashboard.web.run_dashboard") as mock_run:
            run_dashboard(host="127.0.0.1", port=8123, database="x.db")
        mock_run.assert_called_once_with(host="127.0.0.1", port=8123, database="x.db")

    def test_web_run_dashboard_uses_uvicorn(self) -> None:
        """The web runner hands an app with a SQLite source to uvicorn."""
        from pick_dashboard.web.app import run_dashboard as web_run

        with patch("pick_dashboard.web.app.uvicorn.run") as mock_uvicorn:
            web_run(host="127.0.0.1", port=8123, database="x.db")
        app = mock_uvicorn.call_args.args[0]
        assert app.state.row_source.database_path == "x.db"
        assert mock_uvicorn.call_args.kwargs["port"] == 8123
