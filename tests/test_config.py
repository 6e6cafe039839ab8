"""Tests for config module."""

from __future__ import annotations

import os
from unittest.mock import patch

from pick_dashboard.config import Config


class TestConfigConstants:
    """Tests for static configuration values."""

    def test_page_size_value(self) -> None:
        """Verifies the result table shows 20 rows per page.

        Business context:
        Managers scan one page of orders at a time. Twenty rows fit on a
        laptop screen without scrolling past the pager.

        Arrangement:
        None - tests static constant.

        Action:
        Access Config.PAGE_SIZE constant.

        Assertion Strategy:
        Validates exact integer value match.

        Testing Principle:
        Validates configuration constant value.
        """
        assert Config.PAGE_SIZE == 20

    def test_default_database(self) -> None:
        """Default database file is local.db."""
        assert Config.DEFAULT_DATABASE == "local.db"

    def test_filename_template(self) -> None:
        """CSV file name template embeds work date and mode."""
        assert Config.CSV_FILENAME_TEMPLATE.format(work_date="2024-01-01", mode="order") == (
            "dashboard_2024-01-01_order.csv"
        )

    def test_each_pick_headers(self) -> None:
        """Per-pick export has 13 columns ending with the service steps."""
        assert len(Config.EACH_PICK_HEADERS) == 13
        assert Config.EACH_PICK_HEADERS[:4] == ("store", "worker", "order number", "item count")
        assert Config.EACH_PICK_HEADERS[-2:] == ("customer-service start", "customer-service end")

    def test_order_headers(self) -> None:
        """Per-order export headers in column order."""
        assert Config.ORDER_HEADERS == (
            "store",
            "order number",
            "worker",
            "total items",
            "total duration",
            "picking rate",
        )

    def test_worker_headers(self) -> None:
        """Per-worker export headers in column order."""
        assert Config.WORKER_HEADERS == (
            "store",
            "worker",
            "orders handled",
            "total items",
            "total duration",
            "picking rate",
        )

    def test_sample_master_data(self) -> None:
        """Seed data has three stores and three workers."""
        assert len(Config.SAMPLE_STORES) == 3
        assert len(Config.SAMPLE_WORKERS) == 3


class TestDatabasePath:
    """Tests for Config.get_database_path()."""

    def test_default_when_env_unset(self) -> None:
        """Falls back to DEFAULT_DATABASE without env var."""
        with patch.dict(os.environ, {}, clear=True):
            assert Config.get_database_path() == "local.db"

    def test_env_var(self) -> None:
        """PICK_DASHBOARD_DB selects the database file."""
        with patch.dict(os.environ, {"PICK_DASHBOARD_DB": "/srv/picking.db"}):
            assert Config.get_database_path() == "/srv/picking.db"

    def test_override_wins_over_env(self) -> None:
        """Test override takes priority over the environment.

        Business context:
        Tests must never touch a developer's real database even when
        PICK_DASHBOARD_DB is exported in their shell.

        Arrangement:
        Set env var and a test override.

        Action:
        Call get_database_path(), then reset overrides.

        Assertion Strategy:
        Override returned first; env value returned after reset.
        """
        with patch.dict(os.environ, {"PICK_DASHBOARD_DB": "/srv/picking.db"}):
            Config.set_test_overrides(database="/tmp/test.db")
            assert Config.get_database_path() == "/tmp/test.db"
            Config.reset_test_overrides()
            assert Config.get_database_path() == "/srv/picking.db"


class TestPageSize:
    """Tests for Config.get_page_size()."""

    def test_default(self) -> None:
        """Default page size is PAGE_SIZE."""
        with patch.dict(os.environ, {}, clear=True):
            assert Config.get_page_size() == 20

    def test_env_var(self) -> None:
        """PICK_DASHBOARD_PAGE_SIZE overrides the page size."""
        with patch.dict(os.environ, {"PICK_DASHBOARD_PAGE_SIZE": "50"}):
            assert Config.get_page_size() == 50

    def test_invalid_env_falls_back(self) -> None:
        """Non-numeric value is ignored."""
        with patch.dict(os.environ, {"PICK_DASHBOARD_PAGE_SIZE": "lots"}):
            assert Config.get_page_size() == 20

    def test_non_positive_env_falls_back(self) -> None:
        """Zero and negative values are ignored."""
        with patch.dict(os.environ, {"PICK_DASHBOARD_PAGE_SIZE": "0"}):
            assert Config.get_page_size() == 20
        with patch.dict(os.environ, {"PICK_DASHBOARD_PAGE_SIZE": "-5"}):
            assert Config.get_page_size() == 20

    def test_override(self) -> None:
        """Test override wins over env var."""
        with patch.dict(os.environ, {"PICK_DASHBOARD_PAGE_SIZE": "50"}):
            Config.set_test_overrides(page_size=5)
            assert Config.get_page_size() == 5
