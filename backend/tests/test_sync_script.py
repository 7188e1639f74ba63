"""
Tests for scripts/sync_employees.py - pending sweep command.
"""
from unittest.mock import patch

import httpx
import pytest

from scripts import sync_employees
from workforce_sync.models.employee import Employee

from tests.utils.downstream_stub import RecordingHandler, build_client


class TestArguments:
    """Test command line parsing."""

    def test_defaults(self):
        args = sync_employees.parse_args([])

        assert args.limit == 100
        assert args.force is False

    def test_non_positive_limit_rejected(self):
        """--limit must be at least 1."""
        with pytest.raises(SystemExit) as exc_info:
            sync_employees.parse_args(["--limit", "0"])

        assert exc_info.value.code == 2


class TestMain:
    """Test the command entry point."""

    def test_force_is_not_supported(self, capsys):
        """--force exits with failure without syncing anything."""
        with patch.object(sync_employees, "run_sweep") as run_sweep:
            assert sync_employees.main(["--force"]) == 1

        run_sweep.assert_not_called()
        assert "not implemented" in capsys.readouterr().out

    def test_success_reports_count(self, capsys):
        with patch.object(sync_employees, "run_sweep", return_value=3) as run_sweep:
            assert sync_employees.main(["--limit", "25"]) == 0

        run_sweep.assert_called_once_with(25)
        assert "Successfully synced 3 employees." in capsys.readouterr().out

    def test_failure_returns_error_code(self, capsys):
        """An error while sweeping is reported and exits with 1."""
        with patch.object(sync_employees, "run_sweep", side_effect=RuntimeError("db down")):
            assert sync_employees.main([]) == 1

        assert "db down" in capsys.readouterr().out


class TestRunSweep:
    """Test a sweep against a real session and a stubbed downstream API."""

    def test_sweep_syncs_pending_records(self, db_session, monkeypatch):
        db_session.add(
            Employee(
                first_name="Pending",
                last_name="One",
                email="pending@example.com",
                provider="provider1",
                external_id="p-1",
            )
        )
        db_session.commit()

        handler = RecordingHandler(lambda request: httpx.Response(201, json={"data": {"id": 1}}))
        monkeypatch.setattr(sync_employees, "SessionLocal", lambda: db_session)
        monkeypatch.setattr(
            sync_employees.DownstreamClient,
            "from_settings",
            classmethod(lambda cls, transport=None: build_client(handler)),
        )

        assert sync_employees.run_sweep(10) == 1
        assert len(handler.api_calls) == 1
