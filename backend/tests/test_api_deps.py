"""
Tests for workforce_sync/api/deps.py - request dependencies.
"""
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from workforce_sync.api import deps
from workforce_sync.downstream.client import DownstreamClient


@pytest.fixture(autouse=True)
def fresh_client_slot(monkeypatch):
    monkeypatch.setattr(deps, "_downstream_client", None)


class TestDownstreamClientDependency:
    """Test the process-wide downstream client."""

    def test_returns_same_instance(self):
        with patch.object(DownstreamClient, "from_settings", side_effect=lambda: MagicMock()) as build:
            first = deps.get_downstream_client()
            second = deps.get_downstream_client()

        assert first is second
        build.assert_called_once()

    def test_concurrent_first_calls_build_one_client(self):
        """Threads racing on the first request all share one client."""
        workers = 4
        barrier = threading.Barrier(workers)

        def slow_build():
            time.sleep(0.05)
            return MagicMock()

        def resolve(_):
            barrier.wait()
            return deps.get_downstream_client()

        with patch.object(DownstreamClient, "from_settings", side_effect=slow_build) as build:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                clients = list(pool.map(resolve, range(workers)))

        assert len({id(c) for c in clients}) == 1
        build.assert_called_once()

    def test_close_releases_client(self):
        """Closing drops the instance so the next call builds a new one."""
        with patch.object(DownstreamClient, "from_settings", side_effect=lambda: MagicMock()):
            first = deps.get_downstream_client()
            deps.close_downstream_client()
            second = deps.get_downstream_client()

        first.close.assert_called_once()
        assert second is not first

    def test_close_without_client_is_noop(self):
        deps.close_downstream_client()

        assert deps._downstream_client is None
