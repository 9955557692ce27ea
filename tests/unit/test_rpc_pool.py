"""
EndpointPool Unit Tests
=======================
Round-robin cursor, empty pool behaviour and observational stats.
"""

import threading

import pytest

from sol_exec.shared.infrastructure.rpc_pool import EndpointPool, RpcEndpoint
from sol_exec.shared.system.errors import PoolEmpty, UnavailableError
from tests.mocks.mock_rpc import MockTransport


def _pool(size: int) -> EndpointPool:
    return EndpointPool(
        RpcEndpoint(name=f"ep-{i}", url=f"mock://{i}", transport=MockTransport())
        for i in range(size)
    )


class TestRotation:

    def test_current_starts_at_first_endpoint(self):
        pool = _pool(3)
        assert pool.current().name == "ep-0"

    def test_rotate_advances_modulo_size(self):
        pool = _pool(3)
        seen = []
        for _ in range(7):
            pool.rotate()
            seen.append(pool.current().name)

        assert seen == ["ep-1", "ep-2", "ep-0", "ep-1", "ep-2", "ep-0", "ep-1"]

    def test_full_cycle_returns_to_start(self):
        pool = _pool(4)
        start = pool.current()
        for _ in range(len(pool)):
            pool.rotate()
        assert pool.current() is start

    def test_single_endpoint_rotation_is_stable(self):
        pool = _pool(1)
        pool.rotate()
        pool.rotate()
        assert pool.current().name == "ep-0"

    def test_failures_do_not_move_the_cursor(self):
        """Stats are observational; selection is pure round-robin."""
        pool = _pool(2)
        first = pool.current()
        for _ in range(5):
            pool.record_failure(first, "timeout")

        assert pool.current() is first
        pool.rotate()
        pool.rotate()
        assert pool.current() is first

    def test_concurrent_rotations_are_not_lost(self):
        pool = _pool(3)

        def spin():
            for _ in range(250):
                pool.rotate()

        threads = [threading.Thread(target=spin) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # 1000 rotations over 3 endpoints
        assert pool.current().name == "ep-1"


class TestEmptyPool:

    def test_current_raises_pool_empty(self):
        pool = EndpointPool()
        with pytest.raises(PoolEmpty):
            pool.current()

    def test_pool_empty_is_unavailable(self):
        assert issubclass(PoolEmpty, UnavailableError)

    def test_rotate_is_noop(self):
        pool = EndpointPool()
        pool.rotate()
        assert len(pool) == 0
        assert pool.status()["active"] is None


class TestStats:

    def test_success_tracks_latency_average(self):
        pool = _pool(1)
        ep = pool.current()
        pool.record_success(ep, 100.0)
        pool.record_success(ep, 200.0)

        stats = pool.status()["endpoints"]["ep-0"]
        assert stats["success"] == 2
        assert stats["avg_latency_ms"] == pytest.approx(110.0)

    def test_failure_records_last_error(self):
        pool = _pool(2)
        pool.record_failure(pool.current(), "503 Service Unavailable")

        status = pool.status()
        assert status["endpoints"]["ep-0"]["errors"] == 1
        assert status["endpoints"]["ep-0"]["last_error"] == "503 Service Unavailable"
        assert status["endpoints"]["ep-1"]["errors"] == 0

    def test_status_reports_active_endpoint(self):
        pool = _pool(2)
        pool.rotate()
        status = pool.status()
        assert status["active"] == "ep-1"
        assert status["active_url"] == "mock://1"
        assert status["size"] == 2


class TestFromUrls:

    def test_builds_named_solana_transports(self):
        from sol_exec.shared.infrastructure.rpc_transport import SolanaRpcTransport

        pool = EndpointPool.from_urls(["https://a.example", "https://b.example"], timeout=3.0)

        assert [ep.name for ep in pool.endpoints] == ["rpc-0", "rpc-1"]
        assert all(isinstance(ep.transport, SolanaRpcTransport) for ep in pool.endpoints)
        assert pool.current().transport.timeout == 3.0

    def test_drops_blanks_and_duplicates(self):
        pool = EndpointPool.from_urls(["https://a.example", " ", "https://a.example ", "https://b.example"])
        assert [ep.url for ep in pool.endpoints] == ["https://a.example", "https://b.example"]
