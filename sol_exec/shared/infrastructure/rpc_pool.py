"""
RPC Endpoint Pool
=================
Ordered set of RPC endpoint handles with an explicit round-robin cursor.

Failover is caller-triggered: after a failed submission the caller invokes
`rotate()` and retries. Selection never skips endpoints on its own; the
per-endpoint stats are kept for status reporting only.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sol_exec.shared.infrastructure.rpc_transport import RpcTransport, SolanaRpcTransport
from sol_exec.shared.system.errors import PoolEmpty
from sol_exec.shared.system.logging import Logger


@dataclass(frozen=True)
class RpcEndpoint:
    """A named handle on one RPC node."""
    name: str
    url: str
    transport: RpcTransport

    def __repr__(self):
        return f"RpcEndpoint({self.name}, {self.url})"


class EndpointPool:
    """
    Round-robin pool of RPC endpoints.

    Usage:
        pool = EndpointPool.from_urls(["https://a", "https://b"])
        endpoint = pool.current()
        ...
        pool.rotate()   # after a failure, before retrying
    """

    def __init__(self, endpoints: Iterable[RpcEndpoint] = ()):
        self._endpoints: List[RpcEndpoint] = list(endpoints)
        self._index = 0
        self._lock = threading.Lock()
        self._stats: Dict[str, Dict[str, Any]] = {
            ep.name: {
                "success": 0,
                "errors": 0,
                "avg_latency_ms": 0.0,
                "last_error": None,
                "last_error_time": 0.0,
            }
            for ep in self._endpoints
        }

        Logger.info(f"[RPC] Endpoint pool initialized with {len(self._endpoints)} endpoints")

    @classmethod
    def from_urls(cls, urls: Iterable[str], timeout: float = 10.0) -> "EndpointPool":
        """Build one SolanaRpcTransport per URL. Blanks and duplicates are dropped."""
        unique = list(dict.fromkeys(u.strip() for u in urls if u and u.strip()))
        return cls(
            RpcEndpoint(name=f"rpc-{i}", url=url, transport=SolanaRpcTransport(url, timeout=timeout))
            for i, url in enumerate(unique)
        )

    # =========================================================================
    # ROTATION
    # =========================================================================

    def current(self) -> RpcEndpoint:
        with self._lock:
            if not self._endpoints:
                raise PoolEmpty()
            return self._endpoints[self._index]

    def rotate(self) -> None:
        """Advance to the next endpoint (modulo pool size)."""
        with self._lock:
            if not self._endpoints:
                return
            old = self._endpoints[self._index]
            self._index = (self._index + 1) % len(self._endpoints)
            new = self._endpoints[self._index]

        if old is not new:
            Logger.warning(f"[RPC] Switching endpoint: {old.name} -> {new.name}")

    # =========================================================================
    # HEALTH BOOKKEEPING (observational only)
    # =========================================================================

    def record_success(self, endpoint: RpcEndpoint, latency_ms: float) -> None:
        with self._lock:
            s = self._stats.get(endpoint.name)
            if s is None:
                return
            s["success"] += 1
            # Exponential moving average for latency
            if s["avg_latency_ms"] == 0:
                s["avg_latency_ms"] = latency_ms
            else:
                s["avg_latency_ms"] = 0.9 * s["avg_latency_ms"] + 0.1 * latency_ms

    def record_failure(self, endpoint: RpcEndpoint, error: str) -> None:
        with self._lock:
            s = self._stats.get(endpoint.name)
            if s is None:
                return
            s["errors"] += 1
            s["last_error"] = error
            s["last_error_time"] = time.time()

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def endpoints(self) -> List[RpcEndpoint]:
        with self._lock:
            return list(self._endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def status(self) -> Dict[str, Any]:
        with self._lock:
            active: Optional[RpcEndpoint] = self._endpoints[self._index] if self._endpoints else None
            return {
                "active": active.name if active else None,
                "active_url": active.url if active else None,
                "index": self._index,
                "size": len(self._endpoints),
                "endpoints": {name: dict(stats) for name, stats in self._stats.items()},
            }
