"""
Sol Executor Test Mocks
=======================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockTransport, make_signed

__all__ = [
    "MockTransport",
    "make_signed",
]
