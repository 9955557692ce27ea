"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO I/O ALLOWED.

All unit tests should be completely isolated from:
- Network (RPC, HTTP)
- File system (except tmp_path)

RPC access goes through tests.mocks.mock_rpc.MockTransport.
"""

import pytest


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable all network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Use tests.mocks.mock_rpc.MockTransport instead."
        )

    # solana-py's AsyncClient posts through httpx
    monkeypatch.setattr("httpx.AsyncClient.get", block_network)
    monkeypatch.setattr("httpx.AsyncClient.post", block_network)


# ============================================================================
# PIPELINE FIXTURES
# ============================================================================


@pytest.fixture
def failing_transport():
    """Transport whose every send fails with a transient TransportError."""
    from sol_exec.shared.system.errors import TransportError
    from tests.mocks.mock_rpc import MockTransport

    transport = MockTransport()
    transport.fail_sends(TransportError("connection reset by peer"))
    return transport


@pytest.fixture
def settlement_for(keypair, intent):
    """Build a Settlement where the wallet received `qty` of the output mint."""
    from sol_exec.shared.infrastructure.rpc_transport import Settlement

    def _build(signature: str, qty: int = 950_000) -> Settlement:
        owner = str(keypair.pubkey())
        return Settlement(
            signature=signature,
            slot=250_000_000,
            fee=5000,
            pre_token_balances={(owner, intent.output_mint): 0},
            post_token_balances={(owner, intent.output_mint): qty},
        )

    return _build
