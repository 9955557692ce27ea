"""
Sol Executor Test Configuration
===============================
Shared fixtures and pytest markers for the test suite.
"""

import pytest
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def quiet_logger(monkeypatch):
    """No console noise and no log files from tests."""
    from sol_exec.shared.system.logging import Logger

    monkeypatch.setattr("config.settings.Settings.LOG_TO_FILE", False)
    Logger.set_silent(True)
    yield
    Logger.set_silent(False)


@pytest.fixture
def keypair():
    from solders.keypair import Keypair
    return Keypair()


@pytest.fixture
def transport():
    from tests.mocks.mock_rpc import MockTransport
    return MockTransport()


@pytest.fixture
def endpoints(transport):
    """Single-endpoint pool over the mock transport."""
    from sol_exec.shared.infrastructure.rpc_pool import EndpointPool, RpcEndpoint
    return EndpointPool([RpcEndpoint(name="mock-0", url="mock://0", transport=transport)])


@pytest.fixture
def wallets(keypair):
    """Pool with one signing wallet 'w1'."""
    from sol_exec.shared.state.wallet_pool import WalletPool

    pool = WalletPool()
    pool.register("w1", credential=keypair)
    return pool


@pytest.fixture
def intent():
    from sol_exec.shared.execution.schemas import SwapIntent
    from tests.mocks.mock_rpc import SOL_MINT, USDC_MINT
    return SwapIntent(
        route="jupiter",
        input_mint=SOL_MINT,
        output_mint=USDC_MINT,
        amount_in=1_000_000,
        slippage_bps=50,
        wallet_id="w1",
    )


@pytest.fixture
def signed(keypair, intent):
    """A signed placeholder transaction, built without any transport."""
    from tests.mocks.mock_rpc import make_signed
    return make_signed(keypair, intent)
