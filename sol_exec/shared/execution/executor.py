"""
Sol Executor
============
Facade owning one WalletPool, one EndpointPool and the three pipeline stages.

Each executor is an independent, injectable object; tests and multi-tenant
processes create as many as they need.

Typical caller flow:

    executor = SolExecutor.from_settings()
    executor.add_wallet("w1", credential=keypair)

    sim = executor.simulate_swap(intent)
    if sim.ok:
        with claim_wallet(executor.wallets, "w1"):
            signed = await executor.pre_sign_swap("w1", intent)
            result = await executor.submit_transaction(signed)
"""

from typing import Any, Dict, Optional

from config.settings import Settings
from sol_exec.shared.execution.balance_sync import refresh_wallet_balance
from sol_exec.shared.execution.execution_result import SubmitResult
from sol_exec.shared.execution.program_adapter import PlaceholderProgramAdapter, ProgramAdapter
from sol_exec.shared.execution.schemas import SignedTransaction, SimResult, SwapIntent, WalletSnapshot
from sol_exec.shared.execution.signer import TransactionSigner
from sol_exec.shared.execution.simulator import QuoteProvider, SwapSimulator
from sol_exec.shared.execution.submitter import TransactionSubmitter
from sol_exec.shared.infrastructure.rpc_pool import EndpointPool
from sol_exec.shared.state.wallet_pool import Credential, WalletPool
from sol_exec.shared.system.logging import Logger


class SolExecutor:

    def __init__(
        self,
        endpoints: EndpointPool,
        wallets: Optional[WalletPool] = None,
        quote_provider: Optional[QuoteProvider] = None,
        program_adapter: Optional[ProgramAdapter] = None,
        max_attempts: Optional[int] = None,
        confirm_timeout: Optional[float] = None,
        retry_delay: Optional[float] = None,
    ):
        self.endpoints = endpoints
        self.wallets = wallets if wallets is not None else WalletPool()
        adapter = program_adapter or PlaceholderProgramAdapter()

        self.simulator = SwapSimulator(quote_provider=quote_provider)
        self.signer = TransactionSigner(self.wallets, self.endpoints, program_adapter=adapter)
        self.submitter = TransactionSubmitter(
            self.endpoints,
            program_adapter=adapter,
            max_attempts=max_attempts,
            confirm_timeout=confirm_timeout,
            retry_delay=retry_delay,
        )

    @classmethod
    def from_settings(cls, **kwargs) -> "SolExecutor":
        """Build from Settings.RPC_ENDPOINTS and the submission defaults."""
        endpoints = EndpointPool.from_urls(Settings.rpc_endpoints(), timeout=Settings.RPC_TIMEOUT_S)
        Logger.info(f"[SYSTEM] Executor ready with {len(endpoints)} RPC endpoints")
        return cls(endpoints, **kwargs)

    # =========================================================================
    # WALLETS
    # =========================================================================

    def add_wallet(
        self,
        wallet_id: str,
        public_key: Optional[str] = None,
        credential: Optional[Credential] = None,
    ) -> WalletSnapshot:
        return self.wallets.register(wallet_id, public_key=public_key, credential=credential)

    def get_wallet_balance(self, wallet_id: str) -> int:
        """Cached balance; see refresh_wallet_balance() for a network read."""
        return self.wallets.get_balance(wallet_id)

    async def refresh_wallet_balance(self, wallet_id: str) -> int:
        return await refresh_wallet_balance(self.wallets, self.endpoints, wallet_id)

    def set_wallet_busy(self, wallet_id: str, busy: bool) -> None:
        self.wallets.set_busy(wallet_id, busy)

    def get_wallet_status(self, wallet_id: str) -> WalletSnapshot:
        return self.wallets.snapshot(wallet_id)

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def simulate_swap(self, intent: SwapIntent) -> SimResult:
        return self.simulator.simulate(intent)

    async def pre_sign_swap(self, wallet_id: str, intent: SwapIntent) -> SignedTransaction:
        return await self.signer.pre_sign(wallet_id, intent)

    async def submit_transaction(
        self, signed: SignedTransaction, confirm_timeout: Optional[float] = None
    ) -> SubmitResult:
        return await self.submitter.submit(signed, confirm_timeout=confirm_timeout)

    # =========================================================================
    # RPC
    # =========================================================================

    def rotate_rpc_client(self) -> None:
        self.endpoints.rotate()

    def status(self) -> Dict[str, Any]:
        return {
            "wallets": [s.to_dict() for s in self.wallets.snapshots()],
            "rpc": self.endpoints.status(),
        }

    async def close(self) -> None:
        """Release transport connections."""
        for endpoint in self.endpoints.endpoints:
            close = getattr(endpoint.transport, "close", None)
            if close is not None:
                await close()
