"""
Mock RPC Transport
==================
Fake RpcTransport for testing the pipeline without network calls.
"""

import asyncio
from collections import Counter
from typing import Dict, List, Optional, Set

from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from sol_exec.shared.execution.program_adapter import PlaceholderProgramAdapter
from sol_exec.shared.execution.schemas import Anchor, SignedTransaction, SwapIntent
from sol_exec.shared.infrastructure.rpc_transport import SendConfig, Settlement
from sol_exec.shared.system.errors import TransportError


SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


def make_signed(
    keypair: Keypair,
    intent: Optional[SwapIntent] = None,
    blockhash: Optional[Hash] = None,
) -> SignedTransaction:
    """Sign a placeholder transaction locally."""
    blockhash = blockhash or Hash.new_unique()
    instructions = PlaceholderProgramAdapter().build_instructions(intent, keypair.pubkey())
    message = Message.new_with_blockhash(instructions, keypair.pubkey(), blockhash)
    return SignedTransaction(
        wallet_id=intent.wallet_id if intent else "",
        transaction=Transaction([keypair], message, blockhash),
        anchor=Anchor(blockhash=blockhash, last_valid_block_height=1_000),
        intent=intent,
    )


class MockTransport:
    """
    Scriptable RpcTransport.

    Returns preset responses and counts every call.

    Usage:
        transport = MockTransport()
        transport.balances[str(pubkey)] = 2_000_000_000
        transport.fail_sends(TransportError("reset"), times=2)   # then succeed
        transport.settlement = Settlement(...)
    """

    def __init__(self):
        self.balances: Dict[str, int] = {}
        self.failing_balances: Set[str] = set()
        self.blockhash = Hash.new_unique()
        self.last_valid_block_height = 1_000
        self.blockhash_error: Optional[Exception] = None
        self.settlement: Optional[Settlement] = None
        self.settlement_error: Optional[Exception] = None
        self.hang = False
        self.closed = False

        self.sent: List[Transaction] = []
        self.configs: List[SendConfig] = []
        self.block_heights: List[Optional[int]] = []
        self.calls: Counter = Counter()

        self._send_error: Optional[Exception] = None
        self._send_failures: Optional[int] = None

    def fail_sends(self, error: Exception, times: Optional[int] = None):
        """Raise `error` on the first `times` sends (every send when None)."""
        self._send_error = error
        self._send_failures = times

    async def get_balance(self, pubkey: Pubkey) -> int:
        self.calls["get_balance"] += 1
        if str(pubkey) in self.failing_balances:
            raise TransportError(f"getBalance failed for {pubkey}", endpoint="mock")
        return self.balances.get(str(pubkey), 0)

    async def get_latest_blockhash(self) -> Anchor:
        self.calls["get_latest_blockhash"] += 1
        if self.blockhash_error is not None:
            raise self.blockhash_error
        return Anchor(blockhash=self.blockhash, last_valid_block_height=self.last_valid_block_height)

    async def send_and_confirm(
        self, tx: Transaction, config: SendConfig, last_valid_block_height: Optional[int] = None
    ) -> str:
        self.calls["send_and_confirm"] += 1
        self.sent.append(tx)
        self.configs.append(config)
        self.block_heights.append(last_valid_block_height)

        if self.hang:
            await asyncio.sleep(3600)
        if self._send_error is not None:
            if self._send_failures is None or self.calls["send_and_confirm"] <= self._send_failures:
                raise self._send_error
        return str(tx.signatures[0])

    async def get_settlement(self, signature: str) -> Optional[Settlement]:
        self.calls["get_settlement"] += 1
        if self.settlement_error is not None:
            raise self.settlement_error
        return self.settlement

    async def close(self) -> None:
        self.closed = True
