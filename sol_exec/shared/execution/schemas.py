"""
Execution Schemas
==================
Immutable records flowing through the simulate → pre-sign → submit pipeline.

Wire names (camelCase) follow the contract of the orchestrator that drives
this executor, see `to_dict()` / `from_dict()`.
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional

from solders.hash import Hash
from solders.transaction import Transaction


MAX_BPS = 10_000


def _pick(data: Dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel, default)


@dataclass(frozen=True)
class SwapIntent:
    """
    A swap request produced by an external strategy component.

    Example:
        intent = SwapIntent(
            route="jupiter",
            input_mint="So11111111111111111111111111111111111111112",    # SOL
            output_mint="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",  # USDC
            amount_in=1_000_000,  # lamports
            slippage_bps=50,
            wallet_id="w1",
        )
    """
    route: str
    input_mint: str
    output_mint: str
    amount_in: int
    slippage_bps: int
    wallet_id: str

    def __post_init__(self):
        if isinstance(self.amount_in, bool) or not isinstance(self.amount_in, int):
            raise ValueError(f"amount_in must be an integer, got {self.amount_in!r}")
        if self.amount_in < 0:
            raise ValueError(f"amount_in must be non-negative, got {self.amount_in}")
        if isinstance(self.slippage_bps, bool) or not isinstance(self.slippage_bps, int):
            raise ValueError(f"slippage_bps must be an integer, got {self.slippage_bps!r}")
        if not 0 <= self.slippage_bps <= MAX_BPS:
            raise ValueError(f"slippage_bps must be within 0..{MAX_BPS}, got {self.slippage_bps}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwapIntent":
        """Accept both snake_case and the orchestrator's camelCase keys."""
        return cls(
            route=_pick(data, "route", "route", ""),
            input_mint=_pick(data, "input_mint", "inputMint", ""),
            output_mint=_pick(data, "output_mint", "outputMint", ""),
            amount_in=_pick(data, "amount_in", "amountIn", 0),
            slippage_bps=_pick(data, "slippage_bps", "slippageBps", 0),
            wallet_id=_pick(data, "wallet_id", "walletId", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route": self.route,
            "inputMint": self.input_mint,
            "outputMint": self.output_mint,
            "amountIn": self.amount_in,
            "slippageBps": self.slippage_bps,
            "walletId": self.wallet_id,
        }


@dataclass(frozen=True)
class SimResult:
    """Outcome of the simulate stage. Never persisted."""
    ok: bool
    expected_output: int
    price_impact: float
    error: Optional[str] = None
    source: str = "fallback"  # "quote" | "fallback" | "invalid"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "expectedOutput": self.expected_output,
            "priceImpact": self.price_impact,
            "error": self.error,
            "source": self.source,
        }


@dataclass(frozen=True)
class WalletSnapshot:
    """Status view of a wallet. Carries no credential material."""
    wallet_id: str
    public_key: str
    balance: int
    busy: bool
    watch_only: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.wallet_id,
            "pubkey": self.public_key,
            "balance": self.balance,
            "busy": self.busy,
            "watchOnly": self.watch_only,
        }


class Anchor(NamedTuple):
    """Recent blockhash a transaction is pinned to."""
    blockhash: Hash
    last_valid_block_height: int


@dataclass(frozen=True)
class Fill:
    """Post-trade settlement figures read from the chain."""
    quantity: int   # output units, smallest denomination
    price: float    # input units paid per output unit


@dataclass(frozen=True)
class SignedTransaction:
    """
    Output of the pre-sign stage: fully signed, never sent.

    Dropping this object is a side-effect-free cancellation.
    """
    wallet_id: str
    transaction: Transaction
    anchor: Anchor
    intent: Optional[SwapIntent] = None

    @property
    def signature(self) -> str:
        return str(self.transaction.signatures[0])

    def to_base64(self) -> str:
        return base64.b64encode(bytes(self.transaction)).decode("ascii")

    @classmethod
    def from_base64(
        cls,
        raw: str,
        wallet_id: str = "",
        intent: Optional[SwapIntent] = None,
    ) -> "SignedTransaction":
        """Rehydrate a wire transaction. The anchor height is unknown (0)."""
        tx = Transaction.from_bytes(base64.b64decode(raw))
        anchor = Anchor(blockhash=tx.message.recent_blockhash, last_valid_block_height=0)
        return cls(wallet_id=wallet_id, transaction=tx, anchor=anchor, intent=intent)
