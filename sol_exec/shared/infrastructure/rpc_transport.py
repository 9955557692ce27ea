"""
Solana RPC Transport
====================
The three network capabilities the execution core needs from an RPC node,
plus a settlement read for post-trade fill data:

    get_balance(pubkey)            -> lamports
    get_latest_blockhash()         -> Anchor
    send_and_confirm(tx, config,
                     last_valid_block_height) -> signature
    get_settlement(signature)      -> Settlement | None

All failures are normalized into the executor taxonomy:
- TransportError       HTTP / connection / node errors (transient)
- RejectedOnChain      preflight or execution failure, expired blockhash
- OutcomeUnknown       accepted by the node, landing not observed
                       (ConfirmationTimeout when the node-side wait ran out)
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple, runtime_checkable

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed
from solana.rpc.core import (
    RPCException,
    TransactionExpiredBlockheightExceededError,
    UnconfirmedTxError,
)
from solana.rpc.types import TxOpts
from solders.pubkey import Pubkey
from solders.rpc.errors import SendTransactionPreflightFailureMessage
from solders.signature import Signature
from solders.transaction import Transaction

from sol_exec.shared.execution.schemas import Anchor
from sol_exec.shared.system.errors import (
    ConfirmationTimeout,
    OutcomeUnknown,
    RejectedOnChain,
    TransportError,
)
from sol_exec.shared.system.logging import Logger, short_key


# Node error texts that mean "this exact transaction will never land"
_REJECTION_MARKERS = (
    "blockhash not found",
    "transaction simulation failed",
    "insufficient funds",
    "custom program error",
    "instructionerror",
)


@dataclass(frozen=True)
class SendConfig:
    """Submission options. Defaults are the executor's production policy."""
    skip_preflight: bool = False
    preflight_commitment: Commitment = Confirmed
    commitment: Commitment = Confirmed
    max_retries: Optional[int] = 3  # node-side rebroadcast
    poll_interval_s: float = 0.5


@dataclass(frozen=True)
class Settlement:
    """
    Token balances around a landed transaction.

    Keys are (owner, mint) base58 pairs; values are raw token amounts.
    """
    signature: str
    slot: int
    fee: int = 0
    pre_token_balances: Dict[Tuple[str, str], int] = field(default_factory=dict)
    post_token_balances: Dict[Tuple[str, str], int] = field(default_factory=dict)

    def token_delta(self, owner: str, mint: str) -> int:
        key = (owner, mint)
        return self.post_token_balances.get(key, 0) - self.pre_token_balances.get(key, 0)


@runtime_checkable
class RpcTransport(Protocol):
    """Network collaborator contract. Every call may be slow or fail."""

    async def get_balance(self, pubkey: Pubkey) -> int:
        ...

    async def get_latest_blockhash(self) -> Anchor:
        ...

    async def send_and_confirm(
        self, tx: Transaction, config: SendConfig, last_valid_block_height: Optional[int] = None
    ) -> str:
        ...

    async def get_settlement(self, signature: str) -> Optional[Settlement]:
        ...


def _is_rejection(exc: RPCException) -> bool:
    err = exc.args[0] if exc.args else None
    if isinstance(err, SendTransactionPreflightFailureMessage):
        return True
    text = str(exc).lower()
    return any(marker in text for marker in _REJECTION_MARKERS)


def _already_processed(exc: RPCException) -> bool:
    """Resending a transaction that already reached the ledger."""
    return "already been processed" in str(exc).lower()


def _token_balances(balances) -> Dict[Tuple[str, str], int]:
    out: Dict[Tuple[str, str], int] = {}
    for entry in balances or []:
        if entry.owner is None:
            continue
        key = (str(entry.owner), str(entry.mint))
        out[key] = out.get(key, 0) + int(entry.ui_token_amount.amount)
    return out


class SolanaRpcTransport:
    """
    RpcTransport backed by solana-py's AsyncClient.

    Usage:
        transport = SolanaRpcTransport("https://api.mainnet-beta.solana.com")
        anchor = await transport.get_latest_blockhash()
    """

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[AsyncClient] = None):
        self.url = url
        self.timeout = timeout
        self._client = client or AsyncClient(url, commitment=Confirmed, timeout=timeout)

    async def close(self) -> None:
        await self._client.close()

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_balance(self, pubkey: Pubkey) -> int:
        try:
            resp = await self._client.get_balance(pubkey, commitment=Confirmed)
        except (SolanaRpcException, httpx.HTTPError, OSError, RPCException) as e:
            raise TransportError(f"getBalance failed: {e}", endpoint=self.url) from e
        return int(resp.value)

    async def get_latest_blockhash(self) -> Anchor:
        try:
            resp = await self._client.get_latest_blockhash(commitment=Confirmed)
        except (SolanaRpcException, httpx.HTTPError, OSError, RPCException) as e:
            raise TransportError(f"getLatestBlockhash failed: {e}", endpoint=self.url) from e
        return Anchor(
            blockhash=resp.value.blockhash,
            last_valid_block_height=resp.value.last_valid_block_height,
        )

    async def get_settlement(self, signature: str) -> Optional[Settlement]:
        try:
            resp = await self._client.get_transaction(
                Signature.from_string(signature),
                encoding="json",
                commitment=Confirmed,
                max_supported_transaction_version=0,
            )
        except (SolanaRpcException, httpx.HTTPError, OSError, RPCException) as e:
            raise TransportError(f"getTransaction failed: {e}", endpoint=self.url) from e

        if resp.value is None or resp.value.transaction.meta is None:
            return None

        meta = resp.value.transaction.meta
        return Settlement(
            signature=signature,
            slot=resp.value.slot,
            fee=meta.fee,
            pre_token_balances=_token_balances(meta.pre_token_balances),
            post_token_balances=_token_balances(meta.post_token_balances),
        )

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    async def send_and_confirm(
        self,
        tx: Transaction,
        config: SendConfig,
        last_valid_block_height: Optional[int] = None,
    ) -> str:
        """
        Send with preflight, then wait for `config.commitment`.

        With `last_valid_block_height` the node-side wait ends once the
        blockhash expires (RejectedOnChain). The caller owns the overall
        ceiling (asyncio.wait_for). Once the node has accepted the send,
        every failure is OutcomeUnknown: the transaction may still land.
        """
        opts = TxOpts(
            skip_preflight=config.skip_preflight,
            preflight_commitment=config.preflight_commitment,
            max_retries=config.max_retries,
        )
        expected = str(tx.signatures[0])
        start = time.time()

        try:
            resp = await self._client.send_transaction(tx, opts=opts)
        except RPCException as e:
            if _already_processed(e):
                raise OutcomeUnknown(expected, "Node reports transaction already processed") from e
            if _is_rejection(e):
                raise RejectedOnChain(f"Preflight rejected: {e}") from e
            raise TransportError(f"sendTransaction failed: {e}", endpoint=self.url) from e
        except (SolanaRpcException, httpx.HTTPError, OSError) as e:
            raise TransportError(f"sendTransaction failed: {e}", endpoint=self.url) from e

        signature = resp.value
        Logger.debug(f"[RPC] Sent {short_key(str(signature))} via {self.url}")

        confirm_kwargs = {"commitment": config.commitment, "sleep_seconds": config.poll_interval_s}
        if last_valid_block_height:
            confirm_kwargs["last_valid_block_height"] = last_valid_block_height

        try:
            status = await self._client.confirm_transaction(signature, **confirm_kwargs)
        except TransactionExpiredBlockheightExceededError as e:
            raise RejectedOnChain(f"Blockhash expired before confirmation: {e}", str(signature)) from e
        except UnconfirmedTxError as e:
            raise ConfirmationTimeout(str(signature), time.time() - start) from e
        except (SolanaRpcException, httpx.HTTPError, OSError, RPCException) as e:
            raise OutcomeUnknown(str(signature), f"confirmTransaction failed after send: {e}") from e

        landed = status.value[0] if status.value else None
        if landed is not None and landed.err is not None:
            raise RejectedOnChain(f"Execution failed: {landed.err}", str(signature))

        return str(signature)
