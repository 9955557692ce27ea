"""
Wallet Pool
===========
Custody of the signing wallets used by the swap pipeline.

Each record carries the public key, an optional keypair (absent for
watch-only wallets), a cached lamport balance and a busy flag.

Locking:
- one registry lock guards insertion and lookup
- one lock per wallet guards that wallet's fields
Operations on different wallets never wait on each other's lock. No lock is
held across an await, so the pool is safe from threads and coroutines alike.

The busy flag is a visible marker, NOT a mutex on pipeline execution: `sign()`
does not look at it. Schedulers that want "one in-flight pipeline per wallet"
wrap the pipeline in `claim_wallet()`.

Keypairs never leave this module. Callers get signed transactions.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from sol_exec.shared.execution.schemas import WalletSnapshot
from sol_exec.shared.system.errors import (
    CredentialUnavailable,
    InvalidCredential,
    WalletBusy,
    WalletNotFound,
)
from sol_exec.shared.system.logging import Logger, short_key


# Keypair, 64 raw bytes, keypair-file JSON array, or base58 secret
Credential = Union[Keypair, bytes, bytearray, Sequence[int], str]


@dataclass
class Wallet:
    """Internal wallet record. Owned exclusively by WalletPool."""
    wallet_id: str
    public_key: str
    keypair: Optional[Keypair] = field(default=None, repr=False)
    balance: int = 0
    busy: bool = False

    def snapshot(self) -> WalletSnapshot:
        return WalletSnapshot(
            wallet_id=self.wallet_id,
            public_key=self.public_key,
            balance=self.balance,
            busy=self.busy,
            watch_only=self.keypair is None,
        )


def _load_keypair(credential: Credential) -> Keypair:
    if isinstance(credential, Keypair):
        return credential
    try:
        if isinstance(credential, str):
            return Keypair.from_base58_string(credential.strip())
        return Keypair.from_bytes(bytes(credential))
    except (ValueError, TypeError) as e:
        raise InvalidCredential(f"Could not derive keypair from credential: {e}") from e


def _parse_pubkey(public_key: str) -> Pubkey:
    try:
        return Pubkey.from_string(public_key.strip())
    except (ValueError, TypeError, AttributeError) as e:
        raise InvalidCredential(f"Invalid public key {public_key!r}: {e}") from e


class WalletPool:
    """
    Registry of wallets keyed by a logical wallet id.

    Usage:
        pool = WalletPool()
        pool.register("w1", credential=keypair)
        pool.refresh_balance("w1", 2_000_000_000)
        pool.get_balance("w1")          # 2_000_000_000
        with claim_wallet(pool, "w1"):
            ...                         # pre-sign + submit
    """

    def __init__(self):
        self._wallets: Dict[str, Wallet] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _entry(self, wallet_id: str) -> Tuple[Wallet, threading.Lock]:
        with self._registry_lock:
            wallet = self._wallets.get(wallet_id)
            if wallet is None:
                raise WalletNotFound(wallet_id)
            return wallet, self._locks[wallet_id]

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(
        self,
        wallet_id: str,
        public_key: Optional[str] = None,
        credential: Optional[Credential] = None,
    ) -> WalletSnapshot:
        """
        Insert or overwrite a wallet with balance 0 and busy=False.

        With a credential, the public key is derived from it and must match
        `public_key` when both are given. Without one, the wallet is
        watch-only and `public_key` is required.
        """
        if not wallet_id or not wallet_id.strip():
            raise ValueError("wallet_id must be a non-empty string")

        keypair: Optional[Keypair] = None
        if credential is not None:
            keypair = _load_keypair(credential)
            derived = str(keypair.pubkey())
            if public_key is not None and str(_parse_pubkey(public_key)) != derived:
                raise InvalidCredential(
                    f"Wallet {wallet_id}: credential derives {short_key(derived)}, "
                    f"expected {short_key(public_key)}"
                )
            resolved = derived
        elif public_key is not None:
            resolved = str(_parse_pubkey(public_key))
        else:
            raise InvalidCredential(f"Wallet {wallet_id}: public key or credential required")

        with self._registry_lock:
            existing = self._wallets.get(wallet_id)
            if existing is None:
                wallet = Wallet(wallet_id=wallet_id, public_key=resolved, keypair=keypair)
                self._wallets[wallet_id] = wallet
                self._locks[wallet_id] = threading.Lock()
                snapshot = wallet.snapshot()
            else:
                with self._locks[wallet_id]:
                    existing.public_key = resolved
                    existing.keypair = keypair
                    existing.balance = 0
                    existing.busy = False
                    snapshot = existing.snapshot()

        mode = "watch-only" if keypair is None else "signing"
        Logger.info(f"[WALLET] Registered {wallet_id} ({short_key(resolved)}, {mode})")
        return snapshot

    # =========================================================================
    # BALANCE CACHE
    # =========================================================================

    def get_balance(self, wallet_id: str) -> int:
        """Cached balance. Use refresh_balance() to update it."""
        wallet, lock = self._entry(wallet_id)
        with lock:
            return wallet.balance

    def refresh_balance(self, wallet_id: str, queried_value: int) -> None:
        """Overwrite the cached balance with a value read by the caller."""
        if queried_value < 0:
            raise ValueError(f"Balance cannot be negative: {queried_value}")
        wallet, lock = self._entry(wallet_id)
        with lock:
            wallet.balance = int(queried_value)

    # =========================================================================
    # BUSY FLAG
    # =========================================================================

    def set_busy(self, wallet_id: str, value: bool) -> None:
        wallet, lock = self._entry(wallet_id)
        with lock:
            wallet.busy = bool(value)

    def try_acquire(self, wallet_id: str) -> bool:
        """Atomic test-and-set. True when the flag went from False to True."""
        wallet, lock = self._entry(wallet_id)
        with lock:
            if wallet.busy:
                return False
            wallet.busy = True
            return True

    def release(self, wallet_id: str) -> None:
        self.set_busy(wallet_id, False)

    # =========================================================================
    # SIGNING (credential stays inside the wallet lock)
    # =========================================================================

    def signer_pubkey(self, wallet_id: str) -> Pubkey:
        """Fee payer for a signing wallet. No network access."""
        wallet, lock = self._entry(wallet_id)
        with lock:
            if wallet.keypair is None:
                raise CredentialUnavailable(wallet_id)
            return wallet.keypair.pubkey()

    def sign(self, wallet_id: str, message: Message, blockhash: Hash) -> Transaction:
        """Sign `message` with the wallet's keypair, borrowed for this call only."""
        wallet, lock = self._entry(wallet_id)
        with lock:
            keypair = wallet.keypair
            if keypair is None:
                raise CredentialUnavailable(wallet_id)
            if message.account_keys[0] != keypair.pubkey():
                raise CredentialUnavailable(wallet_id, "credential changed since the message was built")
            return Transaction([keypair], message, blockhash)

    # =========================================================================
    # STATUS
    # =========================================================================

    def snapshot(self, wallet_id: str) -> WalletSnapshot:
        wallet, lock = self._entry(wallet_id)
        with lock:
            return wallet.snapshot()

    def snapshots(self) -> List[WalletSnapshot]:
        return [self.snapshot(wallet_id) for wallet_id in self.wallet_ids()]

    def wallet_ids(self) -> List[str]:
        with self._registry_lock:
            return list(self._wallets)

    def __contains__(self, wallet_id: object) -> bool:
        with self._registry_lock:
            return wallet_id in self._wallets

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._wallets)


@contextmanager
def claim_wallet(pool: WalletPool, wallet_id: str) -> Iterator[str]:
    """
    Caller-side guard around one pipeline invocation.

    Raises WalletBusy if another invocation holds the wallet; always releases
    the flag on exit, including on error or cancellation.
    """
    if not pool.try_acquire(wallet_id):
        raise WalletBusy(wallet_id)
    try:
        yield wallet_id
    finally:
        pool.release(wallet_id)
