"""
Executor Error Taxonomy
=======================
Typed failures raised by the pools and the pipeline stages.

    ExecutorError
    ├── NotFoundError          caller configuration error, never retried
    │   └── WalletNotFound
    ├── UnavailableError       caller configuration error, never retried
    │   ├── CredentialUnavailable
    │   ├── EndpointUnavailable
    │   └── PoolEmpty
    ├── InvalidCredential
    ├── WalletBusy
    ├── TransportError         transient, retried within a stage budget
    ├── RejectedOnChain        not transient, re-run pre-sign before retrying
    └── OutcomeUnknown         sent, landing not observed, reconcile by signature
        └── ConfirmationTimeout
"""

from typing import Optional


class ExecutorError(Exception):
    """Base class for every error raised by the execution core."""


# ═══════════════════════════════════════════════════════════════════════════════
# NOT FOUND
# ═══════════════════════════════════════════════════════════════════════════════

class NotFoundError(ExecutorError):
    pass


class WalletNotFound(NotFoundError):
    def __init__(self, wallet_id: str):
        self.wallet_id = wallet_id
        super().__init__(f"Wallet not found: {wallet_id}")


# ═══════════════════════════════════════════════════════════════════════════════
# UNAVAILABLE
# ═══════════════════════════════════════════════════════════════════════════════

class UnavailableError(ExecutorError):
    pass


class CredentialUnavailable(UnavailableError):
    def __init__(self, wallet_id: str, reason: str = "watch-only wallet has no signing credential"):
        self.wallet_id = wallet_id
        super().__init__(f"Wallet {wallet_id}: {reason}")


class EndpointUnavailable(UnavailableError):
    def __init__(self, endpoint: str, reason: str):
        self.endpoint = endpoint
        super().__init__(f"Endpoint {endpoint} unavailable: {reason}")


class PoolEmpty(UnavailableError):
    def __init__(self, message: str = "No RPC endpoints configured"):
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════════════════════
# REGISTRATION / GUARD
# ═══════════════════════════════════════════════════════════════════════════════

class InvalidCredential(ExecutorError):
    pass


class WalletBusy(ExecutorError):
    def __init__(self, wallet_id: str):
        self.wallet_id = wallet_id
        super().__init__(f"Wallet {wallet_id} is busy")


# ═══════════════════════════════════════════════════════════════════════════════
# NETWORK / CHAIN
# ═══════════════════════════════════════════════════════════════════════════════

class TransportError(ExecutorError):
    """Network or RPC failure. Potentially transient."""

    def __init__(self, message: str, endpoint: Optional[str] = None):
        self.endpoint = endpoint
        super().__init__(message)


class RejectedOnChain(ExecutorError):
    """Preflight or execution rejection. Never resubmit the same transaction."""

    def __init__(self, message: str, signature: Optional[str] = None):
        self.signature = signature
        super().__init__(message)


class OutcomeUnknown(ExecutorError):
    """The node accepted the transaction; whether it landed is not known."""

    def __init__(self, signature: str, reason: str):
        self.signature = signature
        self.reason = reason
        super().__init__(f"{reason} for {signature}; outcome unknown, reconcile by signature")


class ConfirmationTimeout(OutcomeUnknown):
    def __init__(self, signature: str, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(signature, f"Confirmation not observed within {timeout_s:.1f}s")
