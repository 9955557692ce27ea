"""
Submission Result Reporter
==========================
Normalizes every submit outcome into one immutable `SubmitResult`.

    confirmed + fill data      -> CONFIRMED
    confirmed, no fill data    -> CONFIRMED_NO_FILL   (partial: outcome known, figures not)
    transport budget exhausted -> FAILED
    preflight / execution err  -> REJECTED
    confirmation ceiling hit   -> TIMEOUT             (outcome unknown)
    sent, confirm read failed  -> TIMEOUT             (outcome unknown, OUTCOME_UNKNOWN code)

Usage:
    result = await submitter.submit(signed)
    if result.confirmed:
        log(f"Filled {result.fill_qty} @ {result.fill_price}")
    elif result.outcome_unknown:
        reconcile(result.signature)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from sol_exec.shared.execution.schemas import Fill
from sol_exec.shared.system.errors import (
    ConfirmationTimeout,
    NotFoundError,
    OutcomeUnknown,
    PoolEmpty,
    RejectedOnChain,
    TransportError,
    UnavailableError,
)


class ExecutionStatus(Enum):
    """Status codes for submission results."""

    CONFIRMED = "CONFIRMED"
    CONFIRMED_NO_FILL = "CONFIRMED_NO_FILL"
    FAILED = "FAILED"
    REJECTED = "REJECTED"
    TIMEOUT = "TIMEOUT"


class ErrorCode(Enum):
    """Standardized error codes for submission failures."""

    # Caller configuration
    NOT_FOUND = "NOT_FOUND"
    UNAVAILABLE = "UNAVAILABLE"
    ENDPOINT_UNAVAILABLE = "ENDPOINT_UNAVAILABLE"

    # Network
    RPC_ERROR = "RPC_ERROR"
    TIMEOUT = "TIMEOUT"
    OUTCOME_UNKNOWN = "OUTCOME_UNKNOWN"

    # Chain
    REJECTED_ON_CHAIN = "REJECTED_ON_CHAIN"

    # Settlement
    FILL_DATA_UNAVAILABLE = "FILL_DATA_UNAVAILABLE"

    # General
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class SubmitResult:
    """One submission attempt, as reported to the caller."""

    signature: str
    confirmed: bool
    fill_qty: int = 0
    fill_price: float = 0.0
    error: Optional[str] = None

    status: ExecutionStatus = ExecutionStatus.FAILED
    error_code: Optional[ErrorCode] = None
    fill_available: bool = False
    attempts: int = 0
    endpoint: Optional[str] = None

    @property
    def is_partial(self) -> bool:
        """Landed, but settlement figures could not be read."""
        return self.status == ExecutionStatus.CONFIRMED_NO_FILL

    @property
    def outcome_unknown(self) -> bool:
        """The transaction may still land; reconcile by signature."""
        return self.status == ExecutionStatus.TIMEOUT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "confirmed": self.confirmed,
            "fillQty": self.fill_qty,
            "fillPrice": self.fill_price,
            "error": self.error,
            "status": self.status.value,
            "errorCode": self.error_code.value if self.error_code else None,
            "fillAvailable": self.fill_available,
            "attempts": self.attempts,
            "endpoint": self.endpoint,
        }

    def __repr__(self) -> str:
        if self.confirmed:
            return (
                f"SubmitResult({self.status.value}: {self.fill_qty} @ {self.fill_price:.6f}, "
                f"tx={self.signature[:12]}...)"
            )
        return f"SubmitResult({self.status.value}: {self.error_code}, {self.error})"


# ═══════════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def confirmed_result(signature: str, fill: Fill, **kwargs) -> SubmitResult:
    """Landed and settlement figures were read."""
    return SubmitResult(
        signature=signature,
        confirmed=True,
        fill_qty=fill.quantity,
        fill_price=fill.price,
        status=ExecutionStatus.CONFIRMED,
        fill_available=True,
        attempts=kwargs.get("attempts", 1),
        endpoint=kwargs.get("endpoint"),
    )


def unfilled_result(signature: str, **kwargs) -> SubmitResult:
    """Landed, fill data unavailable. Figures are zero, never guessed."""
    return SubmitResult(
        signature=signature,
        confirmed=True,
        status=ExecutionStatus.CONFIRMED_NO_FILL,
        error_code=ErrorCode.FILL_DATA_UNAVAILABLE,
        fill_available=False,
        attempts=kwargs.get("attempts", 1),
        endpoint=kwargs.get("endpoint"),
    )


def failure_result(error_code: ErrorCode, error_message: str, signature: str = "", **kwargs) -> SubmitResult:
    return SubmitResult(
        signature=signature,
        confirmed=False,
        error=error_message,
        status=ExecutionStatus.FAILED,
        error_code=error_code,
        attempts=kwargs.get("attempts", 0),
        endpoint=kwargs.get("endpoint"),
    )


def rejected_result(error_message: str, signature: str = "", **kwargs) -> SubmitResult:
    return SubmitResult(
        signature=signature,
        confirmed=False,
        error=error_message,
        status=ExecutionStatus.REJECTED,
        error_code=ErrorCode.REJECTED_ON_CHAIN,
        attempts=kwargs.get("attempts", 1),
        endpoint=kwargs.get("endpoint"),
    )


def timeout_result(signature: str, timeout_s: float, **kwargs) -> SubmitResult:
    return SubmitResult(
        signature=signature,
        confirmed=False,
        error=(
            f"Confirmation timeout after {timeout_s:.1f}s: outcome unknown, "
            f"reconcile by signature {signature}"
        ),
        status=ExecutionStatus.TIMEOUT,
        error_code=ErrorCode.TIMEOUT,
        attempts=kwargs.get("attempts", 1),
        endpoint=kwargs.get("endpoint"),
    )


def outcome_unknown_result(signature: str, reason: str, **kwargs) -> SubmitResult:
    """Sent, but landing could not be observed. Never re-sign; reconcile by signature."""
    return SubmitResult(
        signature=signature,
        confirmed=False,
        error=f"Outcome unknown: {reason}; reconcile by signature {signature}",
        status=ExecutionStatus.TIMEOUT,
        error_code=ErrorCode.OUTCOME_UNKNOWN,
        attempts=kwargs.get("attempts", 1),
        endpoint=kwargs.get("endpoint"),
    )


def classify_error(exc: BaseException) -> ErrorCode:
    """Map a taxonomy exception to its reporting code."""
    if isinstance(exc, PoolEmpty):
        return ErrorCode.ENDPOINT_UNAVAILABLE
    if isinstance(exc, NotFoundError):
        return ErrorCode.NOT_FOUND
    if isinstance(exc, UnavailableError):
        return ErrorCode.UNAVAILABLE
    if isinstance(exc, TransportError):
        return ErrorCode.RPC_ERROR
    if isinstance(exc, RejectedOnChain):
        return ErrorCode.REJECTED_ON_CHAIN
    if isinstance(exc, ConfirmationTimeout):
        return ErrorCode.TIMEOUT
    if isinstance(exc, OutcomeUnknown):
        return ErrorCode.OUTCOME_UNKNOWN
    return ErrorCode.UNKNOWN
