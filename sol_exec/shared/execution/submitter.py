"""
Transaction Submitter (submit stage)
====================================
Sends a SignedTransaction through the CURRENT endpoint and reports the outcome.

Policy:
- preflight on, preflight + confirmation commitment "confirmed"
- TransportError       -> retried on the same endpoint, up to max_attempts
- RejectedOnChain      -> reported at once, never resubmitted verbatim
- confirmation ceiling -> TIMEOUT result, outcome unknown, not retried
- OutcomeUnknown       -> node accepted the send, landing not observed;
                          TIMEOUT result, never resent and never re-signed

The stage never rotates endpoints. Failover is the caller's decision:

    result = await submitter.submit(signed)
    if result.status is ExecutionStatus.FAILED:
        endpoints.rotate()
        result = await submitter.submit(signed)
"""

import asyncio
import time
from typing import Optional

from config.settings import Settings
from sol_exec.shared.execution.execution_result import (
    ErrorCode,
    SubmitResult,
    confirmed_result,
    failure_result,
    outcome_unknown_result,
    rejected_result,
    timeout_result,
    unfilled_result,
)
from sol_exec.shared.execution.program_adapter import PlaceholderProgramAdapter, ProgramAdapter
from sol_exec.shared.execution.schemas import SignedTransaction
from sol_exec.shared.infrastructure.rpc_pool import EndpointPool, RpcEndpoint
from sol_exec.shared.infrastructure.rpc_transport import SendConfig
from sol_exec.shared.system.errors import (
    ConfirmationTimeout,
    OutcomeUnknown,
    PoolEmpty,
    RejectedOnChain,
    TransportError,
)
from sol_exec.shared.system.logging import Logger, short_key


class TransactionSubmitter:
    """
    Usage:
        submitter = TransactionSubmitter(endpoints, max_attempts=3, confirm_timeout=30)
        result = await submitter.submit(signed)
    """

    def __init__(
        self,
        endpoints: EndpointPool,
        program_adapter: Optional[ProgramAdapter] = None,
        max_attempts: Optional[int] = None,
        confirm_timeout: Optional[float] = None,
        retry_delay: Optional[float] = None,
        send_config: Optional[SendConfig] = None,
    ):
        self.endpoints = endpoints
        self.program_adapter = program_adapter or PlaceholderProgramAdapter()
        self.max_attempts = Settings.SUBMIT_MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.confirm_timeout = Settings.CONFIRM_TIMEOUT_S if confirm_timeout is None else confirm_timeout
        self.retry_delay = Settings.SUBMIT_RETRY_DELAY_S if retry_delay is None else retry_delay
        self.send_config = send_config or SendConfig(max_retries=Settings.NODE_MAX_RETRIES)

        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.confirm_timeout <= 0:
            raise ValueError("confirm_timeout must be positive")

    async def submit(
        self, signed: SignedTransaction, confirm_timeout: Optional[float] = None
    ) -> SubmitResult:
        """Send and confirm. Always returns a SubmitResult, never raises taxonomy errors."""
        timeout = self.confirm_timeout if confirm_timeout is None else confirm_timeout
        if timeout <= 0:
            raise ValueError("confirm_timeout must be positive")

        try:
            endpoint = self.endpoints.current()
        except PoolEmpty as e:
            Logger.error(f"[SUBMIT] {e}")
            return failure_result(ErrorCode.ENDPOINT_UNAVAILABLE, str(e), signature=signed.signature)

        last_error = ""
        for attempt in range(1, self.max_attempts + 1):
            start = time.time()
            try:
                signature = await asyncio.wait_for(
                    endpoint.transport.send_and_confirm(
                        signed.transaction,
                        self.send_config,
                        signed.anchor.last_valid_block_height or None,
                    ),
                    timeout=timeout,
                )
            except (asyncio.TimeoutError, ConfirmationTimeout):
                self.endpoints.record_failure(endpoint, "confirmation timeout")
                Logger.warning(
                    f"[SUBMIT] {short_key(signed.signature)} not confirmed within {timeout:.1f}s "
                    f"on {endpoint.name}, outcome unknown"
                )
                return timeout_result(signed.signature, timeout, attempts=attempt, endpoint=endpoint.name)
            except OutcomeUnknown as e:
                self.endpoints.record_failure(endpoint, str(e))
                Logger.warning(f"[SUBMIT] {short_key(signed.signature)} sent via {endpoint.name}: {e.reason}")
                return outcome_unknown_result(
                    signed.signature, e.reason, attempts=attempt, endpoint=endpoint.name
                )
            except RejectedOnChain as e:
                self.endpoints.record_failure(endpoint, str(e))
                Logger.error(f"[SUBMIT] {short_key(signed.signature)} rejected: {e}")
                return rejected_result(
                    str(e), signature=signed.signature, attempts=attempt, endpoint=endpoint.name
                )
            except TransportError as e:
                last_error = str(e)
                self.endpoints.record_failure(endpoint, last_error)
                Logger.warning(
                    f"[SUBMIT] Attempt {attempt}/{self.max_attempts} on {endpoint.name} failed: {e}"
                )
                if attempt < self.max_attempts and self.retry_delay > 0:
                    await asyncio.sleep(self.retry_delay * attempt)
                continue

            self.endpoints.record_success(endpoint, (time.time() - start) * 1000)
            Logger.success(f"[SUBMIT] Confirmed {short_key(signature)} via {endpoint.name}")
            return await self._report(signed, signature, attempt, endpoint)

        Logger.error(f"[SUBMIT] Gave up on {short_key(signed.signature)} after {self.max_attempts} attempts")
        return failure_result(
            ErrorCode.RPC_ERROR,
            f"Transport error after {self.max_attempts} attempts: {last_error}",
            signature=signed.signature,
            attempts=self.max_attempts,
            endpoint=endpoint.name,
        )

    async def _report(
        self, signed: SignedTransaction, signature: str, attempts: int, endpoint: RpcEndpoint
    ) -> SubmitResult:
        """Attach settlement figures, or flag them unavailable."""
        if signed.intent is None:
            return unfilled_result(signature, attempts=attempts, endpoint=endpoint.name)

        owner = str(signed.transaction.message.account_keys[0])
        try:
            settlement = await endpoint.transport.get_settlement(signature)
        except TransportError as e:
            Logger.warning(f"[SUBMIT] Settlement read failed for {short_key(signature)}: {e}")
            return unfilled_result(signature, attempts=attempts, endpoint=endpoint.name)

        fill = self.program_adapter.extract_fill(signed.intent, owner, settlement)
        if fill is None:
            Logger.info(f"[SUBMIT] Fill data unavailable for {short_key(signature)}")
            return unfilled_result(signature, attempts=attempts, endpoint=endpoint.name)

        return confirmed_result(signature, fill, attempts=attempts, endpoint=endpoint.name)
