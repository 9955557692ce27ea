"""
Submission Result Reporter Unit Tests
=====================================
"""

import pytest

from sol_exec.shared.system import errors


class TestFactories:

    def test_confirmed_result_carries_fill(self):
        from sol_exec.shared.execution.execution_result import ExecutionStatus, confirmed_result
        from sol_exec.shared.execution.schemas import Fill

        result = confirmed_result("SIG", Fill(quantity=950_000, price=1.05), attempts=2, endpoint="rpc-0")

        assert result.confirmed
        assert result.status == ExecutionStatus.CONFIRMED
        assert result.fill_qty == 950_000
        assert result.fill_price == pytest.approx(1.05)
        assert result.fill_available
        assert result.error is None
        assert result.attempts == 2
        assert result.endpoint == "rpc-0"

    def test_unfilled_result_is_partial(self):
        from sol_exec.shared.execution.execution_result import ErrorCode, unfilled_result

        result = unfilled_result("SIG")

        assert result.confirmed
        assert result.is_partial
        assert result.fill_qty == 0
        assert result.fill_price == 0.0
        assert not result.fill_available
        assert result.error_code == ErrorCode.FILL_DATA_UNAVAILABLE

    def test_failure_result(self):
        from sol_exec.shared.execution.execution_result import ErrorCode, ExecutionStatus, failure_result

        result = failure_result(ErrorCode.RPC_ERROR, "Transport error after 3 attempts", signature="SIG", attempts=3)

        assert not result.confirmed
        assert result.status == ExecutionStatus.FAILED
        assert result.error
        assert result.signature == "SIG"
        assert result.attempts == 3

    def test_timeout_result_is_outcome_unknown(self):
        from sol_exec.shared.execution.execution_result import ErrorCode, timeout_result

        result = timeout_result("SIG", 30.0)

        assert not result.confirmed
        assert result.outcome_unknown
        assert result.error_code == ErrorCode.TIMEOUT
        assert "SIG" in result.error

    def test_outcome_unknown_result(self):
        from sol_exec.shared.execution.execution_result import ErrorCode, ExecutionStatus, outcome_unknown_result

        result = outcome_unknown_result("SIG", "confirmTransaction failed after send: reset", endpoint="rpc-0")

        assert result.status == ExecutionStatus.TIMEOUT
        assert result.error_code == ErrorCode.OUTCOME_UNKNOWN
        assert result.outcome_unknown
        assert not result.confirmed
        assert result.attempts == 1
        assert "reset" in result.error
        assert "SIG" in result.error

    def test_rejected_result(self):
        from sol_exec.shared.execution.execution_result import ErrorCode, ExecutionStatus, rejected_result

        result = rejected_result("Preflight rejected: insufficient funds", signature="SIG")

        assert result.status == ExecutionStatus.REJECTED
        assert result.error_code == ErrorCode.REJECTED_ON_CHAIN
        assert not result.outcome_unknown


class TestSerialization:

    def test_to_dict_wire_names(self):
        from sol_exec.shared.execution.execution_result import confirmed_result
        from sol_exec.shared.execution.schemas import Fill

        data = confirmed_result("SIG", Fill(quantity=10, price=2.0)).to_dict()

        assert data["signature"] == "SIG"
        assert data["confirmed"] is True
        assert data["fillQty"] == 10
        assert data["fillPrice"] == 2.0
        assert data["status"] == "CONFIRMED"
        assert data["errorCode"] is None
        assert data["fillAvailable"] is True

    def test_repr_mentions_status(self):
        from sol_exec.shared.execution.execution_result import ErrorCode, failure_result

        assert "FAILED" in repr(failure_result(ErrorCode.RPC_ERROR, "boom"))


class TestClassifyError:

    @pytest.mark.parametrize(
        "exc, code",
        [
            (errors.PoolEmpty(), "ENDPOINT_UNAVAILABLE"),
            (errors.WalletNotFound("w"), "NOT_FOUND"),
            (errors.CredentialUnavailable("w"), "UNAVAILABLE"),
            (errors.TransportError("reset"), "RPC_ERROR"),
            (errors.RejectedOnChain("insufficient funds"), "REJECTED_ON_CHAIN"),
            (errors.ConfirmationTimeout("SIG", 1.0), "TIMEOUT"),
            (errors.OutcomeUnknown("SIG", "confirmTransaction failed after send"), "OUTCOME_UNKNOWN"),
            (RuntimeError("other"), "UNKNOWN"),
        ],
    )
    def test_maps_taxonomy(self, exc, code):
        from sol_exec.shared.execution.execution_result import classify_error

        assert classify_error(exc).value == code
