from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from sol_exec.shared.execution.executor import SolExecutor
from sol_exec.shared.execution.schemas import MAX_BPS, SignedTransaction, SwapIntent
from sol_exec.shared.system.errors import (
    InvalidCredential,
    NotFoundError,
    UnavailableError,
    WalletBusy,
)
from sol_exec.shared.system.logging import Logger


# --- Pydantic Models ---
class IntentBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    route: str
    input_mint: str = Field(alias="inputMint")
    output_mint: str = Field(alias="outputMint")
    amount_in: int = Field(alias="amountIn", ge=0)
    slippage_bps: int = Field(alias="slippageBps", ge=0, le=MAX_BPS)
    wallet_id: str = Field(alias="walletId")

    def to_intent(self) -> SwapIntent:
        return SwapIntent(
            route=self.route,
            input_mint=self.input_mint,
            output_mint=self.output_mint,
            amount_in=self.amount_in,
            slippage_bps=self.slippage_bps,
            wallet_id=self.wallet_id,
        )


class PreSignBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    wallet_id: str = Field(alias="walletId")
    intent: IntentBody


class SubmitBody(BaseModel):
    """
    `transaction` is the base64 wire form returned by /pre-sign.

    Fill figures need `intent` (echoed by /pre-sign); without it a landed
    transaction is reported CONFIRMED_NO_FILL.
    """
    model_config = ConfigDict(populate_by_name=True)

    transaction: str
    wallet_id: str = Field(default="", alias="walletId")
    intent: Optional[IntentBody] = None
    confirm_timeout: Optional[float] = Field(default=None, alias="confirmTimeout", gt=0)


class BusyBody(BaseModel):
    busy: bool


def create_app(executor: Optional[SolExecutor] = None) -> FastAPI:
    """HTTP facade over one SolExecutor. Builds one from Settings when none is given."""
    executor = executor or SolExecutor.from_settings()

    # --- Lifecycle ---
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Logger.info("[API] Executor service online")
        yield
        await executor.close()
        Logger.info("[API] Executor service shutting down")

    app = FastAPI(title="Sol Executor", version="1.0.0", docs_url="/docs", redoc_url=None, lifespan=lifespan)
    app.state.executor = executor

    # --- Error Mapping ---
    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(UnavailableError)
    async def unavailable(request: Request, exc: UnavailableError):
        return JSONResponse(status_code=503, content={"error": str(exc)})

    @app.exception_handler(WalletBusy)
    async def busy(request: Request, exc: WalletBusy):
        return JSONResponse(status_code=409, content={"error": str(exc)})

    @app.exception_handler(InvalidCredential)
    async def invalid_credential(request: Request, exc: InvalidCredential):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ValueError)
    async def bad_value(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    # --- Pipeline ---
    @app.post("/simulate")
    async def simulate(body: IntentBody):
        return executor.simulate_swap(body.to_intent()).to_dict()

    @app.post("/pre-sign")
    async def pre_sign(body: PreSignBody):
        signed = await executor.pre_sign_swap(body.wallet_id, body.intent.to_intent())
        return {
            "transaction": signed.to_base64(),
            "signature": signed.signature,
            "intent": signed.intent.to_dict(),
        }

    @app.post("/submit")
    async def submit(body: SubmitBody):
        intent = body.intent.to_intent() if body.intent else None
        signed = SignedTransaction.from_base64(body.transaction, wallet_id=body.wallet_id, intent=intent)
        result = await executor.submit_transaction(signed, confirm_timeout=body.confirm_timeout)
        return result.to_dict()

    # --- Wallets ---
    @app.get("/wallet/{wallet_id}/balance")
    async def wallet_balance(wallet_id: str):
        return {"walletId": wallet_id, "balance": executor.get_wallet_balance(wallet_id)}

    @app.post("/wallet/{wallet_id}/busy")
    async def wallet_busy(wallet_id: str, body: BusyBody):
        executor.set_wallet_busy(wallet_id, body.busy)
        return {"walletId": wallet_id, "busy": body.busy}

    @app.get("/wallet/{wallet_id}/status")
    async def wallet_status(wallet_id: str):
        return executor.get_wallet_status(wallet_id).to_dict()

    # --- RPC ---
    @app.post("/rpc/rotate")
    async def rotate():
        executor.rotate_rpc_client()
        return {"active": executor.endpoints.current().name}

    @app.get("/health")
    async def health():
        return executor.status()

    return app
