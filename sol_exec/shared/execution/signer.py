"""
Transaction Signer (pre-sign stage)
===================================
Turns a SwapIntent into a fully signed, unsent transaction.

    WalletPool.signer_pubkey()      -> payer (fails fast, no network)
    EndpointPool.current()          -> transport
    transport.get_latest_blockhash  -> Anchor
    ProgramAdapter.build_instructions
    WalletPool.sign()               -> SignedTransaction

The only observable side effect is the blockhash read. Dropping the returned
object is a clean cancellation.
"""

from typing import Optional

from solders.message import Message

from sol_exec.shared.execution.program_adapter import PlaceholderProgramAdapter, ProgramAdapter
from sol_exec.shared.execution.schemas import SignedTransaction, SwapIntent
from sol_exec.shared.infrastructure.rpc_pool import EndpointPool
from sol_exec.shared.state.wallet_pool import WalletPool
from sol_exec.shared.system.errors import EndpointUnavailable, TransportError
from sol_exec.shared.system.logging import Logger, short_key


class TransactionSigner:
    """
    Usage:
        signer = TransactionSigner(wallets, endpoints)
        signed = await signer.pre_sign("w1", intent)
        signed.signature    # known before submission
    """

    def __init__(
        self,
        wallets: WalletPool,
        endpoints: EndpointPool,
        program_adapter: Optional[ProgramAdapter] = None,
    ):
        self.wallets = wallets
        self.endpoints = endpoints
        self.program_adapter = program_adapter or PlaceholderProgramAdapter()

    async def pre_sign(self, wallet_id: str, intent: SwapIntent) -> SignedTransaction:
        """
        Raises:
            ValueError: intent belongs to a different wallet
            WalletNotFound / CredentialUnavailable: before any network call
            PoolEmpty: no endpoints configured
            EndpointUnavailable: blockhash fetch failed
        """
        if intent.wallet_id != wallet_id:
            raise ValueError(
                f"Intent is for wallet {intent.wallet_id!r}, refusing to sign with {wallet_id!r}"
            )

        payer = self.wallets.signer_pubkey(wallet_id)
        endpoint = self.endpoints.current()

        try:
            anchor = await endpoint.transport.get_latest_blockhash()
        except TransportError as e:
            self.endpoints.record_failure(endpoint, str(e))
            raise EndpointUnavailable(endpoint.name, str(e)) from e

        instructions = self.program_adapter.build_instructions(intent, payer)
        message = Message.new_with_blockhash(instructions, payer, anchor.blockhash)
        transaction = self.wallets.sign(wallet_id, message, anchor.blockhash)

        signed = SignedTransaction(
            wallet_id=wallet_id,
            transaction=transaction,
            anchor=anchor,
            intent=intent,
        )
        Logger.info(
            f"[SIGNER] Pre-signed {intent.route} for {wallet_id} "
            f"(sig {short_key(signed.signature)}, blockhash {short_key(str(anchor.blockhash))})"
        )
        return signed
