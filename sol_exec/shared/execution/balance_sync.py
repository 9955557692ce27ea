"""
Balance Refresher
=================
Reads lamport balances over RPC and writes them into the WalletPool cache.

Lives outside the pool so the pool itself never performs network I/O.
"""

from typing import Dict

from solders.pubkey import Pubkey

from sol_exec.shared.infrastructure.rpc_pool import EndpointPool
from sol_exec.shared.state.wallet_pool import WalletPool
from sol_exec.shared.system.errors import TransportError
from sol_exec.shared.system.logging import Logger


async def refresh_wallet_balance(wallets: WalletPool, endpoints: EndpointPool, wallet_id: str) -> int:
    """Query one wallet's balance via the current endpoint and cache it."""
    public_key = wallets.snapshot(wallet_id).public_key
    endpoint = endpoints.current()

    try:
        balance = await endpoint.transport.get_balance(Pubkey.from_string(public_key))
    except TransportError as e:
        endpoints.record_failure(endpoint, str(e))
        raise

    wallets.refresh_balance(wallet_id, balance)
    Logger.debug(f"[BALANCE] {wallet_id}: {balance} lamports")
    return balance


async def refresh_all_balances(wallets: WalletPool, endpoints: EndpointPool) -> Dict[str, int]:
    """Refresh every wallet; transport failures are logged and skipped."""
    refreshed: Dict[str, int] = {}
    for wallet_id in wallets.wallet_ids():
        try:
            refreshed[wallet_id] = await refresh_wallet_balance(wallets, endpoints, wallet_id)
        except TransportError as e:
            Logger.warning(f"[BALANCE] Refresh failed for {wallet_id}: {e}")
    return refreshed
