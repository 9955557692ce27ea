"""
Program Adapter
===============
Extension point between the pipeline and a concrete swap program.

An adapter does two things:
1. build_instructions(intent, payer)       -> instructions for pre-sign
2. extract_fill(intent, owner, settlement) -> Fill, or None when unknown

Real DEX integrations (Jupiter, Raydium, Orca...) implement this protocol and
are injected into the pipeline; nothing else in the pipeline changes.
"""

from typing import List, Optional, Protocol, runtime_checkable

from solders.instruction import Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID

from sol_exec.shared.execution.schemas import Fill, SwapIntent
from sol_exec.shared.infrastructure.rpc_transport import Settlement


@runtime_checkable
class ProgramAdapter(Protocol):

    def build_instructions(self, intent: SwapIntent, payer: Pubkey) -> List[Instruction]:
        ...

    def extract_fill(
        self, intent: SwapIntent, owner: str, settlement: Optional[Settlement]
    ) -> Optional[Fill]:
        ...


def fill_from_token_deltas(
    intent: SwapIntent, owner: str, settlement: Optional[Settlement]
) -> Optional[Fill]:
    """
    Read the fill from the owner's token balance changes.

    Quantity is the increase of the output mint. Price is input spent per
    output unit; input spent falls back to `amount_in` when the input side
    is not a token account (e.g. native SOL).
    """
    if settlement is None:
        return None

    received = settlement.token_delta(owner, intent.output_mint)
    if received <= 0:
        return None

    spent = -settlement.token_delta(owner, intent.input_mint)
    if spent <= 0:
        spent = intent.amount_in

    return Fill(quantity=received, price=spent / received)


class PlaceholderProgramAdapter:
    """
    Stand-in used until a real swap program is wired in.

    Emits a single no-op System Program instruction, so the transaction is
    well-formed and signable but moves no funds. Fill extraction reads real
    settlement deltas, which for this instruction yields no fill.
    """

    def build_instructions(self, intent: SwapIntent, payer: Pubkey) -> List[Instruction]:
        return [Instruction(program_id=SYSTEM_PROGRAM_ID, data=b"", accounts=[])]

    def extract_fill(
        self, intent: SwapIntent, owner: str, settlement: Optional[Settlement]
    ) -> Optional[Fill]:
        return fill_from_token_deltas(intent, owner, settlement)
