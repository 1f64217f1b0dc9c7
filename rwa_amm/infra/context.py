"""
Program context shared by the functional modules

Modules receive everything they touch on the network through this object,
so tests can hand them a fake RPC and a recording transaction builder.
"""

from dataclasses import dataclass
from typing import Any, Optional

from solders.pubkey import Pubkey

from ..protocols.constants import amm_program_id, transfer_hook_program_id


@dataclass
class ProgramContext:
    """
    Attributes:
        rpc: Read side (RpcClient or anything with the same methods)
        tx_builder: Write side; must provide pubkey and execute()
        amm_program_id: AMM program (defaults to config / built-in id)
        hook_program_id: KYC transfer hook program (defaults to config / built-in id)
    """
    rpc: Any
    tx_builder: Any
    amm_program_id: Optional[Pubkey] = None
    hook_program_id: Optional[Pubkey] = None

    def __post_init__(self):
        if self.amm_program_id is None:
            self.amm_program_id = Pubkey.from_string(amm_program_id())
        elif isinstance(self.amm_program_id, str):
            self.amm_program_id = Pubkey.from_string(self.amm_program_id)
        if self.hook_program_id is None:
            self.hook_program_id = Pubkey.from_string(transfer_hook_program_id())
        elif isinstance(self.hook_program_id, str):
            self.hook_program_id = Pubkey.from_string(self.hook_program_id)

    @property
    def pubkey(self) -> str:
        """Wallet (fee payer) public key"""
        return self.tx_builder.pubkey

    @property
    def payer(self) -> Pubkey:
        return Pubkey.from_string(self.tx_builder.pubkey)
