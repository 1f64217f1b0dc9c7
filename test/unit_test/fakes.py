"""
Test doubles for module tests

FakeRpc serves account data from an in-memory map; RecordingTxBuilder
records every execute() call instead of touching the network.
"""

import base64
import struct
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from rwa_amm.infra.context import ProgramContext
from rwa_amm.protocols.constants import TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID
from rwa_amm.protocols.cp_amm.constants import ACCOUNT_DISCRIMINATORS as AMM_ACCOUNT_DISCRIMINATORS
from rwa_amm.protocols.transfer_hook.constants import ACCOUNT_DISCRIMINATORS as HOOK_ACCOUNT_DISCRIMINATORS
from rwa_amm.types import TxResult


def random_pubkey() -> Pubkey:
    return Keypair().pubkey()


def account(data: bytes, owner: str = "11111111111111111111111111111111", lamports: int = 1_000_000) -> dict:
    """getAccountInfo value in base64 encoding"""
    return {
        "data": [base64.b64encode(data).decode("ascii"), "base64"],
        "owner": owner,
        "lamports": lamports,
        "executable": False,
    }


def mint_data(decimals: int = 6, hook_program: Optional[Pubkey] = None, hook_authority: Optional[Pubkey] = None) -> bytes:
    """
    Mint account bytes

    Without a hook this is a plain 82-byte mint; with one it carries a
    TransferHook TLV entry after the account type byte.
    """
    base = bytearray(82)
    base[44] = decimals
    base[45] = 1  # is_initialized
    if hook_program is None:
        return bytes(base)

    data = bytearray(base) + bytearray(165 - 82)
    data.append(1)  # account type: mint
    value = bytes(hook_authority or Pubkey.default()) + bytes(hook_program)
    data.extend(struct.pack("<HH", 14, len(value)))
    data.extend(value)
    return bytes(data)


def user_kyc_data(user: Pubkey, level: int = 2, flags: int = 0, country: str = "US", state: str = "CA", city: str = "San Francisco") -> bytes:
    data = bytearray(HOOK_ACCOUNT_DISCRIMINATORS["user_kyc"])
    data.extend(bytes(user))
    data.extend(struct.pack("<BBqB", level, 10, 1_700_000_000, flags))
    data.extend(struct.pack("<QQqq", 0, 0, 0, 0))
    data.extend(country.encode().ljust(2, b"\x00"))
    data.extend(state.encode().ljust(2, b"\x00"))
    data.extend(city.encode().ljust(32, b"\x00"))
    return bytes(data)


def pool_data(
    token_a_mint: Pubkey,
    token_b_mint: Pubkey,
    token_a_vault: Optional[Pubkey] = None,
    token_b_vault: Optional[Pubkey] = None,
    liquidity: int = 10**20,
    sqrt_price: int = 2**64,
) -> bytes:
    data = bytearray(AMM_ACCOUNT_DISCRIMINATORS["pool"])
    data.extend(bytes(160))
    for key in (
        token_a_mint,
        token_b_mint,
        token_a_vault or random_pubkey(),
        token_b_vault or random_pubkey(),
        Pubkey.default(),
        Pubkey.default(),
    ):
        data.extend(bytes(key))
    data.extend(liquidity.to_bytes(16, "little"))
    data.extend(bytes(16))
    data.extend(struct.pack("<QQQQ", 0, 0, 0, 0))
    data.extend((4_295_048_016).to_bytes(16, "little"))
    data.extend((79_226_673_521_066_979_257_578_248_091).to_bytes(16, "little"))
    data.extend(sqrt_price.to_bytes(16, "little"))
    return bytes(data)


def position_data(pool: Pubkey, nft_mint: Pubkey) -> bytes:
    return bytes(AMM_ACCOUNT_DISCRIMINATORS["position"]) + bytes(pool) + bytes(nft_mint) + bytes(64)


class FakeRpc:
    """In-memory account store with the read methods the modules use"""

    def __init__(self):
        self.accounts: Dict[str, dict] = {}
        self.program_accounts: List[dict] = []
        self.multiple_calls: List[List[str]] = []
        self.rent_sizes: List[int] = []

    def set_account(self, address, data: bytes, owner: str = "11111111111111111111111111111111"):
        self.accounts[str(address)] = account(data, owner)

    def add_mint(self, mint, decimals: int = 6, hook_program: Optional[Pubkey] = None):
        owner = TOKEN_2022_PROGRAM_ID if hook_program is not None else TOKEN_PROGRAM_ID
        self.set_account(mint, mint_data(decimals, hook_program), owner)

    def add_token_2022_mint(self, mint, decimals: int = 6, hook_program: Optional[Pubkey] = None):
        self.set_account(mint, mint_data(decimals, hook_program), TOKEN_2022_PROGRAM_ID)

    def remove_account(self, address):
        self.accounts.pop(str(address), None)

    def get_account_info(self, address, encoding: str = "base64", commitment: Optional[str] = None):
        return self.accounts.get(str(address))

    def get_multiple_accounts(self, addresses, encoding: str = "base64", commitment: Optional[str] = None):
        self.multiple_calls.append([str(a) for a in addresses])
        return [self.accounts.get(str(a)) for a in addresses]

    def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        self.rent_sizes.append(size)
        return 890_880 + size * 6_960

    def get_program_accounts(self, program_id, filters=None, encoding: str = "base64", commitment=None):
        self.last_filters = filters
        return list(self.program_accounts)


@dataclass
class ExecutedTx:
    """One recorded execute() call"""
    instructions: List[Instruction]
    compute_units: Optional[int] = None
    additional_signers: List[Keypair] = field(default_factory=list)
    label: Optional[str] = None

    @property
    def program_ids(self) -> List[str]:
        return [str(ix.program_id) for ix in self.instructions]


class RecordingTxBuilder:
    """
    Stand-in for TxBuilder

    Every execute() is recorded and succeeds unless a response was queued
    for its label with fail_on(). on_execute lets a test mutate FakeRpc to
    emulate the transaction's on-chain effect.
    """

    def __init__(self, keypair: Optional[Keypair] = None, on_execute: Optional[Callable[[ExecutedTx], None]] = None):
        self.keypair = keypair or Keypair()
        self.calls: List[ExecutedTx] = []
        self.on_execute = on_execute
        self._responses: Dict[str, list] = {}

    @property
    def pubkey(self) -> str:
        return str(self.keypair.pubkey())

    def fail_on(self, label: str, response, times: int = 1):
        """Queue a failed TxResult (or an exception to raise) for a label"""
        self._responses.setdefault(label, []).extend([response] * times)

    def labels(self) -> List[str]:
        return [c.label for c in self.calls]

    def execute(
        self,
        instructions,
        compute_units=None,
        compute_unit_price=None,
        additional_signers=None,
        label=None,
        simulate_first=False,
    ) -> TxResult:
        call = ExecutedTx(
            instructions=list(instructions),
            compute_units=compute_units,
            additional_signers=list(additional_signers or []),
            label=label,
        )
        self.calls.append(call)

        queued = self._responses.get(label)
        if queued:
            response = queued.pop(0)
            if isinstance(response, Exception):
                raise response
            return response

        if self.on_execute is not None:
            self.on_execute(call)
        return TxResult.success(f"sig{len(self.calls)}", label=label)


def make_context(rpc: Optional[FakeRpc] = None, tx_builder: Optional[RecordingTxBuilder] = None) -> ProgramContext:
    return ProgramContext(rpc=rpc or FakeRpc(), tx_builder=tx_builder or RecordingTxBuilder())
