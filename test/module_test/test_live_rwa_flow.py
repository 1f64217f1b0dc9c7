"""
RWA AMM Integration Tests

WARNING: Tests marked REAL TRANSACTION create mints, KYC records and pools
and spend real SOL. Run them against devnet or a local validator.

Flow covered (in file order):
- Read-only: wallet KYC status, pool listing
- KYC record for the wallet
- Hooked RWA mint and a plain quote mint
- Pool creation (needs RWA_AMM_CONFIG), position, liquidity and a swap
"""

import os
import sys
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Shared across the ordered tests in this module
_state = {}


def _rwa_mint_params(hooked: bool):
    from rwa_amm.types import (
        CreateRwaMintParams,
        TokenMetadataParams,
        RwaConfig,
        TradingHours,
        TransferHookParams,
    )

    if not hooked:
        return CreateRwaMintParams(
            supply=1_000_000,
            metadata=TokenMetadataParams(name="Test USD", symbol="TUSD"),
        )

    rwa = RwaConfig(
        asset_class="real_estate",
        jurisdiction="US",
        allowed_countries=["US", "CA"],
        minimum_kyc_level=2,
        trading_hours=TradingHours(),
        max_trade_amount="1000000000000",
    )
    return CreateRwaMintParams(
        supply=1_000_000,
        metadata=TokenMetadataParams(
            name="Test Property Share",
            symbol="TPS",
            uri="https://example.com/tps.json",
            rwa_config=rwa,
        ),
        transfer_hook=TransferHookParams(),
    )


def test_wallet_kyc_status(client):
    """Test reading the wallet's KYC status"""
    print("Testing wallet KYC status...")

    status = client.kyc.get_status()
    print(f"  Wallet: {status.wallet}")
    print(f"  Record exists: {status.exists}")
    print(f"  Level: {status.level} ({status.level_name})")

    assert status.wallet == client.pubkey
    print("  wallet KYC status: PASSED")


def test_list_pools(client):
    """Test listing AMM pools with hook annotation"""
    print("Testing list pools...")

    pools = client.amm.list_pools()
    print(f"  Pools found: {len(pools)}")
    for pool in pools[:5]:
        print(f"    {pool.address[:16]}... hooks: A={pool.token_a_has_hook} B={pool.token_b_has_hook}")

    assert all(pool.token_a_has_hook is not None for pool in pools)
    print("  list pools: PASSED")


def test_ensure_wallet_kyc(client, live_writes):
    """Test creating the wallet's KYC record (REAL TRANSACTION)"""
    print("Testing ensure KYC (REAL TRANSACTION)...")

    results = client.kyc.ensure_kyc([client.pubkey])
    print(f"  Status: {results[0].status}")
    print(f"  Signature: {results[0].signature}")

    assert not results[0].is_failed, f"KYC creation failed: {results[0].error}"
    assert client.kyc.get_status().exists
    print("  ensure KYC: PASSED")


def test_create_rwa_mint(client, live_writes):
    """Test provisioning a hooked RWA mint (REAL TRANSACTIONS)"""
    print("Testing create RWA mint (REAL TRANSACTIONS)...")

    result = client.mints.create_rwa_mint(_rwa_mint_params(hooked=True))
    print(f"  Mint: {result.mint_address}")
    for step in result.steps:
        print(f"    {step.name}: {step.status.value} {step.note or ''}")

    _state["rwa_mint"] = result.mint_address

    info = client.hooks.detect_hook(result.mint_address)
    assert info.has_hook, "Mint should carry the transfer hook"
    assert client.hooks.check_transfer_hook_status(result.mint_address).requires_kyc
    print("  create RWA mint: PASSED")


def test_create_quote_mint(client, live_writes):
    """Test provisioning a plain Token-2022 mint (REAL TRANSACTIONS)"""
    print("Testing create quote mint (REAL TRANSACTIONS)...")

    result = client.mints.create_rwa_mint(_rwa_mint_params(hooked=False))
    print(f"  Mint: {result.mint_address}")

    _state["quote_mint"] = result.mint_address

    assert not client.hooks.detect_hook(result.mint_address).has_hook
    print("  create quote mint: PASSED")


def test_create_pool(client, live_writes):
    """Test pool creation for the hooked pair (REAL TRANSACTIONS)"""
    print("Testing create pool (REAL TRANSACTIONS)...")

    config = os.getenv("RWA_AMM_CONFIG")
    if not config:
        pytest.skip("Set RWA_AMM_CONFIG to an AMM config account")
    if "rwa_mint" not in _state or "quote_mint" not in _state:
        pytest.skip("Mints were not created")

    from rwa_amm.types import CreatePoolParams

    result = client.amm.create_pool(CreatePoolParams(
        config=config,
        mint_a=_state["rwa_mint"],
        mint_b=_state["quote_mint"],
        liquidity=100_000 * 2**64,
        sqrt_price=2**64,
    ))
    print(f"  Pool: {result.pool_address}")
    print(f"  Signature: {result.signature}")

    assert result.tx_result.is_success, f"Create pool failed: {result.tx_result.error}"
    _state["pool"] = result.pool_address

    pool = client.amm.get_pool_info(result.pool_address)
    assert pool is not None and pool.has_mint(_state["rwa_mint"])
    print("  create pool: PASSED")


def test_position_and_liquidity(client, live_writes):
    """Test opening a position and adding liquidity (REAL TRANSACTIONS)"""
    print("Testing position and liquidity (REAL TRANSACTIONS)...")

    if "pool" not in _state:
        pytest.skip("Pool was not created")

    position = client.amm.create_position(_state["pool"])
    print(f"  Position: {position.position_address}")
    assert position.tx_result.is_success, f"Create position failed: {position.tx_result.error}"

    result = client.amm.add_liquidity(
        _state["pool"],
        position.position_address,
        liquidity_delta=10_000 * 2**64,
        token_a_amount_threshold=2**63,
        token_b_amount_threshold=2**63,
    )
    print(f"  Signature: {result.signature}")
    assert result.is_success, f"Add liquidity failed: {result.error}"
    print("  position and liquidity: PASSED")


def test_swap_with_compliance(client, live_writes):
    """Test pre-trade check then a small swap into the RWA token (REAL TRANSACTION)"""
    print("Testing swap (REAL TRANSACTION)...")

    if "pool" not in _state:
        pytest.skip("Pool was not created")

    from rwa_amm.errors import ClassifiedError

    verdict = client.kyc.validate_swap_compliance(
        client.pubkey, _state["quote_mint"], _state["rwa_mint"], 1_000_000
    )
    print(f"  Can swap: {verdict.can_swap} ({verdict.reason})")
    assert verdict.can_swap

    try:
        result = client.amm.swap(_state["pool"], _state["quote_mint"], _state["rwa_mint"], 1_000_000, 0)
    except ClassifiedError as e:
        print(f"  Category: {e.category.value}")
        print(f"  {e.message}")
        raise

    print(f"  Signature: {result.signature}")
    assert result.is_success
    print("  swap: PASSED")
