"""
Shared configuration and fixtures for module integration tests.

WARNING: These tests execute real transactions and spend real SOL!
Point SOLANA_RPC_URL at devnet or a local validator with the AMM and
transfer hook programs deployed.

Environment Variables:
    SOLANA_RPC_URL: RPC endpoint URL (required)
    SOLANA_PRIVATE_KEY: Base58 encoded private key (required if no keypair path)
    SOLANA_KEYPAIR_PATH: Path to keypair JSON file (alternative to private key)
    RWA_AMM_LIVE_WRITE: Set to 1 to run the tests that submit transactions
    RWA_AMM_CONFIG: Existing AMM config account for pool creation tests
"""

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Load .env file
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env_or_fail(key: str) -> str:
    """Get required environment variable or raise error"""
    value = os.getenv(key)
    if not value:
        raise EnvironmentError(
            f"Missing required environment variable: {key}\n"
            f"Please set {key} in your .env file or environment."
        )
    return value


def get_rpc_url() -> str:
    """Get Solana RPC URL from environment"""
    return get_env_or_fail("SOLANA_RPC_URL")


def get_signer():
    """
    Get LocalSigner from environment.

    Tries in order:
    1. SOLANA_PRIVATE_KEY - base58 encoded private key
    2. SOLANA_KEYPAIR_PATH - path to keypair JSON file
    """
    from rwa_amm.infra import LocalSigner

    private_key = os.getenv("SOLANA_PRIVATE_KEY")
    if private_key:
        return LocalSigner.from_base58(private_key)

    keypair_path = os.getenv("SOLANA_KEYPAIR_PATH")
    if keypair_path:
        path = Path(keypair_path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Keypair file not found: {keypair_path}")
        return LocalSigner.from_file(str(path))

    raise EnvironmentError(
        "No wallet configured. Set either:\n"
        "  SOLANA_PRIVATE_KEY - base58 encoded private key\n"
        "  SOLANA_KEYPAIR_PATH - path to keypair JSON file"
    )


def create_client():
    """Create RwaAmmClient with live RPC and real wallet"""
    from rwa_amm import RwaAmmClient

    return RwaAmmClient(rpc_url=get_rpc_url(), keypair=get_signer().keypair)


def skip_if_no_config():
    """Check if required config is available, return skip message if not"""
    try:
        get_rpc_url()
        get_signer()
        return None
    except (EnvironmentError, FileNotFoundError) as e:
        return str(e)


def writes_enabled() -> bool:
    return os.getenv("RWA_AMM_LIVE_WRITE", "").lower() in ("1", "true", "yes")


# Pytest fixtures
@pytest.fixture(scope="module")
def client():
    """Create RwaAmmClient fixture for tests"""
    skip_msg = skip_if_no_config()
    if skip_msg:
        pytest.skip(skip_msg)
    rwa_client = create_client()
    yield rwa_client
    rwa_client.close()


@pytest.fixture(scope="module")
def live_writes():
    """Skip unless transaction-submitting tests were asked for"""
    if not writes_enabled():
        pytest.skip("Set RWA_AMM_LIVE_WRITE=1 to submit transactions")
