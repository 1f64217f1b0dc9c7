"""
Functional modules for RwaAmmClient

Provides high-level operations:
- HookModule: Transfer hook detection and remaining-account resolution
- ComplianceModule: KYC records and pre-trade checks
- MintPipeline: Multi-step RWA mint provisioning
- AmmModule: Configs, badges, pools, positions, liquidity, swaps
"""

from .hooks import HookModule, ResolveContext
from .compliance import ComplianceModule
from .mint_pipeline import MintPipeline, MintStep
from .amm import AmmModule, calculate_hook_compute_units

__all__ = [
    "HookModule",
    "ResolveContext",
    "ComplianceModule",
    "MintPipeline",
    "MintStep",
    "AmmModule",
    "calculate_hook_compute_units",
]
