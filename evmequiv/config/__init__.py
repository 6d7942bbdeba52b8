"""
evmequiv Configuration

Loads evmequiv.toml; environment variables override TOML values.
"""

from .loader import (
    EvmEquivConfig,
    RPCSectionConfig,
    VerificationSectionConfig,
    LoggingSectionConfig,
    load_config,
)

__all__ = [
    "EvmEquivConfig",
    "RPCSectionConfig",
    "VerificationSectionConfig",
    "LoggingSectionConfig",
    "load_config",
]
