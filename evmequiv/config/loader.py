"""
evmequiv TOML Configuration Loader

Loads the sections of evmequiv.toml with environment variable overrides.

Environment variable mapping:
    [rpc] url                         → EVMEQUIV_RPC_URL
    [rpc] timeout                     → EVMEQUIV_RPC_TIMEOUT
    [verification] storage_address    → EVMEQUIV_CODE_STORAGE_ADDRESS
    [verification] length_policy      → EVMEQUIV_LENGTH_POLICY
    [logging] level                   → EVMEQUIV_LOG_LEVEL
    [logging] output                  → EVMEQUIV_LOG_OUTPUT

Defaults come from evmequiv.constants, which reads the project .env file.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from eth_utils import is_address

from .. import constants
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_OUTPUTS = ("plain", "json")


def _to_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} is not a number: {value!r}") from e


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigurationError(f"[{name}] must be a table, got {type(section).__name__}")
    return section


@dataclass
class RPCSectionConfig:
    """[rpc] section."""
    url: str = str(constants.EVMEQUIV_RPC_URL)
    timeout: float = float(constants.EVMEQUIV_RPC_TIMEOUT)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RPCSectionConfig":
        return cls(
            url=data.get("url", cls.url),
            timeout=_to_float(data.get("timeout", cls.timeout), "rpc.timeout"),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("EVMEQUIV_RPC_URL"):
            self.url = v
        if v := os.environ.get("EVMEQUIV_RPC_TIMEOUT"):
            self.timeout = _to_float(v, "EVMEQUIV_RPC_TIMEOUT")


@dataclass
class VerificationSectionConfig:
    """[verification] section."""
    storage_address: str = constants.ACCOUNT_CODE_STORAGE_ADDRESS
    length_policy: str = str(constants.EVMEQUIV_LENGTH_POLICY)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationSectionConfig":
        return cls(
            storage_address=data.get("storage_address", cls.storage_address),
            length_policy=data.get("length_policy", cls.length_policy),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("EVMEQUIV_CODE_STORAGE_ADDRESS"):
            self.storage_address = v
        if v := os.environ.get("EVMEQUIV_LENGTH_POLICY"):
            self.length_policy = v


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = str(constants.LOG_LEVEL)
    output: str = str(constants.LOG_OUTPUT)
    file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(
            level=str(data.get("level", cls.level)).upper(),
            output=data.get("output", cls.output),
            file=data.get("file"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("EVMEQUIV_LOG_LEVEL"):
            self.level = v.upper()
        if v := os.environ.get("EVMEQUIV_LOG_OUTPUT"):
            self.output = v


@dataclass
class EvmEquivConfig:
    """Top-level configuration."""
    rpc: RPCSectionConfig = field(default_factory=RPCSectionConfig)
    verification: VerificationSectionConfig = field(default_factory=VerificationSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvmEquivConfig":
        return cls(
            rpc=RPCSectionConfig.from_dict(_section(data, "rpc")),
            verification=VerificationSectionConfig.from_dict(_section(data, "verification")),
            logging=LoggingSectionConfig.from_dict(_section(data, "logging")),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "EvmEquivConfig":
        """
        Load configuration from a TOML file.

        A missing file yields the defaults (with env overrides).
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
        else:
            try:
                with open(path, "rb") as f:
                    raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e
            cfg = cls.from_dict(raw)

        cfg.apply_env()
        cfg.validate()
        return cfg

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.rpc.apply_env()
        self.verification.apply_env()
        self.logging.apply_env()

    def validate(self) -> bool:
        """Raise ConfigurationError for values the verifier cannot use."""
        if self.rpc.timeout <= 0:
            raise ConfigurationError(f"rpc.timeout must be positive, got {self.rpc.timeout}")
        if not isinstance(self.rpc.url, str) or not self.rpc.url.startswith(("http://", "https://")):
            raise ConfigurationError(f"rpc.url must be an http(s) URL, got {self.rpc.url}")
        if not is_address(self.verification.storage_address):
            raise ConfigurationError(
                f"verification.storage_address is not an address: {self.verification.storage_address}"
            )
        if self.verification.length_policy not in constants.LENGTH_POLICIES:
            raise ConfigurationError(
                f"verification.length_policy has an unexpected value {self.verification.length_policy}"
            )
        if self.logging.level not in LOG_LEVELS:
            raise ConfigurationError(f"logging.level has an unexpected value {self.logging.level}")
        if self.logging.output not in LOG_OUTPUTS:
            raise ConfigurationError(f"logging.output has an unexpected value {self.logging.output}")
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "rpc": {"url": self.rpc.url, "timeout": self.rpc.timeout},
            "verification": {
                "storage_address": self.verification.storage_address,
                "length_policy": self.verification.length_policy,
            },
            "logging": {
                "level": self.logging.level,
                "output": self.logging.output,
                "file": self.logging.file,
            },
        }


def load_config(path: Optional[str] = None) -> EvmEquivConfig:
    """
    Load configuration.

    Resolution order:
        1. Explicit *path* argument
        2. EVMEQUIV_CONFIG env var
        3. ./evmequiv.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("EVMEQUIV_CONFIG", "evmequiv.toml")

    return EvmEquivConfig.from_file(path)
