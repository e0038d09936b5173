"""
Vesting Ledger Configuration

Network profiles used for deployments, plus environment-driven runtime
settings. All values can be overridden through ``TOKENVEST_*`` variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

from tokenvest.core.constants import DEFAULT_INVESTOR_INSTALMENTS

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    DEVELOPMENT = "development"
    ROPSTEN = "ropsten"
    GOERLI = "goerli"
    MAINNET = "mainnet"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass(frozen=True)
class NetworkProfile:
    network: NetworkType
    chain_id: int
    gas_price: int
    gas_limit: int


NETWORK_PROFILES = {
    NetworkType.DEVELOPMENT: NetworkProfile(NetworkType.DEVELOPMENT, 5777, 30_000_000_000, 800_000),
    NetworkType.ROPSTEN: NetworkProfile(NetworkType.ROPSTEN, 3, 100_000_000_000, 5_000_000),
    NetworkType.GOERLI: NetworkProfile(NetworkType.GOERLI, 5, 5_000_000_000_000, 4_000_000),
    NetworkType.MAINNET: NetworkProfile(NetworkType.MAINNET, 1, 50_000_000_000, 7_000_000),
}


def _get_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc


def get_network_profile(name: str | None = None) -> NetworkProfile:
    """Resolve a network profile by name, defaulting to ``TOKENVEST_NETWORK``."""
    name = (name or NETWORK).strip().lower()
    try:
        network = NetworkType(name)
    except ValueError as exc:
        known = ", ".join(n.value for n in NetworkType)
        raise ConfigurationError(f"Unknown network '{name}' (expected one of: {known})") from exc
    return NETWORK_PROFILES[network]


# Default to development for safety
NETWORK = os.getenv("TOKENVEST_NETWORK", NetworkType.DEVELOPMENT.value)

LOG_LEVEL = os.getenv("TOKENVEST_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("TOKENVEST_LOG_FILE", "").strip() or None
ENVIRONMENT = os.getenv("TOKENVEST_ENVIRONMENT", "development")

INVESTOR_INSTALMENTS = _get_int("TOKENVEST_INVESTOR_INSTALMENTS", DEFAULT_INVESTOR_INSTALMENTS)
if INVESTOR_INSTALMENTS <= 0:
    raise ConfigurationError("TOKENVEST_INVESTOR_INSTALMENTS must be positive")
