"""
Shared contract primitives: event records and address helpers.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass, field
from typing import Any

from .constants import ZERO_ADDRESS


@dataclass
class ContractEvent:
    """An event emitted by a contract operation."""

    name: str
    args: dict[str, Any]
    timestamp: float = field(default_factory=time.time)


def normalize_address(address: str) -> str:
    """Normalize address to lowercase."""
    return (address or "").lower()


def is_zero_address(address: str) -> bool:
    """True for the zero address and for empty values."""
    return not address or normalize_address(address) == ZERO_ADDRESS


def derive_contract_address(deployer: str, nonce: int, salt: str = "") -> str:
    """
    Derive a deterministic contract address from its deployer and nonce.

    Args:
        deployer: Address deploying the contract
        nonce: Deployment counter of the deployer
        salt: Optional extra input (contract kind, name)

    Returns:
        20-byte hex address with 0x prefix
    """
    addr_input = f"{normalize_address(deployer)}:{nonce}:{salt}".encode()
    addr_hash = hashlib.sha3_256(addr_input).digest()
    return f"0x{addr_hash[-20:].hex()}"


def find_events(events: list[ContractEvent], name: str) -> list[ContractEvent]:
    """Return the events with the given name, oldest first."""
    return [event for event in events if event.name == name]
