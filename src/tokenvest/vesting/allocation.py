"""
Allocation files: YAML descriptions of the genesis vesting buckets.

Example::

    listing_timestamp: 1644246000
    minter: "0x..."
    decimals: 18
    buckets:
      - name: airdrop
        beneficiary: "0x97Ef7Eda907A3DFe498fBFfF14E95716F2efFFa2"
        cliff_offset: 0
        cliff_amount: "5000000"
        step_amount: "5000000"
        step_duration: 2592000
        num_steps: 5

Amounts are whole tokens (decimal strings allowed) and are converted to base
units; ``cliff_offset`` is seconds after ``listing_timestamp``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tokenvest.core.constants import DEFAULT_DECIMALS
from tokenvest.core.exceptions import InvalidParametersError
from tokenvest.vesting.schedule import VestingSchedule


@dataclass
class AllocationBucket:
    name: str
    schedule: VestingSchedule


@dataclass
class Allocation:
    listing_timestamp: int
    decimals: int
    buckets: list[AllocationBucket]
    minter: str | None = None

    @property
    def schedules(self) -> list[VestingSchedule]:
        return [bucket.schedule for bucket in self.buckets]

    @property
    def total_supply(self) -> int:
        return sum(bucket.schedule.total_amount for bucket in self.buckets)


def parse_units(value: Any, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a whole-token amount (int, str or Decimal) into base units.

    Raises:
        InvalidParametersError: If the value is not a number or has more
            fractional digits than ``decimals`` allows
    """
    try:
        amount = Decimal(str(value)) * (Decimal(10) ** decimals)
    except InvalidOperation as exc:
        raise InvalidParametersError(f"invalid token amount {value!r}") from exc
    if amount != amount.to_integral_value():
        raise InvalidParametersError(f"token amount {value!r} exceeds {decimals} decimals")
    return int(amount)


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Render base units as a whole-token decimal string."""
    value = Decimal(amount) / (Decimal(10) ** decimals)
    return f"{value.normalize():f}"


def parse_allocation(data: dict[str, Any]) -> Allocation:
    if not isinstance(data, dict):
        raise InvalidParametersError("allocation must be a mapping")
    try:
        listing = int(data["listing_timestamp"])
        raw_buckets = data["buckets"]
        decimals = int(data.get("decimals", DEFAULT_DECIMALS))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidParametersError(f"malformed allocation: {exc}") from exc
    if raw_buckets is not None and not isinstance(raw_buckets, list):
        raise InvalidParametersError("allocation buckets must be a list")

    buckets = []
    for index, raw in enumerate(raw_buckets or []):
        try:
            schedule = VestingSchedule(
                beneficiary=str(raw["beneficiary"]),
                cliff_time=listing + int(raw.get("cliff_offset", 0)),
                cliff_amount=parse_units(raw.get("cliff_amount", 0), decimals),
                step_amount=parse_units(raw.get("step_amount", 0), decimals),
                step_duration=int(raw.get("step_duration", 0)),
                num_steps=int(raw.get("num_steps", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidParametersError(f"malformed bucket #{index}: {exc}") from exc
        buckets.append(AllocationBucket(name=str(raw.get("name", f"bucket-{index}")), schedule=schedule))

    if not buckets:
        raise InvalidParametersError("allocation has no buckets")

    return Allocation(
        listing_timestamp=listing,
        decimals=decimals,
        buckets=buckets,
        minter=data.get("minter"),
    )


def load_allocation(path: str | Path) -> Allocation:
    """
    Load and validate an allocation YAML file.

    Raises:
        InvalidParametersError: If the file is not valid YAML or not a valid allocation
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidParametersError(f"invalid allocation file {path}: {exc}") from exc
    return parse_allocation(data)
