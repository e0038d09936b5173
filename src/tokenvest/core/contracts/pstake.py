"""
PSTAKE token: an ERC20 ledger with role-gated minting, a supply max limit
and a per-period inflation budget.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from ..access_control import AccessControl, Role
from ..constants import INFLATION_RATE_DIVISOR
from ..exceptions import InvalidParametersError, SupplyLimitExceededError
from ..primitives import normalize_address
from .erc20 import ERC20Token

logger = logging.getLogger(__name__)


@dataclass
class PStakeToken(ERC20Token):
    """
    PSTAKE governance token.

    The admin starts with the ``ADMIN``, ``MINTER`` and ``PAUSER`` roles.
    Once an inflation rate is set, every inflation period may mint at most
    ``supply_at_period_start * rate / INFLATION_RATE_DIVISOR``. The very
    first mint into an empty supply is the genesis mint and is exempt.
    """

    name: str = "pSTAKE Token"
    symbol: str = "PSTAKE"
    admin: str = ""
    access_control: AccessControl | None = field(default=None, repr=False)
    time_provider: Callable[[], int] | None = field(default=None, repr=False)

    inflation_rate: int = 0
    inflation_period: int = 0
    inflation_start: int = 0
    period_start_supply: int = 0
    minted_in_period: int = 0

    def __post_init__(self) -> None:
        self.admin = normalize_address(self.admin or self.owner)
        if not self.owner:
            self.owner = self.admin
        super().__post_init__()

        if self.access_control is None:
            self.access_control = AccessControl(admin_address=self.admin)
            self.access_control.roles[Role.MINTER.value].add(self.admin)
            self.access_control.roles[Role.PAUSER.value].add(self.admin)
        if self.time_provider is None:
            self.time_provider = lambda: int(time.time())

    def _current_time(self) -> int:
        timestamp = self.time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    # ==================== Admin Functions ====================

    def set_inflation(self, caller: str, inflation_rate: int, inflation_period: int) -> bool:
        """
        Set the inflation rate (parts of ``INFLATION_RATE_DIVISOR``) and period.

        Raises:
            UnauthorizedError: PS0, caller is not admin
            InvalidParametersError: PS7, rate above 100% or non-positive period
        """
        self.access_control.require_role(Role.ADMIN, caller, code="PS0")
        if inflation_rate < 0 or inflation_rate > INFLATION_RATE_DIVISOR:
            raise InvalidParametersError(
                f"inflation rate {inflation_rate} exceeds 100%", code="PS7"
            )
        if inflation_period <= 0:
            raise InvalidParametersError("inflation period must be positive", code="PS7")

        self.inflation_rate = inflation_rate
        self.inflation_period = inflation_period
        self.inflation_start = self._current_time()
        self.period_start_supply = self.total_supply
        self.minted_in_period = 0

        self._emit(
            "SetInflationRate",
            inflationRate=inflation_rate,
            inflationPeriod=inflation_period,
        )
        logger.info(
            "Inflation rate set",
            extra={
                "event": "pstake.inflation_set",
                "rate": inflation_rate,
                "period": inflation_period,
            }
        )
        return True

    def set_supply_max_limit(self, caller: str, supply_max_limit: int) -> bool:
        """
        Cap the total supply (0 removes the cap).

        Raises:
            UnauthorizedError: PS8, caller is not admin
            InvalidParametersError: If the limit is below the current supply
        """
        self.access_control.require_role(Role.ADMIN, caller, code="PS8")
        if supply_max_limit < 0 or (0 < supply_max_limit < self.total_supply):
            raise InvalidParametersError(
                f"supply max limit {supply_max_limit} below current supply {self.total_supply}"
            )

        self.max_supply = supply_max_limit
        self._emit("SetSupplyMaxLimit", supplyMaxLimit=supply_max_limit)
        return True

    def inflation_budget(self) -> int:
        """Amount still mintable in the current inflation period (0 when no rate is set)."""
        if not self.inflation_rate:
            return 0
        self._roll_inflation_period()
        budget = self.period_start_supply * self.inflation_rate // INFLATION_RATE_DIVISOR
        return max(0, budget - self.minted_in_period)

    # ==================== Minting ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        inflation_limited = bool(self.inflation_rate) and self.total_supply > 0
        super().mint(minter, to, amount)
        if inflation_limited:
            self.minted_in_period += amount
        return True

    def _check_mint_limits(self, amount: int) -> None:
        super()._check_mint_limits(amount)
        if not self.inflation_rate or self.total_supply == 0:
            return
        available = self.inflation_budget()
        if amount > available:
            raise SupplyLimitExceededError(
                f"mint of {amount} exceeds inflation budget {available} for this period"
            )

    def _roll_inflation_period(self) -> None:
        now = self._current_time()
        elapsed_periods = max(0, now - self.inflation_start) // self.inflation_period
        if elapsed_periods == 0:
            return
        self.inflation_start += elapsed_periods * self.inflation_period
        self.period_start_supply = self.total_supply
        self.minted_in_period = 0

    def _require_minter(self, caller: str) -> None:
        self.access_control.require_role(Role.MINTER, caller, code="PS1")

    def _require_pauser(self, caller: str) -> None:
        self.access_control.require_role(Role.PAUSER, caller)
