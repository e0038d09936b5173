from __future__ import annotations

import logging
import time
from typing import Callable

from tokenvest.core.contracts.erc20 import ERC20Token
from tokenvest.core.exceptions import AccessDeniedError
from tokenvest.core.primitives import derive_contract_address, normalize_address
from tokenvest.vesting.schedule import VestingSchedule

logger = logging.getLogger(__name__)


class StepVesting:
    """
    Escrow for a single beneficiary's schedule.

    The instance holds the beneficiary's whole entitlement on the ledger and
    releases whatever the schedule has unlocked each time the beneficiary
    claims.
    """

    def __init__(
        self,
        token: ERC20Token,
        schedule: VestingSchedule,
        time_provider: Callable[[], int] | None = None,
        address: str | None = None,
        deployer: str = "",
        nonce: int = 0,
    ):
        self.token = token
        self.schedule = schedule
        self.claimed = 0
        self.address = normalize_address(
            address or derive_contract_address(deployer, nonce, f"StepVesting:{schedule.beneficiary}")
        )
        self._time_provider = time_provider or (lambda: int(time.time()))

    @property
    def beneficiary(self) -> str:
        return self.schedule.beneficiary

    @property
    def total_amount(self) -> int:
        return self.schedule.total_amount

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def claimable(self, current_time: int | None = None) -> int:
        """Unlocked tokens not yet paid out."""
        if current_time is None:
            current_time = self._current_time()
        return max(0, self.schedule.unlocked_amount(current_time) - self.claimed)

    def claim(self, caller: str) -> int:
        """
        Pays out everything unlocked so far to the beneficiary.

        Returns the amount transferred, which is 0 before the cliff or when
        the current step has already been claimed.

        Raises:
            AccessDeniedError: If caller is not the beneficiary
        """
        if normalize_address(caller) != self.beneficiary:
            raise AccessDeniedError("access denied")

        amount = self.claimable()
        if amount <= 0:
            logger.debug(
                "Nothing to claim",
                extra={"event": "step_vesting.nothing_to_claim", "vesting": self.address[:10]},
            )
            return 0

        self.token.transfer(self.address, self.beneficiary, amount)
        self.claimed += amount
        logger.info(
            "Claimed %d tokens from %s",
            amount,
            self.address,
            extra={
                "event": "step_vesting.claimed",
                "beneficiary": self.beneficiary[:10],
                "total_claimed": self.claimed,
            },
        )
        return amount
