"""
Vesting Timelock: on-demand, revocable token grants.

A grant admin escrows ``instalment_amount * instalment_count`` tokens for a
beneficiary. The grant unlocks one instalment per ``instalment_period`` after
a cliff, can be claimed by the beneficiary (or on their behalf by a grant
admin), and can be revoked, which returns the unclaimed remainder to the
manager who funded it. At most one grant per (token, beneficiary) is active.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from tokenvest.core.access_control import AccessControl, Role
from tokenvest.core.constants import MAX_GRANT_PERIOD_SECONDS, MAX_INSTALMENT_COUNT
from tokenvest.core.contracts.erc20 import ERC20Factory
from tokenvest.core.exceptions import (
    ContractPausedError,
    GrantAlreadyActiveError,
    InsufficientBalanceError,
    InvalidParametersError,
    NoActiveGrantError,
    UnauthorizedError,
)
from tokenvest.core.primitives import (
    ContractEvent,
    derive_contract_address,
    is_zero_address,
    normalize_address,
)
from tokenvest.vesting.schedule import VestingSchedule

logger = logging.getLogger(__name__)


@dataclass
class Grant:
    """A single escrowed grant and its claim progress."""

    token: str
    beneficiary: str
    manager: str
    start_time: int
    cliff_period: int
    instalment_amount: int
    instalment_count: int
    instalment_period: int
    claimed: int = 0
    active: bool = True
    created_at: int = 0

    @property
    def total_amount(self) -> int:
        return self.instalment_amount * self.instalment_count

    @property
    def remaining(self) -> int:
        return self.total_amount - self.claimed

    @property
    def schedule(self) -> VestingSchedule:
        # First instalment unlocks one full period after the cliff ends
        return VestingSchedule(
            beneficiary=self.beneficiary,
            cliff_time=self.start_time + self.cliff_period,
            cliff_amount=0,
            step_amount=self.instalment_amount,
            step_duration=self.instalment_period,
            num_steps=self.instalment_count,
        )


@dataclass
class VestingTimelock:
    """
    Grant registry and on-demand claim engine.

    ``pause_admin`` receives the ``PAUSER`` role and ``grant_admin`` the
    ``GRANT_ADMIN`` role on a fresh access-control component unless one is
    injected.
    """

    pause_admin: str
    grant_admin: str
    token_registry: ERC20Factory
    time_provider: Callable[[], int] | None = field(default=None, repr=False)
    access_control: AccessControl | None = field(default=None, repr=False)
    address: str = ""

    grants: dict[tuple[str, str], Grant] = field(default_factory=dict)
    events: list[ContractEvent] = field(default_factory=list)
    paused: bool = False

    def __post_init__(self) -> None:
        self.pause_admin = normalize_address(self.pause_admin)
        self.grant_admin = normalize_address(self.grant_admin)
        if is_zero_address(self.pause_admin) or is_zero_address(self.grant_admin):
            raise InvalidParametersError("admin addresses cannot be zero")

        if self.access_control is None:
            self.access_control = AccessControl(admin_address=self.grant_admin)
            self.access_control.roles[Role.GRANT_ADMIN.value].add(self.grant_admin)
            self.access_control.roles[Role.PAUSER.value].add(self.pause_admin)
        if self.time_provider is None:
            self.time_provider = lambda: int(time.time())
        self.address = normalize_address(
            self.address or derive_contract_address(self.grant_admin, 0, "VestingTimelock")
        )

        logger.info(
            "VestingTimelock initialized",
            extra={"event": "timelock.initialized", "address": self.address[:10]},
        )

    def _current_time(self) -> int:
        timestamp = self.time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    # ==================== Grants ====================

    def add_grant(
        self,
        caller: str,
        token: str,
        beneficiary: str,
        start_time: int,
        cliff_period: int,
        instalment_amount: int,
        instalment_count: int,
        instalment_period: int,
    ) -> Grant:
        """
        Escrow a new grant for ``beneficiary`` funded by ``caller``.

        Raises:
            ContractPausedError: If the timelock is paused
            UnauthorizedError: If caller is not a grant admin
            InvalidParametersError: VT3 / VT18 on malformed parameters
            UnknownTokenError: If the token address is not a deployed ledger
            GrantAlreadyActiveError: VT17, an active grant already exists
            InsufficientBalanceError: VT11, caller cannot fund the grant
            InsufficientAllowanceError: If the caller did not approve enough
        """
        self._require_not_paused()
        self.access_control.require_role(Role.GRANT_ADMIN, caller)

        now = self._current_time()
        self._validate_grant_parameters(
            token, beneficiary, start_time, cliff_period,
            instalment_amount, instalment_count, instalment_period, now,
        )

        ledger = self.token_registry.require_token(token)
        key = self._key(token, beneficiary)
        if self._active_grant(key) is not None:
            raise GrantAlreadyActiveError("grant already active", code="VT17")

        total = instalment_amount * instalment_count
        if ledger.balance_of(caller) < total:
            raise InsufficientBalanceError(
                f"grant manager balance below {total}", code="VT11"
            )

        ledger.transfer_from(self.address, caller, self.address, total)

        grant = Grant(
            token=key[0],
            beneficiary=key[1],
            manager=normalize_address(caller),
            start_time=start_time,
            cliff_period=cliff_period,
            instalment_amount=instalment_amount,
            instalment_count=instalment_count,
            instalment_period=instalment_period,
            created_at=now,
        )
        self.grants[key] = grant

        self._emit(
            "AddGrant",
            now,
            token=grant.token,
            beneficiary=grant.beneficiary,
            instalmentAmount=instalment_amount,
            instalmentCount=instalment_count,
        )
        logger.info(
            "Grant added",
            extra={
                "event": "timelock.grant_added",
                "beneficiary": grant.beneficiary[:10],
                "total_amount": total,
            },
        )
        return grant

    def revoke_grant(self, caller: str, token: str, beneficiary: str) -> int:
        """
        Deactivate a grant and return its unclaimed remainder to the manager.

        Returns:
            Amount refunded to the manager

        Raises:
            InvalidParametersError: VT5, zero token or beneficiary
            UnauthorizedError: VT6, caller is not beneficiary, manager or grant admin
            NoActiveGrantError: If no grant is active
        """
        if is_zero_address(token) or is_zero_address(beneficiary):
            raise InvalidParametersError("token and beneficiary cannot be zero", code="VT5")

        key = self._key(token, beneficiary)
        grant = self._active_grant(key)
        caller_norm = normalize_address(caller)
        authorized = (
            caller_norm == key[1]
            or self.access_control.has_role(Role.GRANT_ADMIN, caller_norm)
            or (grant is not None and caller_norm == grant.manager)
        )
        if not authorized:
            raise UnauthorizedError("caller cannot revoke this grant", code="VT6")
        if grant is None:
            raise NoActiveGrantError("no active grant to revoke")

        refund = grant.remaining
        if refund > 0:
            self.token_registry.require_token(grant.token).transfer(
                self.address, grant.manager, refund
            )
        grant.active = False

        self._emit("RevokeGrant", token=grant.token, beneficiary=grant.beneficiary, tokens=refund)
        logger.info(
            "Grant revoked",
            extra={
                "event": "timelock.grant_revoked",
                "beneficiary": grant.beneficiary[:10],
                "refund": refund,
            },
        )
        return refund

    def claim_grant(self, caller: str, token: str, beneficiary: str) -> int:
        """
        Pay the beneficiary everything the grant has unlocked so far.

        Returns:
            Amount transferred (0 before the cliff)

        Raises:
            ContractPausedError: If the timelock is paused
            InvalidParametersError: VT8, zero token or beneficiary
            UnauthorizedError: VT10, caller is neither beneficiary nor grant admin
            NoActiveGrantError: VT12, no grant is active
        """
        self._require_not_paused()
        if is_zero_address(token) or is_zero_address(beneficiary):
            raise InvalidParametersError("token and beneficiary cannot be zero", code="VT8")

        key = self._key(token, beneficiary)
        caller_norm = normalize_address(caller)
        if caller_norm != key[1] and not self.access_control.has_role(Role.GRANT_ADMIN, caller_norm):
            raise UnauthorizedError("caller cannot claim this grant", code="VT10")

        grant = self._active_grant(key)
        if grant is None:
            raise NoActiveGrantError("no active grant to claim", code="VT12")

        now = self._current_time()
        amount = self._claimable(grant, now)
        if amount > 0:
            self.token_registry.require_token(grant.token).transfer(
                self.address, grant.beneficiary, amount
            )
            grant.claimed += amount
        if grant.claimed == grant.total_amount:
            grant.active = False

        self._emit("ClaimGrant", now, token=grant.token, accountAddress=grant.beneficiary, amount=amount)
        logger.info(
            "Grant claimed",
            extra={
                "event": "timelock.grant_claimed",
                "beneficiary": grant.beneficiary[:10],
                "amount": amount,
                "completed": not grant.active,
            },
        )
        return amount

    # ==================== Views ====================

    def get_grant(self, token: str, beneficiary: str) -> Grant | None:
        """Active grant for (token, beneficiary), if any."""
        return self._active_grant(self._key(token, beneficiary))

    def claimable(self, token: str, beneficiary: str, current_time: int | None = None) -> int:
        grant = self.get_grant(token, beneficiary)
        if grant is None:
            return 0
        if current_time is None:
            current_time = self._current_time()
        return self._claimable(grant, current_time)

    # ==================== Pause ====================

    def pause(self, caller: str) -> bool:
        self.access_control.require_role(Role.PAUSER, caller)
        self.paused = True
        self._emit("Paused", account=normalize_address(caller))
        return True

    def unpause(self, caller: str) -> bool:
        self.access_control.require_role(Role.PAUSER, caller)
        self.paused = False
        self._emit("Unpaused", account=normalize_address(caller))
        return True

    # ==================== Helpers ====================

    @staticmethod
    def _key(token: str, beneficiary: str) -> tuple[str, str]:
        return normalize_address(token), normalize_address(beneficiary)

    def _active_grant(self, key: tuple[str, str]) -> Grant | None:
        grant = self.grants.get(key)
        if grant is None or not grant.active:
            return None
        return grant

    @staticmethod
    def _claimable(grant: Grant, current_time: int) -> int:
        return max(0, grant.schedule.unlocked_amount(current_time) - grant.claimed)

    @staticmethod
    def _validate_grant_parameters(
        token: str,
        beneficiary: str,
        start_time: int,
        cliff_period: int,
        instalment_amount: int,
        instalment_count: int,
        instalment_period: int,
        now: int,
    ) -> None:
        if is_zero_address(token) or is_zero_address(beneficiary):
            raise InvalidParametersError("token and beneficiary cannot be zero", code="VT3")
        for name, value in (
            ("start_time", start_time),
            ("cliff_period", cliff_period),
            ("instalment_amount", instalment_amount),
            ("instalment_count", instalment_count),
            ("instalment_period", instalment_period),
        ):
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidParametersError(f"{name} must be a non-negative integer", code="VT3")
        if instalment_amount == 0:
            raise InvalidParametersError("instalment amount cannot be 0", code="VT3")
        if instalment_count == 0 or instalment_count > MAX_INSTALMENT_COUNT:
            raise InvalidParametersError(
                f"instalment count must be within 1..{MAX_INSTALMENT_COUNT}", code="VT3"
            )
        if cliff_period > MAX_GRANT_PERIOD_SECONDS:
            raise InvalidParametersError("cliff period exceeds ten years", code="VT3")
        if instalment_period == 0:
            raise InvalidParametersError("instalment period cannot be 0", code="VT18")
        if instalment_period > MAX_GRANT_PERIOD_SECONDS:
            raise InvalidParametersError("instalment period exceeds ten years", code="VT3")
        if abs(start_time - now) > MAX_GRANT_PERIOD_SECONDS:
            raise InvalidParametersError("start time more than ten years from now", code="VT3")

    def _require_not_paused(self) -> None:
        if self.paused:
            raise ContractPausedError("VestingTimelock: paused")

    def _emit(self, name: str, timestamp: int | None = None, **args) -> None:
        if timestamp is None:
            timestamp = self._current_time()
        self.events.append(ContractEvent(name=name, args=args, timestamp=timestamp))
