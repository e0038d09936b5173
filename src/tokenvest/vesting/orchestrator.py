"""
Orchestrator: one-shot token genesis.

Creates the PSTAKE token, deploys one StepVesting escrow per beneficiary
bucket, mints each bucket's full entitlement straight into its escrow and
then hands minting over to the long-term minter.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from tokenvest.core.access_control import Role
from tokenvest.core.contracts.pstake import PStakeToken
from tokenvest.core.exceptions import (
    AlreadyExecutedError,
    InvalidParametersError,
    UnauthorizedError,
)
from tokenvest.core.primitives import derive_contract_address, is_zero_address, normalize_address
from tokenvest.vesting.schedule import VestingSchedule
from tokenvest.vesting.step_vesting import StepVesting

logger = logging.getLogger(__name__)


class Orchestrator:
    def __init__(
        self,
        vesting_infos: Iterable[VestingSchedule],
        minter: str,
        time_provider: Callable[[], int] | None = None,
        deployer: str = "",
    ):
        self.vesting_infos = list(vesting_infos)
        if is_zero_address(minter):
            raise InvalidParametersError("minter cannot be the zero address")
        if not self.vesting_infos:
            raise InvalidParametersError("at least one vesting bucket is required")

        beneficiaries = [info.beneficiary for info in self.vesting_infos]
        if any(is_zero_address(b) for b in beneficiaries):
            raise InvalidParametersError("beneficiary cannot be the zero address")
        if len(set(beneficiaries)) != len(beneficiaries):
            raise InvalidParametersError("duplicate beneficiary in vesting buckets")

        self.minter = normalize_address(minter)
        self.owner = normalize_address(deployer or self.minter)
        self._time_provider = time_provider or (lambda: int(time.time()))
        self.address = derive_contract_address(self.owner, 0, "Orchestrator")

        self.token = PStakeToken(admin=self.address, time_provider=self._time_provider)
        self.vesting_mapping: dict[str, StepVesting] = {}
        self.executed = False

    @property
    def total_supply(self) -> int:
        return sum(info.total_amount for info in self.vesting_infos)

    def mint_and_transfer_tokens(self, caller: str | None = None) -> dict[str, StepVesting]:
        """
        Deploy the escrows and mint every bucket into its escrow.

        Returns:
            Mapping of beneficiary -> StepVesting instance

        Raises:
            UnauthorizedError: If caller is not the orchestrator owner
            AlreadyExecutedError: On a second call
        """
        if caller is not None and normalize_address(caller) != self.owner:
            raise UnauthorizedError("only the orchestrator owner can mint")
        if self.executed:
            raise AlreadyExecutedError("tokens already minted")

        for nonce, info in enumerate(self.vesting_infos, start=1):
            vesting = StepVesting(
                self.token,
                info,
                time_provider=self._time_provider,
                deployer=self.address,
                nonce=nonce,
            )
            if info.total_amount > 0:
                self.token.mint(self.address, vesting.address, info.total_amount)
            self.vesting_mapping[info.beneficiary] = vesting
            logger.info(
                "Vesting escrow deployed",
                extra={
                    "event": "orchestrator.vesting_deployed",
                    "beneficiary": info.beneficiary[:10],
                    "vesting": vesting.address[:10],
                    "amount": info.total_amount,
                },
            )

        acl = self.token.access_control
        acl.grant_role(self.address, Role.MINTER, self.minter)
        acl.grant_role(self.address, Role.ADMIN, self.minter)
        acl.grant_role(self.address, Role.PAUSER, self.minter)
        for role in (Role.MINTER, Role.PAUSER, Role.ADMIN):
            acl.renounce_role(self.address, role)

        self.executed = True
        logger.info(
            "Genesis mint complete",
            extra={
                "event": "orchestrator.minted",
                "total_supply": self.token.total_supply,
                "buckets": len(self.vesting_mapping),
            },
        )
        return dict(self.vesting_mapping)

    def vesting_for(self, beneficiary: str) -> StepVesting | None:
        return self.vesting_mapping.get(normalize_address(beneficiary))
