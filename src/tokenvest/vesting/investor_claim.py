"""
Investor Claim: instalment-based distribution to a fixed investor set.

Each investor is registered with a whole-token entitlement that is paid out
over ``instalments`` rounds. Every admin top-up (``add_money``) credits each
investor one round share, proportional to their entitlement; investors then
withdraw whatever has been credited to them. Credits accumulate across
rounds until withdrawn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from tokenvest.core import config
from tokenvest.core.access_control import AccessControl, Role
from tokenvest.core.contracts.erc20 import ERC20Token
from tokenvest.core.exceptions import (
    AlreadyClaimedError,
    AmountLessThanTotalInvestorAmountError,
    InvalidParametersError,
    NotAdminError,
    NotInvestorError,
    TokenLeftToClaimError,
)
from tokenvest.core.primitives import (
    ContractEvent,
    derive_contract_address,
    is_zero_address,
    normalize_address,
)

logger = logging.getLogger(__name__)


@dataclass
class InvestorAccount:
    total_claimable: int
    instalment_amount: int
    allocated: int = 0
    tokens_left: int = 0
    claimed_tokens: int = 0

    @property
    def round_share(self) -> int:
        """Amount the next top-up credits to this investor."""
        return min(self.instalment_amount, self.total_claimable - self.allocated)


class InvestorClaim:
    """
    Pro-rata investor distribution pool.

    Usage:
        pool = InvestorClaim(admin, token, [("0xa", 600_000), ("0xb", 360_000)])
        token.approve(admin, pool.address, token.units(80_000))
        pool.add_money(admin, 80_000)
        pool.claim("0xa")
    """

    def __init__(
        self,
        admin: str,
        token: ERC20Token,
        investors: Iterable[tuple[str, int]],
        instalments: int | None = None,
        access_control: AccessControl | None = None,
        address: str | None = None,
    ):
        if is_zero_address(admin):
            raise InvalidParametersError("admin cannot be the zero address")
        self.admin = normalize_address(admin)
        self.token = token
        self.instalments = instalments or config.INVESTOR_INSTALMENTS
        if self.instalments <= 0:
            raise InvalidParametersError("instalments must be positive")

        self.access_control = access_control or AccessControl(admin_address=self.admin)
        self.address = normalize_address(
            address or derive_contract_address(self.admin, 0, f"InvestorClaim:{token.address}")
        )
        self.events: list[ContractEvent] = []
        self.accounts: dict[str, InvestorAccount] = {}

        for investor, whole_tokens in investors:
            investor_norm = normalize_address(investor)
            if is_zero_address(investor_norm):
                raise InvalidParametersError("investor cannot be the zero address")
            if investor_norm in self.accounts:
                raise InvalidParametersError(f"duplicate investor {investor_norm[:10]}")
            if whole_tokens <= 0:
                raise InvalidParametersError("investor amount must be positive")
            total = token.units(whole_tokens)
            self.accounts[investor_norm] = InvestorAccount(
                total_claimable=total,
                instalment_amount=total // self.instalments,
            )

        if not self.accounts:
            raise InvalidParametersError("at least one investor is required")

        logger.info(
            "InvestorClaim initialized",
            extra={
                "event": "investor_claim.initialized",
                "investors": len(self.accounts),
                "instalments": self.instalments,
            },
        )

    # ==================== Views ====================

    @property
    def investors(self) -> list[str]:
        return list(self.accounts)

    @property
    def min_amount_add(self) -> int:
        """Smallest top-up (base units) that covers every investor's round share."""
        return sum(account.round_share for account in self.accounts.values())

    @property
    def pool_balance(self) -> int:
        return self.token.balance_of(self.address)

    def total_claimable(self, investor: str) -> int:
        account = self.accounts.get(normalize_address(investor))
        return account.total_claimable if account else 0

    def tokens_left(self, investor: str) -> int:
        account = self.accounts.get(normalize_address(investor))
        return account.tokens_left if account else 0

    def claimed_tokens(self, investor: str) -> int:
        account = self.accounts.get(normalize_address(investor))
        return account.claimed_tokens if account else 0

    # ==================== Admin ====================

    def add_money(self, caller: str, amount: int) -> int:
        """
        Top up the pool with ``amount`` whole tokens and credit one round.

        Returns:
            Amount pulled from the admin, in base units

        Raises:
            NotAdminError: If caller is not the admin
            InvalidParametersError: If amount is not a positive whole number,
                or every entitlement is already allocated
            AmountLessThanTotalInvestorAmountError: If the top-up is below min_amount_add
        """
        self._require_admin(caller)
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidParametersError("amount must be a whole number of tokens")
        if amount <= 0:
            raise InvalidParametersError("amount must be positive")

        shares = {investor: account.round_share for investor, account in self.accounts.items()}
        required = sum(shares.values())
        if required == 0:
            raise InvalidParametersError("all investor entitlements are already allocated")

        units = self.token.units(amount)
        if units < required:
            raise AmountLessThanTotalInvestorAmountError(
                f"top-up {units} below required {required}"
            )

        self.token.transfer_from(self.address, caller, self.address, units)

        for investor, share in shares.items():
            account = self.accounts[investor]
            account.tokens_left += share
            account.allocated += share

        self._emit("AddMoney", amount=units, distributed=required)
        logger.info(
            "Investor pool topped up",
            extra={
                "event": "investor_claim.money_added",
                "amount": units,
                "distributed": required,
            },
        )
        return units

    def remove_investor(self, caller: str, investors: Iterable[str]) -> None:
        """
        Remove investors, forfeiting anything credited but not withdrawn.

        Raises:
            NotAdminError: If caller is not the admin
            NotInvestorError: If any address is not a current investor
        """
        self._require_admin(caller)
        removed = [normalize_address(investor) for investor in investors]
        for investor in removed:
            if investor not in self.accounts:
                raise NotInvestorError(f"{investor[:10]} is not an investor")

        for investor in removed:
            account = self.accounts.pop(investor, None)
            if account is None:
                continue
            self._emit("RemoveInvestor", investor=investor, forfeited=account.tokens_left)
            logger.info(
                "Investor removed",
                extra={
                    "event": "investor_claim.investor_removed",
                    "investor": investor[:10],
                    "forfeited": account.tokens_left,
                },
            )

    def replace_investor(self, caller: str, old: str, new: str) -> None:
        """
        Move every claim right of ``old`` to ``new``.

        Raises:
            NotAdminError: If caller is not the admin
            NotInvestorError: If ``old`` is not an investor
            InvalidParametersError: If ``new`` is zero or already an investor
        """
        self._require_admin(caller)
        old_norm = normalize_address(old)
        new_norm = normalize_address(new)
        if old_norm not in self.accounts:
            raise NotInvestorError(f"{old_norm[:10]} is not an investor")
        if is_zero_address(new_norm):
            raise InvalidParametersError("replacement cannot be the zero address")
        if new_norm in self.accounts:
            raise InvalidParametersError(f"{new_norm[:10]} is already an investor")

        self.accounts[new_norm] = self.accounts.pop(old_norm)
        self._emit("ReplaceInvestor", old=old_norm, new=new_norm)
        logger.info(
            "Investor replaced",
            extra={
                "event": "investor_claim.investor_replaced",
                "old": old_norm[:10],
                "new": new_norm[:10],
            },
        )

    def return_amount_left(self, caller: str) -> int:
        """
        Sweep the pool balance back to the admin once nothing is owed.

        Returns:
            Amount returned

        Raises:
            NotAdminError: If caller is not the admin
            TokenLeftToClaimError: While any investor has credited tokens left
        """
        self._require_admin(caller)
        pending = [inv for inv, account in self.accounts.items() if account.tokens_left > 0]
        if pending:
            raise TokenLeftToClaimError(
                f"{len(pending)} investor(s) still have tokens to claim"
            )

        amount = self.pool_balance
        if amount > 0:
            self.token.transfer(self.address, self.admin, amount)

        self._emit("ReturnAmountLeft", amount=amount)
        logger.info(
            "Leftover returned to admin",
            extra={"event": "investor_claim.amount_returned", "amount": amount},
        )
        return amount

    # ==================== Investors ====================

    def claim(self, caller: str) -> int:
        """
        Withdraw everything credited to the caller.

        Raises:
            NotInvestorError: If caller is not a current investor
            AlreadyClaimedError: If nothing is credited
        """
        investor = normalize_address(caller)
        account = self.accounts.get(investor)
        if account is None:
            raise NotInvestorError(f"{investor[:10]} is not an investor")
        if account.tokens_left == 0:
            raise AlreadyClaimedError("nothing left to claim this round")

        amount = account.tokens_left
        self.token.transfer(self.address, investor, amount)
        account.tokens_left = 0
        account.claimed_tokens += amount

        self._emit("Claim", investor=investor, amount=amount)
        logger.info(
            "Investor claimed %d tokens",
            amount,
            extra={
                "event": "investor_claim.claimed",
                "investor": investor[:10],
                "claimed_total": account.claimed_tokens,
            },
        )
        return amount

    # ==================== Helpers ====================

    def _require_admin(self, caller: str) -> None:
        self.access_control.require_role(Role.ADMIN, caller, error_cls=NotAdminError)

    def _emit(self, name: str, **args) -> None:
        self.events.append(ContractEvent(name=name, args=args))
