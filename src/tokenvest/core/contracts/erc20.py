"""
Fungible token ledger.

The vesting contracts escrow into and pay out of ``ERC20Token`` balances.
The ledger supports the ERC20 surface they need (balances, allowances,
transfer, transfer_from), owner-gated minting, burning and a pause switch,
and records ``Transfer`` / ``Approval`` / ``Paused`` / ``Unpaused`` events.

Every state-changing call validates all of its preconditions before it
touches a balance, so a raised error leaves the ledger unchanged.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

from ..constants import DEFAULT_DECIMALS, UINT256_MAX, ZERO_ADDRESS
from ..exceptions import (
    ContractPausedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidParametersError,
    SupplyLimitExceededError,
    UnauthorizedError,
    UnknownTokenError,
)
from ..primitives import (
    ContractEvent,
    derive_contract_address,
    is_zero_address,
    normalize_address,
)

logger = logging.getLogger(__name__)

_deployments = itertools.count(1)


@dataclass
class ERC20Token:
    """
    In-memory ERC20 ledger.

    Subclasses customise who may mint or pause through ``_require_minter`` /
    ``_require_pauser`` and add supply rules through ``_check_mint_limits``.
    """

    name: str
    symbol: str
    decimals: int = DEFAULT_DECIMALS
    total_supply: int = 0
    address: str = ""
    owner: str = ""

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[ContractEvent] = field(default_factory=list)

    # 0 means uncapped
    max_supply: int = 0
    paused: bool = False

    def __post_init__(self) -> None:
        self.owner = normalize_address(self.owner)
        self.address = normalize_address(
            self.address
            or derive_contract_address(self.owner, next(_deployments), f"{self.name}/{self.symbol}")
        )

    # ==================== Views ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(normalize_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        """Amount ``spender`` may still pull from ``owner``."""
        granted = self.allowances.get(normalize_address(owner), {})
        return granted.get(normalize_address(spender), 0)

    def units(self, whole_tokens: int) -> int:
        """Convert a whole-token amount into base units."""
        return int(whole_tokens) * 10**self.decimals

    # ==================== Transfers ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from ``sender`` to ``recipient``.

        Raises:
            ContractPausedError: While the token is paused
            InvalidParametersError: Zero recipient or malformed amount
            InsufficientBalanceError: If ``sender`` holds less than ``amount``
        """
        self._require_not_paused()
        source, target = normalize_address(sender), normalize_address(recipient)
        self._check_recipient(target)
        self._check_amount(amount)
        self._check_balance(source, amount, "transfer")

        self._move(source, target, amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set ``spender``'s allowance over ``owner``'s balance to ``amount``."""
        self._require_not_paused()
        holder, delegate = normalize_address(owner), normalize_address(spender)
        if is_zero_address(delegate):
            raise InvalidParametersError("ERC20: approve to the zero address")
        self._check_amount(amount)

        self.allowances.setdefault(holder, {})[delegate] = amount
        self._emit("Approval", owner=holder, spender=delegate, value=amount)
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Move ``amount`` out of ``from_addr`` using ``spender``'s allowance.

        The allowance is checked before the balance. An allowance of
        ``UINT256_MAX`` is treated as unlimited and never decremented.

        Raises:
            InsufficientAllowanceError: If the allowance is below ``amount``
            InsufficientBalanceError: If ``from_addr`` holds less than ``amount``
        """
        self._require_not_paused()
        delegate = normalize_address(spender)
        source, target = normalize_address(from_addr), normalize_address(to_addr)
        self._check_recipient(target)
        self._check_amount(amount)

        allowed = self.allowance(source, delegate)
        if allowed < amount:
            raise InsufficientAllowanceError(
                f"ERC20: transfer amount exceeds allowance ({amount} > {allowed})"
            )
        self._check_balance(source, amount, "transfer")

        if allowed != UINT256_MAX:
            self.allowances[source][delegate] = allowed - amount
        self._move(source, target, amount)
        return True

    def increase_allowance(self, owner: str, spender: str, added_value: int) -> bool:
        return self.approve(owner, spender, min(UINT256_MAX, self.allowance(owner, spender) + added_value))

    def decrease_allowance(self, owner: str, spender: str, subtracted_value: int) -> bool:
        remaining = self.allowance(owner, spender) - subtracted_value
        if remaining < 0:
            raise InsufficientAllowanceError("ERC20: decreased allowance below zero")
        return self.approve(owner, spender, remaining)

    # ==================== Supply ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """
        Create ``amount`` new tokens for ``to``.

        Raises:
            UnauthorizedError: If ``minter`` may not mint
            SupplyLimitExceededError: If a supply rule would be broken
        """
        self._require_not_paused()
        self._require_minter(minter)
        target = normalize_address(to)
        self._check_recipient(target)
        self._check_amount(amount)
        self._check_mint_limits(amount)

        self.total_supply += amount
        self._move(ZERO_ADDRESS, target, amount)
        logger.info(
            "Minted %d %s",
            amount,
            self.symbol,
            extra={
                "event": "erc20.mint",
                "token": self.address[:10],
                "to": target[:10],
                "supply": self.total_supply,
            },
        )
        return True

    def burn(self, holder: str, amount: int) -> bool:
        """Destroy ``amount`` of ``holder``'s tokens."""
        self._require_not_paused()
        source = normalize_address(holder)
        self._check_amount(amount)
        self._check_balance(source, amount, "burn")

        self.total_supply -= amount
        self._move(source, ZERO_ADDRESS, amount)
        logger.info(
            "Burned %d %s",
            amount,
            self.symbol,
            extra={"event": "erc20.burn", "token": self.address[:10], "supply": self.total_supply},
        )
        return True

    # ==================== Pause ====================

    def pause(self, caller: str) -> bool:
        self._require_pauser(caller)
        self.paused = True
        self._emit("Paused", account=normalize_address(caller))
        return True

    def unpause(self, caller: str) -> bool:
        self._require_pauser(caller)
        self.paused = False
        self._emit("Unpaused", account=normalize_address(caller))
        return True

    # ==================== Hooks ====================

    def _require_minter(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            raise UnauthorizedError(f"ERC20: {normalize_address(caller)[:10]} cannot mint {self.symbol}")

    def _require_pauser(self, caller: str) -> None:
        if normalize_address(caller) != self.owner:
            raise UnauthorizedError(f"ERC20: {normalize_address(caller)[:10]} cannot pause {self.symbol}")

    def _check_mint_limits(self, amount: int) -> None:
        if self.max_supply and self.total_supply + amount > self.max_supply:
            raise SupplyLimitExceededError(
                f"ERC20: minting {amount} would take supply past {self.max_supply}"
            )

    # ==================== Internals ====================

    def _move(self, source: str, target: str, amount: int) -> None:
        """Book a movement; the zero address stands for mint (source) or burn (target)."""
        if source != ZERO_ADDRESS:
            self.balances[source] = self.balances.get(source, 0) - amount
        if target != ZERO_ADDRESS:
            self.balances[target] = self.balances.get(target, 0) + amount
        self._emit("Transfer", **{"from": source, "to": target, "value": amount})
        logger.debug(
            "ERC20 transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.address[:10],
                "source": source[:10],
                "target": target[:10],
                "amount": amount,
            },
        )

    def _check_balance(self, account: str, amount: int, action: str) -> None:
        available = self.balances.get(account, 0)
        if available < amount:
            raise InsufficientBalanceError(
                f"ERC20: {action} amount exceeds balance ({amount} > {available})"
            )

    @staticmethod
    def _check_recipient(address: str) -> None:
        if is_zero_address(address):
            raise InvalidParametersError("ERC20: recipient is the zero address")

    @staticmethod
    def _check_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise InvalidParametersError("ERC20: amount must be an integer")
        if not 0 <= amount <= UINT256_MAX:
            raise InvalidParametersError(f"ERC20: amount {amount} out of range")

    def _require_not_paused(self) -> None:
        if self.paused:
            raise ContractPausedError(f"ERC20: {self.symbol} is paused")

    def _emit(self, name: str, **args) -> None:
        self.events.append(ContractEvent(name=name, args=args))


class ERC20Factory:
    """
    Address -> ledger registry.

    The grant registry resolves token addresses here; an address nobody
    registered is rejected with ``UnknownTokenError``.
    """

    def __init__(self) -> None:
        self.tokens: dict[str, ERC20Token] = {}

    def create_token(
        self,
        creator: str,
        name: str,
        symbol: str,
        decimals: int = DEFAULT_DECIMALS,
        initial_supply: int = 0,
        max_supply: int = 0,
        mint_to: str | None = None,
    ) -> ERC20Token:
        """
        Deploy a plain ERC20 owned by ``creator`` and register it.

        ``initial_supply`` (base units) is minted to ``mint_to`` or the creator.
        """
        if not name or not symbol:
            raise InvalidParametersError("ERC20Factory: name and symbol are required")
        if not 0 <= decimals <= 18:
            raise InvalidParametersError(f"ERC20Factory: unsupported decimals {decimals}")
        if initial_supply < 0 or max_supply < 0:
            raise InvalidParametersError("ERC20Factory: supplies cannot be negative")
        if max_supply and initial_supply > max_supply:
            raise InvalidParametersError("ERC20Factory: initial supply above max supply")

        token = ERC20Token(name=name, symbol=symbol, decimals=decimals, owner=creator, max_supply=max_supply)
        if initial_supply:
            token.mint(creator, mint_to or creator, initial_supply)
        self.register(token)
        logger.info(
            "Token %s deployed",
            symbol,
            extra={"event": "erc20.created", "token": token.address[:10], "supply": token.total_supply},
        )
        return token

    def register(self, token: ERC20Token) -> ERC20Token:
        self.tokens[token.address] = token
        return token

    def get_token(self, address: str) -> ERC20Token | None:
        return self.tokens.get(normalize_address(address))

    def require_token(self, address: str) -> ERC20Token:
        """
        Resolve ``address`` to its ledger.

        Raises:
            UnknownTokenError: If no token is registered at the address
        """
        token = self.get_token(address)
        if token is None:
            raise UnknownTokenError(f"no token deployed at {normalize_address(address)[:10]}")
        return token

    def list_tokens(self) -> list[dict]:
        return [
            {"address": address, "symbol": token.symbol, "name": token.name, "total_supply": token.total_supply}
            for address, token in self.tokens.items()
        ]
