"""
Vesting ledger exception hierarchy.

Provides typed exceptions for grant, claim and distribution operations so
callers can tell "not allowed" apart from "nothing to do" and from ledger
failures. Every failure aborts the whole operation; nothing is retried.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vesting-ledger errors.

    Attributes:
        message: Human-readable error description
        code: Short failure code (e.g. ``VT3``) when one applies
        details: Additional context about the error
    """

    reason: str = "VestingError"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = message or self.reason
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"{self.code}: {self.message}"
        return self.message


# ==================== Validation Errors ====================


class InvalidParametersError(VestingError):
    """Raised for malformed input: zero addresses, out-of-bound durations or counts."""

    reason = "InvalidParameters"


class UnknownTokenError(InvalidParametersError):
    """Raised when a token address does not resolve to a deployed ledger."""

    reason = "UnknownToken"


class AlreadyExecutedError(InvalidParametersError):
    """Raised when a one-shot operation is invoked a second time."""

    reason = "AlreadyExecuted"


# ==================== Authorization Errors ====================


class UnauthorizedError(VestingError):
    """Raised when the caller lacks the capability an operation requires."""

    reason = "Unauthorized"


class AccessDeniedError(UnauthorizedError):
    """Raised when someone other than the beneficiary claims from a StepVesting."""

    reason = "access denied"


class NotAdminError(UnauthorizedError):
    """Raised when a pool admin operation is called by someone else."""

    reason = "NotAdmin"


class NotInvestorError(UnauthorizedError):
    """Raised when the address is not a current investor of the pool."""

    reason = "NotInvestor"


# ==================== State Errors ====================


class StateError(VestingError):
    """Raised when an operation is not valid in the current state."""

    reason = "InvalidState"


class GrantAlreadyActiveError(StateError):
    """Raised when an active grant already exists for (token, beneficiary)."""

    reason = "AlreadyActive"


class NoActiveGrantError(StateError):
    """Raised when no active grant exists for (token, beneficiary)."""

    reason = "NoActiveGrant"


class AlreadyClaimedError(StateError):
    """Raised when an investor has nothing left to withdraw this round."""

    reason = "AlreadyClaimed"


class TokenLeftToClaimError(StateError):
    """Raised when leftover recovery is attempted while investors still have claims."""

    reason = "TokenLeftToClaim"


class AmountLessThanTotalInvestorAmountError(StateError):
    """Raised when a pool top-up does not cover every investor's round share."""

    reason = "AmountLessThanTotalInvestorAmount"


class ContractPausedError(StateError):
    """Raised when a state-changing call hits a paused contract."""

    reason = "Paused"


# ==================== Ledger Errors ====================


class InsufficientFundsError(VestingError):
    """Raised when the ledger cannot satisfy a token movement."""

    reason = "InsufficientFunds"


class InsufficientBalanceError(InsufficientFundsError):
    """Raised when an account balance is below the amount moved."""

    reason = "InsufficientBalance"


class InsufficientAllowanceError(InsufficientFundsError):
    """Raised when a spender's allowance is below the amount moved."""

    reason = "InsufficientAllowance"


class SupplyLimitExceededError(InsufficientFundsError):
    """Raised when minting would break the supply cap or the inflation budget."""

    reason = "SupplyLimitExceeded"
