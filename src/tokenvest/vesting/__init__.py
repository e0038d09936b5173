"""
Vesting contracts.

- Schedule: cliff + stepped unlock evaluator
- StepVesting: per-beneficiary escrow and claim engine
- VestingTimelock: revocable on-demand grants
- InvestorClaim: instalment-based investor distribution pool
- Orchestrator: one-shot genesis mint into StepVesting escrows
"""

from .allocation import Allocation, AllocationBucket, load_allocation, parse_allocation
from .investor_claim import InvestorClaim
from .orchestrator import Orchestrator
from .schedule import VestingSchedule, unlocked_amount
from .step_vesting import StepVesting
from .timelock import Grant, VestingTimelock

__all__ = [
    "Allocation",
    "AllocationBucket",
    "load_allocation",
    "parse_allocation",
    "InvestorClaim",
    "Orchestrator",
    "VestingSchedule",
    "unlocked_amount",
    "StepVesting",
    "Grant",
    "VestingTimelock",
]
