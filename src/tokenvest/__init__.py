"""
tokenvest - Token Vesting and Claim-Distribution Ledger

Main Components:
- Vesting: Cliff + stepped schedules, per-beneficiary StepVesting claims
- Timelock: Revocable on-demand grants keyed by (token, beneficiary)
- Investor Claim: Instalment-based pro-rata distribution to a fixed investor set
- Orchestrator: One-shot supply mint into per-beneficiary vesting instances
- Core: ERC20 ledger, PSTAKE token, access control, configuration, logging
"""

__version__ = "0.1.0"
__author__ = "tokenvest Development Team"

__all__ = []
