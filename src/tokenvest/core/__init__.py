"""
tokenvest Core Module

Core building blocks shared by the vesting contracts:
- Token ledgers (ERC20, PSTAKE)
- Role-based access control
- Error hierarchy and protocol constants
- Configuration and structured logging
"""

__all__ = []
