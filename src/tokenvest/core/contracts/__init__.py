"""
Token ledger contracts.

This module provides:
- ERC20: Fungible token ledger and the token registry
- PSTAKE: ERC20 with supply max limit and inflation-limited minting
"""

from .erc20 import ERC20Factory, ERC20Token
from .pstake import PStakeToken

__all__ = [
    "ERC20Token",
    "ERC20Factory",
    "PStakeToken",
]
