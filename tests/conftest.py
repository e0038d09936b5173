"""
Test configuration and fixtures
"""
import logging
import sys
from pathlib import Path

# Add src to Python path
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

import pytest

from tokenvest.core.contracts.erc20 import ERC20Factory
from tokenvest.core.contracts.pstake import PStakeToken

LISTING_TIMESTAMP = 1_660_700_000
ONE_TOKEN = 10**18

ADMIN = "0x" + "a1" * 20
GRANT_ADMIN = "0x" + "b2" * 20
BENEFICIARY = "0x" + "c3" * 20
OTHER = "0x" + "d4" * 20
INVESTOR_1 = "0x" + "01" * 20
INVESTOR_2 = "0x" + "02" * 20
INVESTOR_3 = "0x" + "03" * 20
INVESTOR_4 = "0x" + "04" * 20


class ManualClock:
    def __init__(self, start_time: int):
        self.current_time = start_time

    def now(self) -> int:
        return self.current_time

    def set(self, timestamp: int):
        self.current_time = timestamp

    def advance(self, seconds: int):
        self.current_time += seconds


@pytest.fixture
def clock():
    return ManualClock(start_time=LISTING_TIMESTAMP - 86400)


@pytest.fixture
def registry():
    return ERC20Factory()


@pytest.fixture
def pstake(clock, registry):
    """PSTAKE token whose admin holds a large balance."""
    token = PStakeToken(admin=ADMIN, time_provider=clock.now)
    token.mint(ADMIN, ADMIN, 10_000_000 * ONE_TOKEN)
    registry.register(token)
    return token


@pytest.fixture(autouse=True)
def _reset_tokenvest_logger():
    yield
    logging.getLogger("tokenvest").handlers = []
