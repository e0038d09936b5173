"""
Grant registry tests: add, claim, revoke, pause and their failure codes.
"""

import pytest

from tokenvest.core.access_control import Role
from tokenvest.core.constants import SECONDS_PER_DAY, SECONDS_PER_HOUR, SECONDS_PER_YEAR, ZERO_ADDRESS
from tokenvest.core.exceptions import (
    ContractPausedError,
    GrantAlreadyActiveError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidParametersError,
    NoActiveGrantError,
    UnauthorizedError,
    UnknownTokenError,
)
from tokenvest.core.primitives import find_events
from tokenvest.vesting.timelock import VestingTimelock

from tests.conftest import ADMIN, BENEFICIARY, GRANT_ADMIN, OTHER

INSTALMENT = 10_000
COUNT = 3
TOTAL = INSTALMENT * COUNT


@pytest.fixture
def timelock(clock, registry):
    lock = VestingTimelock(
        pause_admin=ADMIN,
        grant_admin=GRANT_ADMIN,
        token_registry=registry,
        time_provider=clock.now,
    )
    lock.access_control.grant_role(GRANT_ADMIN, Role.GRANT_ADMIN, ADMIN)
    return lock


@pytest.fixture
def funded(pstake, timelock):
    pstake.approve(ADMIN, timelock.address, 10**12)
    return timelock


def _add(timelock, ledger, clock, caller=ADMIN, **overrides):
    params = dict(
        token=ledger.address,
        beneficiary=BENEFICIARY,
        start_time=clock.now(),
        cliff_period=SECONDS_PER_DAY,
        instalment_amount=INSTALMENT,
        instalment_count=COUNT,
        instalment_period=SECONDS_PER_HOUR,
    )
    params.update(overrides)
    return timelock.add_grant(caller, **params)


def _code(excinfo):
    return excinfo.value.code


class TestAddGrant:
    def test_add_grant_escrows_total(self, pstake, funded, clock):
        admin_before = pstake.balance_of(ADMIN)

        grant = _add(funded, pstake, clock)

        assert grant.total_amount == TOTAL
        assert grant.manager == ADMIN
        assert pstake.balance_of(funded.address) == TOTAL
        assert pstake.balance_of(ADMIN) == admin_before - TOTAL
        event = find_events(funded.events, "AddGrant")[-1]
        assert event.args["instalmentAmount"] == INSTALMENT
        assert event.args["instalmentCount"] == COUNT
        assert event.args["beneficiary"] == BENEFICIARY

    @pytest.mark.parametrize(
        "overrides",
        [
            {"token": ZERO_ADDRESS},
            {"beneficiary": ZERO_ADDRESS},
            {"cliff_period": 315_600_000},
            {"instalment_amount": 0},
            {"instalment_count": 0},
            {"instalment_count": 1201},
            {"instalment_period": 315_600_000},
            {"cliff_period": -1},
        ],
    )
    def test_invalid_parameters_vt3(self, pstake, funded, clock, overrides):
        with pytest.raises(InvalidParametersError) as excinfo:
            _add(funded, pstake, clock, **overrides)
        assert _code(excinfo) == "VT3"
        assert pstake.balance_of(funded.address) == 0

    def test_start_time_too_far_from_now_vt3(self, pstake, funded, clock):
        with pytest.raises(InvalidParametersError) as excinfo:
            _add(funded, pstake, clock, start_time=clock.now() + 11 * SECONDS_PER_YEAR)
        assert _code(excinfo) == "VT3"

        with pytest.raises(InvalidParametersError) as excinfo:
            _add(funded, pstake, clock, start_time=315_600_000)
        assert _code(excinfo) == "VT3"

    def test_past_start_within_bound_accepted(self, pstake, funded, clock):
        grant = _add(funded, pstake, clock, start_time=clock.now() - SECONDS_PER_YEAR)
        assert grant.start_time == clock.now() - SECONDS_PER_YEAR

    def test_zero_instalment_period_vt18(self, pstake, funded, clock):
        with pytest.raises(InvalidParametersError) as excinfo:
            _add(funded, pstake, clock, instalment_period=0)
        assert _code(excinfo) == "VT18"

    def test_unknown_token_rejected(self, pstake, funded, clock):
        class _Unregistered:
            address = OTHER

        with pytest.raises(UnknownTokenError):
            _add(funded, _Unregistered, clock)

    def test_allowance_too_low(self, pstake, timelock, clock):
        pstake.approve(ADMIN, timelock.address, 100)

        with pytest.raises(InsufficientAllowanceError, match="exceeds allowance"):
            _add(timelock, pstake, clock)

    def test_manager_balance_too_low_vt11(self, pstake, funded, clock):
        funded.access_control.grant_role(GRANT_ADMIN, Role.GRANT_ADMIN, OTHER)
        pstake.approve(OTHER, funded.address, 10**12)

        with pytest.raises(InsufficientBalanceError) as excinfo:
            _add(funded, pstake, clock, caller=OTHER)
        assert _code(excinfo) == "VT11"

    def test_non_grant_admin_rejected(self, pstake, funded, clock):
        with pytest.raises(UnauthorizedError):
            _add(funded, pstake, clock, caller=OTHER)

    def test_duplicate_active_grant_vt17(self, pstake, funded, clock):
        _add(funded, pstake, clock)

        with pytest.raises(GrantAlreadyActiveError) as excinfo:
            _add(funded, pstake, clock)
        assert _code(excinfo) == "VT17"
        assert pstake.balance_of(funded.address) == TOTAL

    def test_add_revoke_add(self, pstake, funded, clock):
        _add(funded, pstake, clock)

        refund = funded.revoke_grant(GRANT_ADMIN, pstake.address, BENEFICIARY)
        assert refund == TOTAL
        assert find_events(funded.events, "RevokeGrant")[-1].args["tokens"] == TOTAL

        grant = _add(funded, pstake, clock)
        assert grant.active


class TestRevokeGrant:
    @pytest.mark.parametrize("which", ["token", "beneficiary"])
    def test_zero_addresses_vt5(self, pstake, funded, clock, which):
        _add(funded, pstake, clock)
        token = ZERO_ADDRESS if which == "token" else pstake.address
        beneficiary = ZERO_ADDRESS if which == "beneficiary" else BENEFICIARY

        with pytest.raises(InvalidParametersError) as excinfo:
            funded.revoke_grant(GRANT_ADMIN, token, beneficiary)
        assert _code(excinfo) == "VT5"

    @pytest.mark.parametrize("caller", [BENEFICIARY, GRANT_ADMIN, ADMIN])
    def test_authorized_revokers(self, pstake, funded, clock, caller):
        _add(funded, pstake, clock)

        funded.revoke_grant(caller, pstake.address, BENEFICIARY)

        assert funded.get_grant(pstake.address, BENEFICIARY) is None

    def test_unauthorized_revoker_vt6(self, pstake, funded, clock):
        _add(funded, pstake, clock)

        with pytest.raises(UnauthorizedError) as excinfo:
            funded.revoke_grant(OTHER, pstake.address, BENEFICIARY)
        assert _code(excinfo) == "VT6"

    def test_revoke_without_grant(self, pstake, funded):
        with pytest.raises(NoActiveGrantError):
            funded.revoke_grant(GRANT_ADMIN, pstake.address, BENEFICIARY)

    def test_revoke_refunds_only_unclaimed(self, pstake, funded, clock):
        _add(funded, pstake, clock)
        clock.advance(SECONDS_PER_DAY + SECONDS_PER_HOUR)
        funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY)
        admin_before = pstake.balance_of(ADMIN)

        refund = funded.revoke_grant(ADMIN, pstake.address, BENEFICIARY)

        assert refund == TOTAL - INSTALMENT
        assert pstake.balance_of(ADMIN) == admin_before + refund
        assert pstake.balance_of(funded.address) == 0


class TestClaimGrant:
    def test_nothing_claimable_before_first_instalment(self, pstake, funded, clock):
        _add(funded, pstake, clock)
        clock.advance(SECONDS_PER_DAY)

        assert funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY) == 0
        assert pstake.balance_of(BENEFICIARY) == 0

    def test_instalments_unlock_per_period(self, pstake, funded, clock):
        _add(funded, pstake, clock)
        clock.advance(SECONDS_PER_DAY + 2 * SECONDS_PER_HOUR + 10)

        assert funded.claimable(pstake.address, BENEFICIARY) == 2 * INSTALMENT
        assert funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY) == 2 * INSTALMENT
        assert funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY) == 0

        event = find_events(funded.events, "ClaimGrant")[0]
        assert event.args == {
            "token": pstake.address,
            "accountAddress": BENEFICIARY,
            "amount": 2 * INSTALMENT,
        }

    def test_full_claim_closes_grant(self, pstake, funded, clock):
        _add(funded, pstake, clock)
        clock.advance(SECONDS_PER_DAY + 10 * SECONDS_PER_HOUR)

        assert funded.claim_grant(GRANT_ADMIN, pstake.address, BENEFICIARY) == TOTAL
        assert pstake.balance_of(BENEFICIARY) == TOTAL
        assert funded.get_grant(pstake.address, BENEFICIARY) is None
        with pytest.raises(NoActiveGrantError) as excinfo:
            funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY)
        assert _code(excinfo) == "VT12"

    def test_zero_addresses_vt8(self, pstake, funded):
        with pytest.raises(InvalidParametersError) as excinfo:
            funded.claim_grant(BENEFICIARY, ZERO_ADDRESS, BENEFICIARY)
        assert _code(excinfo) == "VT8"

    def test_third_party_claim_vt10(self, pstake, funded, clock):
        _add(funded, pstake, clock)

        with pytest.raises(UnauthorizedError) as excinfo:
            funded.claim_grant(OTHER, pstake.address, BENEFICIARY)
        assert _code(excinfo) == "VT10"

    def test_claim_without_grant_vt12(self, pstake, funded):
        with pytest.raises(NoActiveGrantError) as excinfo:
            funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY)
        assert _code(excinfo) == "VT12"


class TestPause:
    def test_pause_blocks_add_and_claim(self, pstake, funded, clock):
        _add(funded, pstake, clock)
        funded.pause(ADMIN)

        with pytest.raises(ContractPausedError):
            funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY)
        with pytest.raises(ContractPausedError):
            _add(funded, pstake, clock, beneficiary=OTHER)

        funded.unpause(ADMIN)
        clock.advance(SECONDS_PER_DAY + SECONDS_PER_HOUR)
        assert funded.claim_grant(BENEFICIARY, pstake.address, BENEFICIARY) == INSTALMENT

    def test_revoke_allowed_while_paused(self, pstake, funded, clock):
        _add(funded, pstake, clock)
        funded.pause(ADMIN)

        assert funded.revoke_grant(GRANT_ADMIN, pstake.address, BENEFICIARY) == TOTAL

    def test_only_pauser_can_pause(self, funded):
        with pytest.raises(UnauthorizedError):
            funded.pause(OTHER)
        assert not funded.paused

    def test_zero_admin_rejected(self, registry):
        with pytest.raises(InvalidParametersError):
            VestingTimelock(pause_admin=ZERO_ADDRESS, grant_admin=GRANT_ADMIN, token_registry=registry)
