from __future__ import annotations

from dataclasses import dataclass

from tokenvest.core.exceptions import InvalidParametersError
from tokenvest.core.primitives import normalize_address


@dataclass(frozen=True)
class VestingSchedule:
    """
    Cliff plus stepped-instalment unlock schedule.

    ``cliff_amount`` unlocks at ``cliff_time``; afterwards ``step_amount``
    unlocks once per full ``step_duration``, ``num_steps`` times.
    """

    beneficiary: str
    cliff_time: int
    cliff_amount: int
    step_amount: int
    step_duration: int
    num_steps: int

    def __post_init__(self) -> None:
        for name in ("cliff_time", "cliff_amount", "step_amount", "step_duration", "num_steps"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidParametersError(f"{name} must be an integer")
            if value < 0:
                raise InvalidParametersError(f"{name} cannot be negative")
        if self.num_steps > 0 and self.step_duration == 0:
            raise InvalidParametersError("step_duration must be positive when num_steps > 0")
        object.__setattr__(self, "beneficiary", normalize_address(self.beneficiary))

    @property
    def total_amount(self) -> int:
        return self.cliff_amount + self.step_amount * self.num_steps

    @property
    def end_time(self) -> int:
        """Timestamp at which the last step unlocks."""
        return self.cliff_time + self.step_duration * self.num_steps

    def unlocked_amount(self, current_time: int) -> int:
        return unlocked_amount(self, current_time)


def unlocked_amount(schedule: VestingSchedule, current_time: int) -> int:
    """
    Calculates the cumulative amount unlocked by ``current_time``.

    Before the cliff nothing is unlocked; at the cliff ``cliff_amount``;
    then one ``step_amount`` per elapsed full step, capped at ``num_steps``.
    """
    if current_time < schedule.cliff_time:
        return 0
    if schedule.num_steps == 0:
        return schedule.cliff_amount

    elapsed_steps = min(
        schedule.num_steps,
        (current_time - schedule.cliff_time) // schedule.step_duration,
    )
    return schedule.cliff_amount + schedule.step_amount * elapsed_steps
