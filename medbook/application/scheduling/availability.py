from typing import Iterable, List

from .intervals import Interval, first_overlap, format_minutes
from .policy import SchedulingPolicy


def available_slots(
    occupied: Iterable[Interval],
    duration: int,
    opens: int,
    closes: int,
    step: int = 15,
) -> List[str]:
    """Start times (HH:MM, ascending) at which a booking of ``duration`` minutes fits.

    Candidates are step-aligned from ``opens`` and must end by ``closes``.
    """
    if step <= 0:
        raise ValueError("step must be positive")
    occupied = list(occupied)
    slots: List[str] = []
    start = opens
    while start + duration <= closes:
        candidate = Interval.from_start(start, duration)
        if first_overlap(candidate, occupied) is None:
            slots.append(format_minutes(start))
        start += step
    return slots


def available_slots_for_policy(occupied: Iterable[Interval], duration: int, policy: SchedulingPolicy) -> List[str]:
    return available_slots(occupied, duration, policy.opens, policy.closes, policy.step)
