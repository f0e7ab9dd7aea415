"""Minute-based time spans used for conflict checks and slot enumeration.

All times are minutes since local midnight. Intervals are half-open, so a
booking that ends at 09:00 does not collide with one that starts at 09:00.
"""
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

logger = logging.getLogger(__name__)

TIME_SLOT_PATTERN = re.compile(r"^\d{1,2}:\d{2}$")

DEFAULT_DURATION_MINUTES = 45


def parse_time_slot(value: Any) -> Optional[int]:
    """Return the slot as minutes since midnight, or None if it is not H:MM / HH:MM."""
    text = str(value) if value is not None else ""
    if not TIME_SLOT_PATTERN.match(text):
        return None
    hours, minutes = text.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def resolve_duration(raw: Any, default: int = DEFAULT_DURATION_MINUTES) -> int:
    """Parse a test duration into whole minutes.

    Only plain numbers are accepted ("30", " 45 ", 60). Anything else, including
    "30 minutes", zero and negative values, resolves to ``default``.
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, (int, float)):
        value = raw
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            return default
    if not math.isfinite(value) or value <= 0:
        return default
    return int(value)


@dataclass(frozen=True)
class Interval:
    start: int
    end: int

    @classmethod
    def from_start(cls, start: int, duration: int) -> "Interval":
        return cls(start=start, end=start + duration)

    @classmethod
    def from_slot(cls, time_slot: str, duration: int) -> Optional["Interval"]:
        start = parse_time_slot(time_slot)
        if start is None:
            return None
        return cls.from_start(start, duration)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and self.end > other.start

    def __str__(self) -> str:
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"


def occupied_intervals(bookings: Iterable[Any], default_duration: int = DEFAULT_DURATION_MINUTES) -> List[Interval]:
    """Expand existing bookings into intervals.

    Each booking needs ``time_slot`` and ``duration`` attributes. Rows with a
    malformed time slot are skipped and logged, never treated as conflicts.
    """
    intervals: List[Interval] = []
    for booking in bookings:
        duration = resolve_duration(getattr(booking, "duration", None), default_duration)
        interval = Interval.from_slot(booking.time_slot, duration)
        if interval is None:
            logger.warning(
                "Skipping booking %s with malformed time slot %r",
                getattr(booking, "id", "?"),
                booking.time_slot,
            )
            continue
        intervals.append(interval)
    return intervals


def first_overlap(candidate: Interval, occupied: Iterable[Interval]) -> Optional[Interval]:
    return next((o for o in occupied if candidate.overlaps(o)), None)
