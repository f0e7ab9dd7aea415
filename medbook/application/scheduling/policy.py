from dataclasses import dataclass, field
from typing import Iterable, Tuple

from .intervals import DEFAULT_DURATION_MINUTES, format_minutes, parse_time_slot

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
WEEKEND = ("saturday", "sunday")


@dataclass(frozen=True)
class SchedulingPolicy:
    """Bookable days, business window and slot granularity for all hospitals."""

    allowed_days: Tuple[str, ...] = ("Monday", "Thursday")
    opens: int = 8 * 60
    closes: int = 17 * 60
    default_duration: int = DEFAULT_DURATION_MINUTES
    step: int = 15
    lock_schedule: bool = True
    _allowed_lower: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.closes <= self.opens:
            raise ValueError("Business hours must close after they open")
        if self.step <= 0:
            raise ValueError("Slot step must be a positive number of minutes")
        if self.default_duration <= 0:
            raise ValueError("Default test duration must be positive")
        unknown = [d for d in self.allowed_days if d.strip().lower() not in WEEKDAY_NAMES]
        if unknown:
            raise ValueError(f"Unknown weekday names in allowed days: {unknown}")
        object.__setattr__(self, "_allowed_lower", tuple(d.strip().lower() for d in self.allowed_days))

    @classmethod
    def from_strings(
        cls,
        allowed_days: Iterable[str],
        opens: str,
        closes: str,
        default_duration: int = DEFAULT_DURATION_MINUTES,
        step: int = 15,
        lock_schedule: bool = True,
    ) -> "SchedulingPolicy":
        open_minutes = parse_time_slot(opens)
        close_minutes = parse_time_slot(closes)
        if open_minutes is None or close_minutes is None:
            raise ValueError(f"Business hours must be HH:MM, got {opens!r} and {closes!r}")
        return cls(
            allowed_days=tuple(d.strip() for d in allowed_days),
            opens=open_minutes,
            closes=close_minutes,
            default_duration=default_duration,
            step=step,
            lock_schedule=lock_schedule,
        )

    def is_allowed_day(self, weekday_name: str) -> bool:
        return weekday_name.lower() in self._allowed_lower

    @property
    def allowed_days_label(self) -> str:
        return ", ".join(self.allowed_days)

    @property
    def opens_label(self) -> str:
        return format_minutes(self.opens)

    @property
    def closes_label(self) -> str:
        return format_minutes(self.closes)
