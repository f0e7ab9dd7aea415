"""Human-readable appointment references: ``APT-<year>-<000001>``."""
import logging
import random
import string
import time
from datetime import datetime
from typing import Callable, Optional

from ..errors import ResourceUnavailable
from ..ports.references_repo import ReferenceStore

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "APT"
SEQUENCE_WIDTH = 6
BASE36_ALPHABET = string.digits + string.ascii_uppercase


def format_reference(year: int, sequence: int) -> str:
    return f"{REFERENCE_PREFIX}-{year}-{sequence:0{SEQUENCE_WIDTH}d}"


def year_prefix(year: int) -> str:
    return f"{REFERENCE_PREFIX}-{year}-"


def parse_sequence(reference: str) -> int:
    """Numeric suffix of a reference, or 0 when it has none."""
    parts = reference.split("-")
    if len(parts) < 3:
        return 0
    try:
        return int(parts[2])
    except ValueError:
        return 0


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


class ReferenceGenerator:
    def __init__(
        self,
        store: ReferenceStore,
        now: Callable[[], datetime] = datetime.now,
        clock_ms: Callable[[], int] = lambda: int(time.time() * 1000),
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.now = now
        self.clock_ms = clock_ms
        self.rng = rng or random.SystemRandom()

    async def generate(self) -> str:
        year = self.now().year
        try:
            value = await self.store.next_sequence_value()
        except ResourceUnavailable as e:
            logger.warning("Reference sequence unavailable (%s); using latest reference for %s", e, year)
            return await self.generate_fallback(year)
        return format_reference(year, value)

    async def generate_fallback(self, year: Optional[int] = None) -> str:
        year = year if year is not None else self.now().year
        try:
            last = await self.store.latest_reference(year_prefix(year))
        except Exception:
            logger.exception("Fallback reference lookup failed; using timestamp reference")
            return self.timestamp_reference()
        next_sequence = parse_sequence(last) + 1 if last else 1
        return format_reference(year, next_sequence)

    def timestamp_reference(self) -> str:
        stamp = to_base36(self.clock_ms())
        suffix = "".join(self.rng.choice(BASE36_ALPHABET) for _ in range(4))
        return f"{REFERENCE_PREFIX}-{stamp}-{suffix}"
