from typing import Optional, Protocol


class ReferenceStore(Protocol):
    async def next_sequence_value(self) -> int:
        """Next value of the shared reference sequence.

        Raises ResourceUnavailable when the sequence does not exist.
        """
        ...

    async def latest_reference(self, prefix: str) -> Optional[str]:
        """Most recently created reference starting with ``prefix``."""
        ...
