"""Allocation engine errors."""

from typing import Optional


class AllocationError(Exception):
    """Base class for all allocation engine errors."""


class OverCapacity(AllocationError):
    """Adding the candidate would exceed the day's target."""

    def __init__(self, attempted_minutes: int, allowed_minutes: int):
        self.attempted_minutes = attempted_minutes
        self.allowed_minutes = allowed_minutes
        super().__init__(
            f"Allocated time ({attempted_minutes} min) cannot exceed "
            f"the daily target ({allowed_minutes} min)"
        )


class ValidationError(AllocationError):
    """Entry input rejected before admission (missing project, bad duration)."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class EntryNotFound(AllocationError):
    """No committed entry or draft with the given id."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}")


class InvalidTransition(AllocationError):
    """Operation not allowed in the day's current workflow state."""


class StoreUnavailable(AllocationError):
    """A record store call failed."""
