"""Daily cap and entry admission checks."""

import logging
from typing import Iterable

from .errors import OverCapacity, ValidationError
from .models import AllocationEntry

logger = logging.getLogger(__name__)


def total_minutes(entries: Iterable[AllocationEntry]) -> int:
    """Sum of entry minutes."""
    return sum(entry.minutes for entry in entries)


def validate_addition(
    committed_total: int,
    draft_total: int,
    candidate_minutes: int,
    daily_total_minutes: int,
):
    """
    Check that a candidate fits under the daily target.

    Drafts count toward the cap even though they are not committed yet.

    Raises:
        OverCapacity: committed + drafts + candidate exceeds the target
    """
    attempted = committed_total + draft_total + candidate_minutes
    if attempted > daily_total_minutes:
        logger.info(
            f"Rejected {candidate_minutes} min: {attempted} min would exceed "
            f"target of {daily_total_minutes} min"
        )
        raise OverCapacity(attempted, daily_total_minutes)


def validate_entry(entry: AllocationEntry):
    """
    Check that an entry is admissible on its own.

    Raises:
        ValidationError: the entry has no project
    """
    if not entry.project_ref:
        raise ValidationError("A project is required", field="project_ref")
