"""Identifier generation for entries and drafts."""

import itertools
import secrets
import string

# Random per-process prefix keeps ids from different processes apart,
# the counter keeps them unique within one process.
_PROCESS_PREFIX = "".join(
    secrets.choice(string.ascii_lowercase + string.digits) for _ in range(8)
)
_counter = itertools.count(1)


def new_entry_id() -> str:
    """Generate an entry id unique for the lifetime of the process."""
    return f"{_PROCESS_PREFIX}-{next(_counter):06d}"
