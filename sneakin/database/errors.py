"""
Errors raised by the Supabase store wrappers.
"""

UNIQUE_VIOLATION = '23505'


class StoreError(Exception):
    """A read or write against the relational or blob store failed."""


class DuplicateListing(StoreError):
    """The listing insert hit the dedup unique index (another import won the race)."""


def is_unique_violation(error: Exception) -> bool:
    """True if a PostgREST error reports a unique-constraint violation."""
    if getattr(error, 'code', None) == UNIQUE_VIOLATION:
        return True
    return 'duplicate key value' in str(error)
