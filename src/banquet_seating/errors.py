"""Errors raised by the allocation engine.

Every failure surfaces as an :class:`AllocationError` whose ``kind`` tells
the caller which stage failed. Any error means no guest was modified.
"""


class AllocationError(Exception):
    kind = "allocation"


class InputValidationError(AllocationError, ValueError):
    """Bad event id, table count or seat count. Raised before any I/O."""

    kind = "input"


class StoreReadError(AllocationError):
    """The guest list for the event could not be loaded."""

    kind = "store_read"


class StoreWriteError(AllocationError):
    """The atomic table number batch was rejected. Nothing was written."""

    kind = "store_write"
