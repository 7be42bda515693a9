"""Domain exceptions raised by services and translated by the API layer."""
from typing import Optional


class StoreError(Exception):
    """The CMS record store rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecordNotFoundError(StoreError):
    """The requested record id does not exist in the store."""


class UnauthorizedError(StoreError):
    """The store refused the write or read for the configured token."""


class MalformedRecordError(ValueError):
    """A record reached the reordering engine without an id."""


class UnknownRecordError(ValueError):
    """A display order referenced ids that are not loaded in the grid."""

    def __init__(self, message: str, ids=None):
        super().__init__(message)
        self.ids = list(ids or [])


class ReorderInProgressError(RuntimeError):
    """Another reorder is still flushing for this grid."""
