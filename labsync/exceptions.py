"""
Errors raised while synchronizing specimen results.

Everything except IntegrityViolation is contained to one specimen in one pass:
the specimen stays pending and is retried on the next pass.
"""
from typing import Optional


class SyncError(Exception):
    """Base class for per-specimen synchronization failures."""

    kind = "sync_error"

    def __init__(self, message: str, barcode: Optional[str] = None):
        super().__init__(message)
        self.barcode = barcode


class NoMatchError(SyncError):
    """The specimen's holder name is not on the roster."""

    kind = "no_match"

    def __init__(self, name: str, barcode: Optional[str] = None):
        super().__init__(f"Couldn't find roster match for name: {name}", barcode)
        self.name = name


class PortalError(SyncError):
    """The portal lookup failed at the network level."""

    kind = "network_error"


class ScrapeError(SyncError):
    """The portal response could not be tokenized."""

    kind = "scrape_error"


class IntegrityViolation(Exception):
    """A result commit touched a number of rows other than one."""

    def __init__(self, barcode: str, rows_affected: int):
        super().__init__(
            f"Expected to update one row for barcode {barcode!r}, updated {rows_affected}"
        )
        self.barcode = barcode
        self.rows_affected = rows_affected
