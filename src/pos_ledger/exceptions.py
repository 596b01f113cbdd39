"""Domain-specific exceptions for the POS sales ledger.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from PosLedgerError for easy catching.
"""


class PosLedgerError(Exception):
    """Base exception for all POS sales ledger errors.

    This is the base class for all domain-specific exceptions in the package.
    Users can catch this exception to handle any ledger error.
    """

    pass


class ConfigError(PosLedgerError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid import options are provided (batch size, worker count)
    - A required path or catalog file is missing
    """

    pass


class DataQualityError(PosLedgerError):
    """Raised when input data cannot be used at all.

    This exception is raised when:
    - A spreadsheet cannot be read into a cell grid
    - The SKU catalog is missing its item number or description columns
    """

    pass


class TicketParseError(PosLedgerError):
    """Raised when a single ticket cannot be extracted from the grid.

    The ticket scanner catches this per ticket, records the message in the
    batch error list and keeps scanning, so callers only ever see it when
    they parse one ticket directly.
    """

    pass


class LedgerWriteError(PosLedgerError):
    """Raised when a ledger store rejects a single line.

    The ledger writer catches this per line, so sibling lines of the same
    ticket are still attempted.
    """

    pass


class ReconciliationError(PosLedgerError):
    """Raised when reconciled metrics cannot be computed.

    The computation is read-only and cheap to retry, so there is no partial
    result: callers get a generic "failed to compute" message and the
    original exception as ``__cause__``.
    """

    pass
