""" Exceptions raised by `roomledger`.

Missing authoritative data (e.g. no NOA for a year) is not an error:
it is reported through flags on the results instead.
"""

class RoomLedgerError(Exception):
    """ Base class for all `roomledger` errors. """

class InvalidInputError(RoomLedgerError, ValueError):
    """ Input that violates a journal or account rule.

    Raised for non-positive amounts, a transaction kind not permitted
    for the account type, an unknown account type, or an unparseable
    date. Stores raise this at write time; calculators re-check.
    """

class NotFoundError(RoomLedgerError, KeyError):
    """ A write referred to an account, transaction or snapshot that
    doesn't exist. (Reads return `None` instead.) """

class ExtractionError(RoomLedgerError):
    """ A statement extractor could not read the document at all. """
