"""Ledger error taxonomy.

Each error carries the HTTP status the API answers with, plus an optional
dict of extra fields merged into the error envelope.
"""


class LedgerError(Exception):
    status_code = 400

    def __init__(self, message, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra


class NotFound(LedgerError):
    status_code = 404


class InvalidDelta(LedgerError):
    pass


class InvalidPoints(LedgerError):
    pass


class InvalidPhone(LedgerError):
    pass


class InvalidExpiry(LedgerError):
    pass


class PersistenceFailure(LedgerError):
    """Storage error. `partial` is set when the ledger entry was already written."""
    status_code = 500

    def __init__(self, message, partial=False, **extra):
        super().__init__(message, partial=partial, **extra)
        self.partial = partial
