"""Exception hierarchy for the ledger service."""


class LedgerError(Exception):
    """Base exception for all ledger errors."""
    pass


class NotFoundError(LedgerError):
    """Requested or referenced identifier does not exist."""

    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found")


class ValidationError(LedgerError):
    """Request data is well-formed but not acceptable."""
    pass


class StorageError(LedgerError):
    """Attachment storage call failed."""
    pass


class ReportError(LedgerError):
    """Report rendering failed."""
    pass
