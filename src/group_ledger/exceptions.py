"""Custom exceptions for group-ledger."""


class GroupLedgerError(Exception):
    """Base exception for all group-ledger errors."""

    pass


class ConfigurationError(GroupLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class LedgerInputError(GroupLedgerError, ValueError):
    """Base class for caller errors that must be fixed upstream."""

    pass


class InvalidAmountError(LedgerInputError):
    """Raised when a transaction amount is zero or negative."""

    def __init__(self, amount: object, message: str | None = None):
        self.amount = amount
        super().__init__(message or f"Amount must be positive, got {amount}")


class EmptyParticipantsError(LedgerInputError):
    """Raised when an evaluation is requested without any participants."""

    def __init__(self, message: str | None = None):
        super().__init__(message or "At least one participant is required")


class RecordFormatError(GroupLedgerError):
    """Raised when a raw store record cannot be mapped to a transaction."""

    def __init__(self, record_id: str | None, message: str):
        self.record_id = record_id
        prefix = f"Record {record_id}: " if record_id else ""
        super().__init__(f"{prefix}{message}")


class SnapshotError(GroupLedgerError):
    """Raised when a ledger snapshot file cannot be read."""

    pass
