"""Error taxonomy shared by the store, the connector, and the edit session."""


class TaskPulseError(Exception):
    """Base exception for TaskPulse."""


class NotConfigured(TaskPulseError):
    """No usable database connection parameters could be resolved."""

    code = "DB_NOT_CONFIGURED"

    def __init__(self, message: str = "Database not configured"):
        super().__init__(message)


class Unreachable(TaskPulseError):
    """The store is configured but a read or write attempt failed."""


class TransactionFailure(Unreachable):
    """A full-replace write could not commit and was rolled back."""


class ValidationFailure(TaskPulseError):
    """An edit would break a referential invariant and was not applied."""


class ConnectorError(TaskPulseError):
    """A configuration or initialization request to the server failed."""
