# farmtrack/errors.py


class FarmTrackError(Exception):
    """Base class for errors raised by the stores and the forecast cache."""


class NotFoundError(FarmTrackError):
    """An operation addressed an Id that no record of the kind holds."""

    def __init__(self, kind: str, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id!r}")


class ValidationError(FarmTrackError):
    """A payload is missing required fields or has ill-typed values."""

    def __init__(self, message: str, errors: list | None = None):
        self.errors = errors or []
        super().__init__(message)


class StorageIOError(FarmTrackError):
    """Reading from or writing to the persisted medium failed."""


class ProviderError(FarmTrackError):
    """The forecast provider failed to deliver a forecast."""
