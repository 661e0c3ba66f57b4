"""Failover error types — fatal conditions that abort a reconciliation run."""


class FailoverError(Exception):
    """Base class for errors that end a run."""


class ConfigurationError(FailoverError):
    """Raised when the run cannot start (missing domain, token, idp key, zone)."""


class RecordLookupError(FailoverError):
    """Raised when a record lookup does not return exactly one match."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"error finding DNS record {name}: {reason}")


class RecordWriteError(FailoverError):
    """Raised when Cloudflare rejects or fails an update."""

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(f"error updating DNS record {name}: {cause}")
