"""
Pipeline error taxonomy.

Every error raised here is terminal for a run. Row-level validation failures
are never raised; they are collected into the ValidationReport.
"""


class PipelineError(Exception):
    """Base class for errors that abort a pipeline run."""

    def __init__(self, message: str, target: str | None = None):
        self.message = message
        self.target = target
        # Populated by the pipeline when the failure happens after validation
        self.report = None
        super().__init__(f"{target}: {message}" if target else message)


class SourceUnavailable(PipelineError):
    """Raised when the source resource cannot be retrieved (network, auth, timeout)."""


class MalformedSource(PipelineError):
    """Raised when the source cannot be parsed into rows with a consistent column set."""


class DestinationUnavailable(PipelineError):
    """Raised when the write target cannot be reached, is locked, or times out."""


class SchemaMismatch(PipelineError):
    """Raised when row columns are incompatible with the destination schema."""

    def __init__(
        self,
        message: str,
        target: str | None = None,
        missing: list[str] | None = None,
        unexpected: list[str] | None = None,
    ):
        super().__init__(message, target)
        self.missing = missing or []
        self.unexpected = unexpected or []
