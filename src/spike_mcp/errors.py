"""Error taxonomy for spike-mcp.

Core modules raise these; the MCP layer in ``spike_mcp.server`` turns them
into JSON error payloads.
"""


class SpikeError(Exception):
    """Base error carrying the failing operation, its target and the cause."""

    kind = "spike_error"

    def __init__(
        self,
        operation: str,
        target: str,
        detail: str,
        cause: BaseException | None = None,
    ):
        self.operation = operation
        self.target = target
        self.detail = detail
        self.cause = cause
        message = f"{operation} failed for '{target}': {detail}"
        if cause is not None:
            message = f"{message} ({type(cause).__name__}: {cause})"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "kind": self.kind,
            "operation": self.operation,
            "target": self.target,
        }


class ValidationError(SpikeError):
    """Malformed or oversized name, content or id."""

    kind = "validation_error"


class FileSystemError(SpikeError):
    """I/O failure other than a missing file."""

    kind = "filesystem_error"


class NotFoundError(SpikeError, LookupError):
    """No catalog entry (under any supported extension) or spike id matched."""

    kind = "not_found"
