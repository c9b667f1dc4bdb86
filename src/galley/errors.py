"""Exceptions surfaced by the export pipeline."""

from typing import Optional


class ExportError(Exception):
    """Base error for a failed export request.

    Attributes:
        message: Human-readable description
        reason: Machine-readable reason code
        status: HTTP-like status code for the transport layer
    """

    reason = "export_failed"
    status = 500

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason
        if status is not None:
            self.status = status

    def to_payload(self) -> dict[str, str]:
        """Error body for the caller."""
        return {"error": self.reason, "message": self.message}


class NotFoundError(ExportError):
    """Requested article, issue, volume or attachment does not exist."""

    reason = "not_found"
    status = 404


class ComposeError(ExportError):
    """Archive could not be written."""

    reason = "compose_failure"
    status = 500
