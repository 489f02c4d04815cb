class TrackerError(Exception):
    """Base tracker error."""


class NotFoundError(TrackerError):
    """Raised when a referenced job or attachment does not exist."""


class TrackerValidationError(TrackerError):
    """Raised when a payload is rejected before it reaches a store."""


class InvalidStatusError(TrackerValidationError):
    """Raised when a status value is outside the job status enumeration."""


class UpstreamFailureError(TrackerError):
    """Raised when a store or search collaborator fails or answers with an unexpected shape."""


class StoreUnavailableError(UpstreamFailureError):
    """Raised when the backing store is unavailable or not configured."""


class CascadeDeleteError(UpstreamFailureError):
    """Raised when a non-atomic cascade delete stops part way through."""

    def __init__(self, message: str, *, job_id: str, remaining_attachment_ids: list[str]) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.remaining_attachment_ids = remaining_attachment_ids
