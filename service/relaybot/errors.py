"""
Failure taxonomy for bot flows.

Every failure a flow can report carries the exact text the user sees. The
handler boundary turns a RelayError into one reply message; anything else is
reported as a generic "<type>\\n<message>" diagnostic.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional


class ErrorCode(str, Enum):
    """Failure categories surfaced to the chat."""

    AUTH_FAILURE = "AUTH_FAILURE"
    SERVICE_UNHEALTHY = "SERVICE_UNHEALTHY"
    SUBMISSION_FAILURE = "SUBMISSION_FAILURE"
    STATUS_CHECK_FAILURE = "STATUS_CHECK_FAILURE"
    JOB_FAILED = "JOB_FAILED"
    JOB_TIMED_OUT = "JOB_TIMED_OUT"
    EMPTY_RESULT = "EMPTY_RESULT"
    UPLOAD_FAILURE = "UPLOAD_FAILURE"
    INPUT_VALIDATION = "INPUT_VALIDATION"


class RelayError(Exception):
    """Base exception for failures with a user-facing message."""

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        meta: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.meta = dict(meta or {})

    @property
    def user_message(self) -> str:
        return self.message


class AuthFailure(RelayError):
    """Token endpoint unreachable, non-2xx, or returned an unusable body."""

    def __init__(self, message: str = "Unable to authorize the bot", **kwargs: Any) -> None:
        super().__init__(message, code=ErrorCode.AUTH_FAILURE, **kwargs)


class ServiceUnhealthy(RelayError):
    """Health probe of a backend failed."""

    def __init__(self, message: str, *, service: str = "", **kwargs: Any) -> None:
        super().__init__(message, code=ErrorCode.SERVICE_UNHEALTHY, **kwargs)
        self.service = service


class SubmissionFailure(RelayError):
    """Submit call failed or returned no job id."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, code=ErrorCode.SUBMISSION_FAILURE, **kwargs)


class StatusCheckFailure(RelayError):
    """Status endpoint unreachable, non-2xx, or unparseable."""

    def __init__(self, message: str, *, job_id: str = "", **kwargs: Any) -> None:
        super().__init__(message, code=ErrorCode.STATUS_CHECK_FAILURE, **kwargs)
        self.job_id = job_id


class JobFailed(RelayError):
    """Backend reported a terminal failure for the job."""

    def __init__(self, job_id: str, error: str) -> None:
        super().__init__(
            f"Something went wrong.\n\nThe error message:\n{error}",
            code=ErrorCode.JOB_FAILED,
            meta={"job_id": job_id},
        )
        self.job_id = job_id
        self.error = error


class JobTimedOut(RelayError):
    """No terminal status was observed before the caller's deadline."""

    def __init__(self, job_id: str, label: str = "The") -> None:
        super().__init__(
            f"{label} job did not succeed within the allowed time. The job id: {job_id}",
            code=ErrorCode.JOB_TIMED_OUT,
            meta={"job_id": job_id},
        )
        self.job_id = job_id


class EmptyResult(RelayError):
    """Job succeeded but its result is blank."""

    def __init__(self, job_id: str, message: str = "Result from the status endpoint is empty") -> None:
        super().__init__(message, code=ErrorCode.EMPTY_RESULT, meta={"job_id": job_id})
        self.job_id = job_id


class UploadFailure(RelayError):
    """File-sharing upload call failed or its response could not be used."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, **kwargs: Any) -> None:
        super().__init__(message, code=ErrorCode.UPLOAD_FAILURE, **kwargs)
        self.status_code = status_code


class InputValidationFailure(RelayError):
    """Malformed user input: bad link, bad file type, oversized file, missing setting."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, code=ErrorCode.INPUT_VALIDATION, **kwargs)
