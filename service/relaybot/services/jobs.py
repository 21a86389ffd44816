"""
Remote job model.

A Job is one unit of asynchronous work on a gateway backend: submitted once,
polled until its status is terminal, and either delivered or moved into the
failed-job ledger. Status only moves forward; reset() is the single way back,
used when a failed job is restarted.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from relaybot.schemas import JobStatusResponse


class JobStatus(str, Enum):
    UNKNOWN = "Unknown"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "JobStatus":
        """Map a backend status string. Anything unrecognised is UNKNOWN."""
        for status in cls:
            if raw == status.value:
                return status
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


@dataclass
class AudioPayload:
    """One audio/document file plus auxiliary multipart string fields."""
    file_path: Path
    fields: dict[str, str] = field(default_factory=dict)


@dataclass
class UrlBatchPayload:
    """Ordered source URLs, with titles kept for user-facing previews."""
    urls: list[str]
    titles: list[str] = field(default_factory=list)

    @property
    def first_title(self) -> str:
        return self.titles[0] if self.titles else (self.urls[0] if self.urls else "")

    @property
    def last_title(self) -> str:
        return self.titles[-1] if self.titles else (self.urls[-1] if self.urls else "")


Payload = Union[AudioPayload, UrlBatchPayload]


@dataclass(eq=False)
class Job:
    payload: Payload
    owner_id: Optional[int] = None
    job_id: str = ""
    status: JobStatus = JobStatus.UNKNOWN
    result: str = ""
    error: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def has_result(self) -> bool:
        return self.status is JobStatus.SUCCEEDED and bool(self.result.strip())

    def apply_status(self, response: JobStatusResponse) -> JobStatus:
        """Record a polled status. Ignored once the job is terminal."""
        if self.is_terminal:
            return self.status
        self.status = JobStatus.parse(response.status)
        self.result = response.result or ""
        self.error = response.error or ""
        return self.status

    def reset(self, job_id: str) -> None:
        """Start over under a new backend job id (restart)."""
        self.job_id = job_id
        self.status = JobStatus.UNKNOWN
        self.result = ""
        self.error = ""
