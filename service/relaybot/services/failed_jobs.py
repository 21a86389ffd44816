"""
In-memory ledger of failed jobs, kept for user-initiated restarts.

Entries live for the process lifetime and are removed only when a restart
succeeds. The ledger is not bounded; len() is exposed for monitoring.
"""

import threading
from dataclasses import dataclass
from typing import Optional

from relaybot.errors import InputValidationFailure
from relaybot.services.jobs import Job
from relaybot.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class FailedJobEntry:
    user_id: int
    job: Job


class FailedJobLedger:
    def __init__(self):
        self._entries: list[FailedJobEntry] = []
        self._restarting: set[FailedJobEntry] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def record(self, user_id: int, job: Job) -> bool:
        """Add an entry. Returns False if the job (or its id for this user) is already recorded."""
        with self._lock:
            for entry in self._entries:
                if entry.job is job or (entry.user_id == user_id and entry.job.job_id == job.job_id):
                    return False
            self._entries.append(FailedJobEntry(user_id, job))
        logger.info(f"Recorded failed job {job.job_id} for user {user_id}")
        return True

    def find(self, user_id: int, job_id: str) -> Optional[Job]:
        with self._lock:
            for entry in self._entries:
                if entry.user_id == user_id and entry.job.job_id == job_id:
                    return entry.job
        return None

    def for_user(self, user_id: int) -> list[Job]:
        with self._lock:
            return [entry.job for entry in self._entries if entry.user_id == user_id]

    def remove(self, user_id: int, job: Job) -> bool:
        with self._lock:
            for index, entry in enumerate(self._entries):
                if entry.user_id == user_id and entry.job is job:
                    del self._entries[index]
                    self._restarting.discard(entry)
                    logger.info(f"Removed job {job.job_id} of user {user_id} from the ledger")
                    return True
        return False

    def claim(self, user_id: int, job_id: str) -> Optional[Job]:
        """
        Find an entry and mark it as being restarted.

        Returns None if there is no such entry. Raises InputValidationFailure
        if the entry is already claimed by a restart that has not finished.
        """
        with self._lock:
            for entry in self._entries:
                if entry.user_id == user_id and entry.job.job_id == job_id:
                    if entry in self._restarting:
                        raise InputValidationFailure(f"The job with id '{job_id}' is already being restarted.")
                    self._restarting.add(entry)
                    return entry.job
        return None

    def release(self, user_id: int, job: Job) -> None:
        """Drop the restart mark of an entry that stays in the ledger."""
        with self._lock:
            self._restarting = {
                entry for entry in self._restarting
                if not (entry.user_id == user_id and entry.job is job)
            }
