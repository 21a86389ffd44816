"""
Job status polling.

A single job is polled until the backend reports Succeeded or Failed, or the
caller's deadline passes. Sibling jobs in a batch share one deadline and are
polled one after another on every tick.

Clock and sleep are injected so the loop can be driven deterministically.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from relaybot.config import Settings
from relaybot.errors import EmptyResult, JobFailed, JobTimedOut, StatusCheckFailure
from relaybot.services.gateway import JobBackend
from relaybot.services.jobs import Job, JobStatus
from relaybot.logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PollPolicy:
    interval: float
    max_wait: float
    status_delay: float = 0

    @classmethod
    def single(cls, settings: Settings) -> "PollPolicy":
        return cls(
            interval=settings.poll_interval_seconds,
            max_wait=settings.max_wait_seconds,
        )

    @classmethod
    def batch(cls, settings: Settings) -> "PollPolicy":
        return cls(
            interval=settings.batch_poll_interval_seconds,
            max_wait=settings.batch_max_wait_seconds,
            status_delay=settings.batch_status_delay_seconds,
        )


class JobPoller:
    def __init__(
        self,
        backend: JobBackend,
        policy: PollPolicy,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.backend = backend
        self.policy = policy
        self.clock = clock
        self.sleep = sleep

    async def wait(self, job: Job, started_at: Optional[float] = None) -> str:
        """
        Poll one job to completion and return its result.

        Terminates in exactly one of three ways:
        - Failed: raises JobFailed with the backend error text
        - Succeeded: returns the result (EmptyResult if it is blank)
        - deadline reached: raises JobTimedOut citing the job id

        StatusCheckFailure from the backend ends the wait immediately.
        """
        start = self.clock() if started_at is None else started_at

        while self.clock() - start < self.policy.max_wait:
            response = await self.backend.get_status(job.job_id)
            status = job.apply_status(response)

            if status is JobStatus.FAILED:
                logger.warning(f"Job {job.job_id} failed: {job.error}")
                raise JobFailed(job.job_id, job.error)

            if status is JobStatus.SUCCEEDED:
                if not job.result.strip():
                    logger.warning(f"Job {job.job_id} succeeded with an empty result")
                    raise EmptyResult(job.job_id, self.backend.empty_result_message)
                logger.info(f"Job {job.job_id} succeeded")
                return job.result

            await self.sleep(self.policy.interval)

        logger.warning(f"Job {job.job_id} timed out after {self.policy.max_wait}s")
        raise JobTimedOut(job.job_id, self.backend.label)

    async def wait_all(self, jobs: Sequence[Job], started_at: Optional[float] = None) -> list[Job]:
        """
        Poll sibling jobs until every one is terminal or the shared deadline passes.

        Each tick polls the still-running jobs in order, pausing status_delay
        between calls. A failed status request is logged and the job is asked
        again on the next tick. Returns the jobs still non-terminal at the
        deadline (empty when all finished).
        """
        start = self.clock() if started_at is None else started_at

        while self.clock() - start < self.policy.max_wait:
            pending = [job for job in jobs if not job.is_terminal]
            for index, job in enumerate(pending):
                if index > 0 and self.policy.status_delay:
                    await self.sleep(self.policy.status_delay)
                try:
                    response = await self.backend.get_status(job.job_id)
                except StatusCheckFailure as e:
                    logger.warning(f"Status check for job {job.job_id} failed: {e.message}")
                    continue
                status = job.apply_status(response)
                if status.is_terminal:
                    logger.info(f"Job {job.job_id} finished with status {status.value}")

            if all(job.is_terminal for job in jobs):
                return []

            await self.sleep(self.policy.interval)

        unfinished = [job for job in jobs if not job.is_terminal]
        for job in unfinished:
            logger.warning(f"Job {job.job_id} did not finish before the batch deadline")
        return unfinished
