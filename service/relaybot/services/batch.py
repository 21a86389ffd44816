"""
Batch coordination for large units of work.

A playlist is split into chunks of at most max_chunk_size tracks; every chunk
becomes one archive job. Jobs are submitted in chunk order, polled together,
and delivered in chunk order no matter which finished first. Chunks that do
not succeed go to the failed-job ledger and the user gets a restart hint for
each of them.
"""

import asyncio
from typing import Awaitable, Callable, Optional, Protocol, Sequence, TypeVar

from relaybot.services.failed_jobs import FailedJobLedger
from relaybot.services.job_poller import JobPoller
from relaybot.services.job_submitter import JobSubmitter
from relaybot.services.jobs import Job, UrlBatchPayload
from relaybot.services.result_dispatcher import ResultDispatcher, TextSender
from relaybot.services.token_broker import Credential, TokenBroker
from relaybot.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

CHUNK_SEPARATOR = "_____________________"


class BatchItem(Protocol):
    url: str
    title: str


def split_into_chunks(items: Sequence[T], size: int) -> list[list[T]]:
    """Consecutive slices of at most size items, in original order."""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def describe(job: Job) -> str:
    """Preview of one chunk: its first and last track."""
    payload = job.payload
    return (
        f"1. {payload.first_title}\n"
        f"...\n"
        f"n. {payload.last_title}\n"
        f"{CHUNK_SEPARATOR}"
    )


def restart_hint(jobs: Sequence[Job]) -> str:
    lines = "".join(f"`/restart {job.job_id}`\n" for job in jobs)
    return f"Some jobs did not succeed. You can restart failed jobs:\n{lines}"


class BatchCoordinator:
    def __init__(
        self,
        submitter: JobSubmitter,
        poller: JobPoller,
        broker: TokenBroker,
        ledger: FailedJobLedger,
        max_chunk_size: int = 30,
        submit_delay: float = 20,
        link_delay: float = 1,
        refresh_threshold: int = 180,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.submitter = submitter
        self.poller = poller
        self.broker = broker
        self.ledger = ledger
        self.max_chunk_size = max_chunk_size
        self.submit_delay = submit_delay
        self.link_delay = link_delay
        self.refresh_threshold = refresh_threshold
        self.sleep = sleep

    def plan(self, items: Sequence[BatchItem], owner_id: Optional[int] = None) -> list[Job]:
        """One unsubmitted job per chunk."""
        return [
            Job(
                payload=UrlBatchPayload(
                    urls=[item.url for item in chunk],
                    titles=[item.title for item in chunk],
                ),
                owner_id=owner_id,
            )
            for chunk in split_into_chunks(items, self.max_chunk_size)
        ]

    async def submit_all(self, jobs: Sequence[Job], credential: Optional[Credential] = None) -> Credential:
        """Submit in order with a fixed pause between submissions."""
        for index, job in enumerate(jobs):
            if index > 0 and self.submit_delay:
                await self.sleep(self.submit_delay)
            credential = await self.broker.ensure_fresh(credential, self.refresh_threshold)
            await self.submitter.submit(credential, job)
        logger.info(f"All {len(jobs)} jobs started: {', '.join(job.job_id for job in jobs)}")
        return credential

    async def run(
        self,
        user_id: int,
        items: Sequence[BatchItem],
        sender: TextSender,
        dispatcher: ResultDispatcher,
    ) -> list[Job]:
        """
        Preview, submit, poll, deliver and report one batch.

        Returns the jobs recorded as failed. Submission failures propagate;
        chunks that fail on the backend, time out or succeed empty are
        recorded for restart.
        """
        jobs = self.plan(items, owner_id=user_id)
        if not jobs:
            return []

        preview = "\n".join(describe(job) for job in jobs)
        await sender.send_text(f"You will receive next chunks:\n\n{preview}")

        await self.submit_all(jobs)
        await self.poller.wait_all(jobs)

        for number, job in enumerate(jobs, start=1):
            if not job.has_result:
                continue
            await dispatcher.deliver_url(job.result, f"Part {number}")
            if self.link_delay:
                await self.sleep(self.link_delay)

        failed = [job for job in jobs if not job.has_result]
        for job in failed:
            self.ledger.record(user_id, job)

        if failed:
            logger.warning(f"{len(failed)} of {len(jobs)} jobs did not succeed for user {user_id}")
            await sender.send_text(restart_hint(failed), parse_mode="Markdown")
        else:
            await sender.send_text("These are your direct links \U0001F446")

        return failed
