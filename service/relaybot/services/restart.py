"""
User-initiated restart of a job from the failed-job ledger.
"""

from typing import Optional

from relaybot.errors import InputValidationFailure, RelayError
from relaybot.services.batch import describe, restart_hint
from relaybot.services.failed_jobs import FailedJobLedger
from relaybot.services.job_poller import JobPoller
from relaybot.services.job_submitter import JobSubmitter
from relaybot.services.result_dispatcher import TextSender
from relaybot.services.token_broker import TokenBroker
from relaybot.logging_config import get_logger

logger = get_logger(__name__)


class JobRestarter:
    def __init__(
        self,
        submitter: JobSubmitter,
        poller: JobPoller,
        broker: TokenBroker,
        ledger: FailedJobLedger,
    ):
        self.submitter = submitter
        self.poller = poller
        self.broker = broker
        self.ledger = ledger

    async def restart(
        self,
        user_id: int,
        job_id: Optional[str],
        sender: TextSender,
    ) -> str:
        """
        Resubmit a recorded job with its original payload and wait for it.

        The entry is removed only after the rerun succeeds; on any failure it
        stays in the ledger (it is never added twice). The rerun gets a new
        backend id, so a failed rerun sends a fresh restart hint with that id
        before the error propagates. Returns the result URL.
        """
        job_id = (job_id or "").strip()
        if not job_id:
            raise InputValidationFailure("Job id is empty")

        if not self.ledger.for_user(user_id):
            raise InputValidationFailure("You do not have failed jobs.")

        job = self.ledger.claim(user_id, job_id)
        if job is None:
            raise InputValidationFailure(f"You do not have a failed job with id '{job_id}'.")

        try:
            await sender.send_text(f"The job with info will be restarted:\n\n{describe(job)}")

            credential = await self.broker.get_credential()
            try:
                await self.submitter.submit(credential, job)
                logger.info(f"Job {job_id} restarted as {job.job_id} for user {user_id}")
                result = await self.poller.wait(job)
            except RelayError:
                logger.warning(f"Restart of job {job_id} did not succeed, entry kept as {job.job_id}")
                await sender.send_text(restart_hint([job]), parse_mode="Markdown")
                raise
        finally:
            self.ledger.release(user_id, job)

        self.ledger.remove(user_id, job)
        await sender.send_text(f"This is your direct link: {result}")
        return result
