"""
Single-job pipeline: credential, submit, poll.
"""

from typing import Optional

from relaybot.services.job_poller import JobPoller
from relaybot.services.job_submitter import JobSubmitter
from relaybot.services.jobs import Job, Payload
from relaybot.services.token_broker import Credential, TokenBroker
from relaybot.logging_config import get_logger

logger = get_logger(__name__)


class JobOrchestrator:
    def __init__(self, submitter: JobSubmitter, poller: JobPoller, broker: TokenBroker):
        self.submitter = submitter
        self.poller = poller
        self.broker = broker

    async def run(self, payload: Payload, owner_id: Optional[int] = None) -> tuple[str, Credential]:
        """
        Run one job to a non-empty result.

        Returns the result together with the credential used, so the caller
        can reuse it for delivery once it has been checked for refresh.
        Failures surface as RelayError subclasses; nothing is recorded.
        """
        job = Job(payload=payload, owner_id=owner_id)
        credential = await self.broker.get_credential()
        started_at = self.poller.clock()
        await self.submitter.submit(credential, job)
        result = await self.poller.wait(job, started_at=started_at)
        logger.info(f"Job {job.job_id} produced {len(result)} chars")
        return result, credential
