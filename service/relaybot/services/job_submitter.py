"""
Job submission: health probe, then one submit call. No retries.
"""

import httpx

from relaybot.errors import SubmissionFailure
from relaybot.services.gateway import JobBackend
from relaybot.services.jobs import Job
from relaybot.services.token_broker import Credential
from relaybot.logging_config import get_logger

logger = get_logger(__name__)


class JobSubmitter:
    def __init__(self, backend: JobBackend):
        self.backend = backend

    async def submit(self, credential: Credential, job: Job) -> str:
        """
        Send job.payload to the backend and bind the returned id to the job.

        Raises:
            ServiceUnhealthy: health probe failed (checked before anything is sent)
            SubmissionFailure: the call failed or returned a blank job id
        """
        await self.backend.check_health()

        try:
            job_id = await self.backend.submit(credential, job)
        except httpx.HTTPError as e:
            logger.error(f"Submit to {self.backend.submit_path} failed: {e}")
            raise SubmissionFailure(self.backend.submit_unsuccessful_message) from e

        if not job_id or not job_id.strip():
            logger.warning("Submit endpoint returned an empty job id")
            raise SubmissionFailure(self.backend.submit_unsuccessful_message)

        job.reset(job_id.strip())
        logger.info(f"Submitted job {job.job_id} to {self.backend.submit_path}")
        return job.job_id
