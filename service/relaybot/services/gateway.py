"""
HTTP clients for the gateway backends.

Every backend exposes a health route; job backends add a submit route and a
status route. Clients are thin: they map transport and parse problems onto
the failure taxonomy and leave policy (retries, polling, refresh) to callers.
"""

from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from relaybot.errors import ServiceUnhealthy, StatusCheckFailure, SubmissionFailure, UploadFailure
from relaybot.schemas import JobInfo, JobStatusResponse, UploadData, UrlsRequest
from relaybot.services.jobs import AudioPayload, Job, UrlBatchPayload
from relaybot.services.token_broker import Credential
from relaybot.logging_config import get_logger

logger = get_logger(__name__)


class GatewayService:
    """Base for a backend reachable behind the gateway."""

    unhealthy_message = "Service is unhealthy"

    def __init__(self, client: httpx.AsyncClient, base_url: str, health_path: str):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.health_path = health_path

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def check_health(self) -> None:
        """Raise ServiceUnhealthy unless the health route answers 2xx."""
        try:
            response = await self.client.get(self.url(self.health_path))
        except httpx.HTTPError as e:
            logger.warning(f"Health probe {self.health_path} failed: {e}")
            raise ServiceUnhealthy(self.unhealthy_message, service=self.health_path) from e

        if not response.is_success:
            logger.warning(f"Health probe {self.health_path} returned status={response.status_code}")
            raise ServiceUnhealthy(self.unhealthy_message, service=self.health_path)


class JobBackend(GatewayService):
    """A gateway backend that accepts jobs and reports their status."""

    label = "The"
    submit_path = ""
    submit_unsuccessful_message = "Response from endpoint was unsuccessful"
    status_unsuccessful_message = "Response from status endpoint was unsuccessful"
    empty_result_message = "Result from the status endpoint is empty"

    async def submit(self, credential: Credential, job: Job) -> str:
        raise NotImplementedError

    async def fetch_status(self, job_id: str) -> httpx.Response:
        raise NotImplementedError

    async def get_status(self, job_id: str) -> JobStatusResponse:
        try:
            response = await self.fetch_status(job_id)
        except httpx.HTTPError as e:
            logger.warning(f"Status request for job {job_id} failed: {e}")
            raise StatusCheckFailure(self.status_unsuccessful_message, job_id=job_id) from e

        if not response.is_success:
            logger.warning(f"Status endpoint returned status={response.status_code} for job {job_id}")
            raise StatusCheckFailure(self.status_unsuccessful_message, job_id=job_id)

        try:
            return JobStatusResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(f"Unable to parse status of job {job_id}: {e}")
            raise StatusCheckFailure(self.status_unsuccessful_message, job_id=job_id) from e

    def parse_job_id(self, response: httpx.Response) -> str:
        if not response.is_success:
            logger.warning(f"Submit endpoint returned status={response.status_code}")
            raise SubmissionFailure(self.submit_unsuccessful_message)
        try:
            info = JobInfo.model_validate_json(response.content)
        except ValidationError as e:
            raise SubmissionFailure(self.submit_unsuccessful_message) from e
        return info.job_id


class AudioJobsApi(JobBackend):
    """Transcription and translation jobs: multipart audio file in, text out."""

    unhealthy_message = "Audio microservice is unhealthy"
    submit_unsuccessful_message = "Response from audio endpoint was unsuccessful"
    status_unsuccessful_message = "Response from status audio endpoint was unsuccessful"
    empty_result_message = "Result from the status audio endpoint is empty"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        health_path: str,
        submit_path: str,
        status_path: str,
        label: str = "The",
    ):
        super().__init__(client, base_url, health_path)
        self.submit_path = submit_path
        self.status_path = status_path
        self.label = label

    async def submit(self, credential: Credential, job: Job) -> str:
        payload = job.payload
        if not isinstance(payload, AudioPayload):
            raise TypeError(f"Audio jobs need an AudioPayload, got {type(payload).__name__}")

        with open(payload.file_path, "rb") as f:
            response = await self.client.post(
                self.url(self.submit_path),
                headers={"Authorization": credential.authorization},
                files={"audioFile": (payload.file_path.name, f, "application/octet-stream")},
                data=payload.fields,
            )
        return self.parse_job_id(response)

    async def fetch_status(self, job_id: str) -> httpx.Response:
        return await self.client.get(self.url(self.status_path), params={"id": job_id})


class MusicArchiveApi(JobBackend):
    """Playlist archive jobs: JSON list of track URLs in, archive URL out."""

    unhealthy_message = "YouTube microservice is unhealthy"
    label = "The archive"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        health_path: str,
        submit_path: str,
        status_path: str,
    ):
        super().__init__(client, base_url, health_path)
        self.submit_path = submit_path
        self.status_path = status_path

    async def submit(self, credential: Credential, job: Job) -> str:
        payload = job.payload
        if not isinstance(payload, UrlBatchPayload):
            raise TypeError(f"Archive jobs need a UrlBatchPayload, got {type(payload).__name__}")

        body = UrlsRequest(urls=payload.urls).model_dump(by_alias=True)
        response = await self.client.post(
            self.url(self.submit_path),
            headers={"Authorization": credential.authorization},
            json=body,
        )
        return self.parse_job_id(response)

    async def fetch_status(self, job_id: str) -> httpx.Response:
        return await self.client.get(self.url(self.status_path), params={"jobId": job_id})


class FileSharingApi(GatewayService):
    """Uploads a file and returns its public URL."""

    unhealthy_message = "File sharing endpoint is down"

    def __init__(self, client: httpx.AsyncClient, base_url: str, health_path: str, upload_path: str):
        super().__init__(client, base_url, health_path)
        self.upload_path = upload_path

    async def upload(self, credential: Credential, path: Path) -> str:
        """
        Upload one file.

        Non-2xx responses and unusable bodies are distinct UploadFailure
        messages so the user can tell them apart.
        """
        try:
            with open(path, "rb") as f:
                response = await self.client.post(
                    self.url(self.upload_path),
                    headers={"Authorization": credential.authorization},
                    files={"file": (Path(path).name, f, "application/octet-stream")},
                )
        except httpx.HTTPError as e:
            logger.warning(f"Upload request failed: {e}")
            raise UploadFailure("Unable to upload the file to file sharing server") from e

        if not response.is_success:
            logger.warning(f"Upload returned status={response.status_code}")
            raise UploadFailure(
                f"Unable to upload the file to file sharing server. StatusCode: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = UploadData.model_validate_json(response.content)
        except ValidationError as e:
            raise UploadFailure("Unable to get upload data from file sharing server") from e

        if not data.file_url.strip():
            raise UploadFailure("Unable to get upload data from file sharing server")

        return data.file_url


class YouTubeApi(GatewayService):
    """Downloads the audio track of a YouTube video, optionally cut to a range."""

    unhealthy_message = "YouTube microservice is unhealthy"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        health_path: str,
        audio_path: str,
        split_audio_path: str,
    ):
        super().__init__(client, base_url, health_path)
        self.audio_path = audio_path
        self.split_audio_path = split_audio_path

    async def download_audio(
        self,
        credential: Credential,
        url: str,
        dest: Path,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> Path:
        """Stream the audio into dest. Uses the split route when a range is given."""
        if start and end:
            path = self.split_audio_path
            params = {"videoUrl": url, "startTime": start, "endTime": end}
        else:
            path = self.audio_path
            params = {"videoUrl": url}

        async with self.client.stream(
            "GET",
            self.url(path),
            params=params,
            headers={"Authorization": credential.authorization},
        ) as response:
            if not response.is_success:
                logger.warning(f"YouTube audio request returned status={response.status_code}")
                raise SubmissionFailure("Response from YouTube endpoint was unsuccessful")
            with open(dest, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)

        return dest
