"""
Shared fakes for the relay bot tests.

Time is driven by FakeClock: sleeping advances the clock instead of waiting.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from relaybot.config import Settings
from relaybot.errors import ServiceUnhealthy
from relaybot.schemas import JobStatusResponse
from relaybot.services.token_broker import Credential


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingSender:
    """Stands in for ChatReplier: records what would be sent to the chat."""

    def __init__(self):
        self.texts: list[tuple[str, Optional[str]]] = []
        self.documents: list[tuple[str, Optional[str]]] = []

    async def send_text(self, text: str, parse_mode: Optional[str] = None, reply_markup=None):
        self.texts.append((text, parse_mode))

    async def send_document(self, path, caption: Optional[str] = None):
        with open(path, encoding="utf-8") as f:
            self.documents.append((f.read(), caption))

    @property
    def messages(self) -> list[str]:
        return [text for text, _ in self.texts]


class StubBroker:
    def __init__(self, credential: Optional[Credential] = None):
        self.credential = credential or make_credential()
        self.issued = 0

    async def get_credential(self) -> Credential:
        self.issued += 1
        return self.credential

    async def ensure_fresh(self, credential, threshold_seconds: int = 30) -> Credential:
        if credential is None:
            return await self.get_credential()
        return credential


class ScriptedBackend:
    """
    Job backend whose status answers are scripted per job id.

    Each job id maps to a list of JobStatusResponse; the last one repeats.
    """

    label = "Test"
    submit_path = "/submit"
    submit_unsuccessful_message = "Response from endpoint was unsuccessful"
    empty_result_message = "Result from the status endpoint is empty"

    def __init__(self, scripts: Optional[dict[str, list[JobStatusResponse]]] = None, job_ids=None):
        self.scripts = scripts or {}
        self.job_ids = list(job_ids or [])
        self.health_checks = 0
        self.submitted = []
        self.status_calls: list[str] = []
        self.healthy = True

    async def check_health(self) -> None:
        self.health_checks += 1
        if not self.healthy:
            raise ServiceUnhealthy("Service is unhealthy")

    async def submit(self, credential, job) -> str:
        self.submitted.append(job)
        return self.job_ids.pop(0)

    async def get_status(self, job_id: str) -> JobStatusResponse:
        self.status_calls.append(job_id)
        script = self.scripts.get(job_id) or [JobStatusResponse(status="Running")]
        if len(script) > 1:
            return script.pop(0)
        return script[0]


class FakeFileSharing:
    def __init__(self, url: str = "https://files.example.com/f/1"):
        self.url = url
        self.uploads: list[str] = []
        self.health_checks = 0

    async def check_health(self) -> None:
        self.health_checks += 1

    async def upload(self, credential, path) -> str:
        with open(path, encoding="utf-8") as f:
            self.uploads.append(f.read())
        return self.url


def make_credential(expires_in: int = 3600) -> Credential:
    return Credential(
        access_token="token-123",
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    )


def running() -> JobStatusResponse:
    return JobStatusResponse(status="Running")


def succeeded(result: str) -> JobStatusResponse:
    return JobStatusResponse(status="Succeeded", result=result)


def failed(error: str) -> JobStatusResponse:
    return JobStatusResponse(status="Failed", error=error)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        gateway_base_url="http://gateway",
        auth_token_url="http://auth/token",
        client_id="bot",
        client_secret="secret",
        allowed_file_sharing_server="http://files",
    )
