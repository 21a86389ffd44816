"""
Single-job flow over real HTTP clients: token, health, submit, poll, upload, link.

Everything talks to one httpx.MockTransport that plays the auth server, the
audio backend and the file sharing backend.
"""

from pathlib import Path

import httpx
import pytest

from conftest import FakeClock, RecordingSender
from relaybot.errors import JobTimedOut
from relaybot.services.gateway import AudioJobsApi, FileSharingApi
from relaybot.services.job_poller import JobPoller, PollPolicy
from relaybot.services.job_submitter import JobSubmitter
from relaybot.services.jobs import AudioPayload
from relaybot.services.orchestrator import JobOrchestrator
from relaybot.services.result_dispatcher import DeliveryMode, ResultDispatcher
from relaybot.services.token_broker import TokenBroker


class FakeGateway:
    def __init__(self, statuses: list[dict]):
        self.statuses = statuses
        self.calls: list[str] = []
        self.uploaded: list[bytes] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(f"{request.method} {path}")

        if path == "/token":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 300})
        if path.endswith("/health"):
            return httpx.Response(200)
        if path == "/audio/transcribe":
            assert request.headers["authorization"] == "Bearer tok"
            return httpx.Response(200, json={"jobId": "job-1"})
        if path == "/audio/status":
            assert request.url.params["id"] == "job-1"
            status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return httpx.Response(200, json=status)
        if path == "/files/upload":
            assert request.headers["authorization"] == "Bearer tok"
            self.uploaded.append(request.content)
            return httpx.Response(200, json={"fileUrl": "https://files/result"})
        return httpx.Response(404)


@pytest.fixture
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "meeting.mp3"
    path.write_bytes(b"audio")
    return path


def build(gateway: FakeGateway, clock: FakeClock, sender: RecordingSender):
    client = httpx.AsyncClient(transport=httpx.MockTransport(gateway))
    broker = TokenBroker(client, "http://auth/token", "bot", "secret")
    audio = AudioJobsApi(client, "http://gateway", "/audio/health", "/audio/transcribe", "/audio/status", "Transcription")
    files = FileSharingApi(client, "http://gateway", "/files/health", "/files/upload")
    poller = JobPoller(audio, PollPolicy(interval=10, max_wait=600), clock=clock, sleep=clock.sleep)
    orchestrator = JobOrchestrator(JobSubmitter(audio), poller, broker)
    return client, orchestrator, broker, files


class TestSingleJobFlow:
    @pytest.mark.asyncio
    async def test_long_result_is_delivered_as_one_link(self, audio_file, clock, sender):
        """Running, Running, Succeeded(5000 chars): two sleeps, one upload, one hyperlink."""
        gateway = FakeGateway([
            {"status": "Running"},
            {"status": "Running"},
            {"status": "Succeeded", "result": "x" * 5000},
        ])
        client, orchestrator, broker, files = build(gateway, clock, sender)

        try:
            result, credential = await orchestrator.run(AudioPayload(audio_file, {"openaiApiKey": "sk"}))
            dispatcher = ResultDispatcher(sender, files, broker, credential)
            outcome = await dispatcher.deliver(result, title="Transcription")
        finally:
            await client.aclose()

        assert clock.sleeps == [10, 10]
        assert len(gateway.uploaded) == 1
        assert b"x" * 5000 in gateway.uploaded[0]
        assert outcome.mode is DeliveryMode.LINK
        assert sender.texts == [('<a href="https://files/result">Transcription</a>', "HTML")]
        # the credential from submission is reused for the upload
        assert gateway.calls.count("POST /token") == 1
        assert gateway.calls[:3] == ["POST /token", "GET /audio/health", "POST /audio/transcribe"]

    @pytest.mark.asyncio
    async def test_short_result_is_inline(self, audio_file, clock, sender):
        gateway = FakeGateway([{"status": "Succeeded", "result": "hello world"}])
        client, orchestrator, broker, files = build(gateway, clock, sender)

        try:
            result, credential = await orchestrator.run(AudioPayload(audio_file))
            await ResultDispatcher(sender, files, broker, credential).deliver(result)
        finally:
            await client.aclose()

        assert sender.texts == [("hello world", None)]
        assert gateway.uploaded == []
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_timeout_names_the_job(self, audio_file, clock, sender):
        gateway = FakeGateway([{"status": "Running"}])
        client, orchestrator, broker, files = build(gateway, clock, sender)

        try:
            with pytest.raises(JobTimedOut) as exc_info:
                await orchestrator.run(AudioPayload(audio_file))
        finally:
            await client.aclose()

        assert exc_info.value.user_message == (
            "Transcription job did not succeed within the allowed time. The job id: job-1"
        )
        assert gateway.calls.count("GET /audio/status") == 60
