"""
Dependency wiring for one bot.

Each bot gets its own BotDeps: the shared HTTP client, the token broker, the
gateway clients its commands need, and the in-memory stores. Handlers only
see BotDeps, so tests can pass fakes in its place.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import httpx

from relaybot.config import Settings, get_settings
from relaybot.services.batch import BatchCoordinator
from relaybot.services.failed_jobs import FailedJobLedger
from relaybot.services.gateway import AudioJobsApi, FileSharingApi, JobBackend, MusicArchiveApi, YouTubeApi
from relaybot.services.job_poller import JobPoller, PollPolicy
from relaybot.services.job_submitter import JobSubmitter
from relaybot.services.language_injection import LanguageInjector
from relaybot.services.orchestrator import JobOrchestrator
from relaybot.services.restart import JobRestarter
from relaybot.services.result_dispatcher import ResultDispatcher, TextSender
from relaybot.services.summarization import SummaryService
from relaybot.services.token_broker import Credential, TokenBroker
from relaybot.telegram_bot.context import InMemorySessionStore, SessionStore, UserSettings


@dataclass
class BotDeps:
    name: str
    settings: Settings
    http: httpx.AsyncClient
    broker: TokenBroker
    file_sharing: FileSharingApi
    sessions: SessionStore
    ledger: FailedJobLedger = field(default_factory=FailedJobLedger)
    audio: Optional[AudioJobsApi] = None
    music: Optional[MusicArchiveApi] = None
    youtube: Optional[YouTubeApi] = None
    injector: Optional[LanguageInjector] = None
    summarizer_factory: Callable[[str], SummaryService] = SummaryService
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    background_tasks: set = field(default_factory=set)

    def dispatcher(self, sender: TextSender, credential: Optional[Credential] = None) -> ResultDispatcher:
        return ResultDispatcher(
            sender,
            self.file_sharing,
            self.broker,
            credential=credential,
            inline_limit=self.settings.inline_text_limit,
            refresh_threshold=self.settings.token_refresh_threshold_seconds,
        )

    def poller(self, backend: JobBackend, batch: bool = False) -> JobPoller:
        policy = PollPolicy.batch(self.settings) if batch else PollPolicy.single(self.settings)
        return JobPoller(backend, policy, clock=self.clock, sleep=self.sleep)

    def orchestrator(self, backend: JobBackend) -> JobOrchestrator:
        return JobOrchestrator(JobSubmitter(backend), self.poller(backend), self.broker)

    def batch_coordinator(self, backend: JobBackend) -> BatchCoordinator:
        return BatchCoordinator(
            JobSubmitter(backend),
            self.poller(backend, batch=True),
            self.broker,
            self.ledger,
            max_chunk_size=self.settings.max_chunk_size,
            submit_delay=self.settings.batch_submit_delay_seconds,
            link_delay=self.settings.batch_status_delay_seconds,
            refresh_threshold=self.settings.batch_token_refresh_threshold_seconds,
            sleep=self.sleep,
        )

    def restarter(self, backend: JobBackend) -> JobRestarter:
        return JobRestarter(JobSubmitter(backend), self.poller(backend, batch=True), self.broker, self.ledger)

    def spawn(self, coro) -> asyncio.Task:
        """Run coro in the background, keeping a reference until it finishes."""
        task = asyncio.create_task(coro)
        self.background_tasks.add(task)
        task.add_done_callback(self.background_tasks.discard)
        return task


def build_deps(
    name: str,
    settings: Optional[Settings] = None,
    http: Optional[httpx.AsyncClient] = None,
    session_defaults: Callable[[], UserSettings] = UserSettings,
) -> BotDeps:
    """Wire the services one bot needs, by bot name."""
    settings = settings or get_settings()
    http = http or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    base = settings.gateway_base_url

    deps = BotDeps(
        name=name,
        settings=settings,
        http=http,
        broker=TokenBroker(http, settings.auth_token_url, settings.client_id, settings.client_secret),
        file_sharing=FileSharingApi(
            http, base, settings.file_sharing_health_path, settings.file_sharing_upload_path
        ),
        sessions=InMemorySessionStore(session_defaults),
    )

    if name in ("transcribe", "recap"):
        deps.audio = AudioJobsApi(
            http, base, settings.audio_health_path,
            settings.transcribe_path, settings.transcribe_status_path,
            label="Transcription",
        )
    elif name == "translate":
        deps.audio = AudioJobsApi(
            http, base, settings.audio_health_path,
            settings.translate_path, settings.translate_status_path,
            label="Translation",
        )
        if settings.language_injection_api_key:
            deps.injector = LanguageInjector(
                settings.language_injection_api_key,
                settings.translation_model,
                settings.injection_allowed_ids(),
            )
    elif name == "music":
        deps.music = MusicArchiveApi(
            http, base, settings.youtube_health_path,
            settings.music_archive_path, settings.music_status_path,
        )
    elif name == "youtube":
        deps.youtube = YouTubeApi(
            http, base, settings.youtube_health_path,
            settings.youtube_audio_path, settings.youtube_split_audio_path,
        )

    return deps
