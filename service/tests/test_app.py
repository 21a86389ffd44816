"""
Tests for settings and the FastAPI webhook app.
"""

import pytest
from fastapi.testclient import TestClient

from relaybot import main
from relaybot.config import Settings
from relaybot.services.job_poller import PollPolicy
from relaybot.telegram_bot import bot


def use_settings(monkeypatch, settings: Settings) -> None:
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(bot, "get_settings", lambda: settings)


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.poll_interval_seconds == 10
        assert settings.max_wait_seconds == 600
        assert settings.inline_text_limit == 4000
        assert settings.max_chunk_size == 30
        assert settings.token_refresh_threshold_seconds == 30

    def test_only_configured_bots(self):
        settings = Settings(_env_file=None, music_bot_token="123:abc", youtube_bot_token="")

        assert settings.bot_tokens() == {"music": "123:abc"}

    def test_injection_allowed_ids(self):
        settings = Settings(_env_file=None, language_injection_allowed_users="12, -100345 ,abc,,")

        assert settings.injection_allowed_ids() == {12, -100345}

    def test_poll_policies(self):
        settings = Settings(_env_file=None)

        assert PollPolicy.single(settings) == PollPolicy(interval=10, max_wait=600)
        assert PollPolicy.batch(settings) == PollPolicy(interval=20, max_wait=900, status_delay=1)


class TestWebhookApp:
    def test_health(self, monkeypatch):
        use_settings(monkeypatch, Settings(_env_file=None, environment="test", recap_bot_token="1:a"))

        response = TestClient(main.app).get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "environment": "test", "bots": ["recap"], "version": "0.1.0"}

    def test_root_lists_bot_kinds(self):
        response = TestClient(main.app).get("/")

        assert response.json()["bots"] == ["music", "recap", "transcribe", "translate", "youtube"]

    def test_unknown_bot(self, monkeypatch):
        use_settings(monkeypatch, Settings(_env_file=None))

        response = TestClient(main.app).post("/telegram/music/webhook", json={"update_id": 1})

        assert response.status_code == 404

    @pytest.mark.parametrize("header", [None, "wrong"])
    def test_secret_is_checked(self, monkeypatch, header):
        use_settings(monkeypatch, Settings(_env_file=None, telegram_webhook_secret="s3cret"))
        headers = {"X-Telegram-Bot-Api-Secret-Token": header} if header else {}

        response = TestClient(main.app).post("/telegram/music/webhook", json={"update_id": 1}, headers=headers)

        assert response.status_code == 403
