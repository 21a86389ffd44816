from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Telegram (a bot with an empty token is not started)
    transcribe_bot_token: str = ""
    translate_bot_token: str = ""
    recap_bot_token: str = ""
    music_bot_token: str = ""
    youtube_bot_token: str = ""
    telegram_webhook_secret: str = ""  # Optional: for webhook verification

    # Gateway and auth server
    gateway_base_url: str = "http://localhost:8080"
    auth_token_url: str = ""  # Full URL of the client-credentials token endpoint
    client_id: str = ""
    client_secret: str = ""
    allowed_file_sharing_server: str = ""  # mp3 links must start with this prefix

    # Gateway routes
    audio_health_path: str = "/api/gateway/audio/v1/health"
    transcribe_path: str = "/api/gateway/audio/v1/transcribe"
    transcribe_status_path: str = "/api/gateway/audio/v1/transcribe/status"
    translate_path: str = "/api/gateway/audio/v1/translate/to-english"
    translate_status_path: str = "/api/gateway/audio/v1/translate/status"
    youtube_health_path: str = "/api/gateway/youtube/v1/health"
    youtube_audio_path: str = "/api/gateway/youtube/v1/audio"
    youtube_split_audio_path: str = "/api/gateway/youtube/v1/audio/get-split-audio"
    music_archive_path: str = "/api/gateway/youtube/v1/audio/get-music-archive"
    music_status_path: str = "/api/gateway/youtube/v1/audio/get-status"
    file_sharing_health_path: str = "/api/gateway/files-share/v1/health"
    file_sharing_upload_path: str = "/api/gateway/files-share/v1/upload"

    # Job polling
    poll_interval_seconds: float = 10
    max_wait_seconds: float = 600
    batch_poll_interval_seconds: float = 20
    batch_max_wait_seconds: float = 900
    batch_status_delay_seconds: float = 1
    batch_submit_delay_seconds: float = 20
    max_chunk_size: int = 30

    # Delivery
    inline_text_limit: int = 4000
    token_refresh_threshold_seconds: int = 30
    batch_token_refresh_threshold_seconds: int = 180
    max_telegram_file_mb: float = 19
    max_inline_audio_mb: float = 49
    http_timeout_seconds: float = 300

    # LLM (Anthropic)
    summary_model: str = "claude-3-5-sonnet-latest"
    translation_model: str = "claude-3-haiku-20240307"
    summary_max_tokens: int = 2500
    language_injection_api_key: str = ""
    language_injection_allowed_users: str = ""  # Comma-separated chat ids

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def bot_tokens(self) -> dict[str, str]:
        """Tokens of the bots that are configured to run, keyed by bot name."""
        tokens = {
            "transcribe": self.transcribe_bot_token,
            "translate": self.translate_bot_token,
            "recap": self.recap_bot_token,
            "music": self.music_bot_token,
            "youtube": self.youtube_bot_token,
        }
        return {name: token for name, token in tokens.items() if token}

    def injection_allowed_ids(self) -> set[int]:
        ids = set()
        for raw in self.language_injection_allowed_users.split(","):
            raw = raw.strip()
            if raw.lstrip("-").isdigit():
                ids.add(int(raw))
        return ids


@lru_cache()
def get_settings() -> Settings:
    return Settings()
