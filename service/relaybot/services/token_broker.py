"""
Client-credentials token broker.

Credentials are fetched lazily, just before a protected call, and replaced
wholesale when they come within a refresh threshold of expiry. Nothing is
cached across flows: each flow holds its own Credential.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from relaybot.errors import AuthFailure
from relaybot.schemas import TokenResponse
from relaybot.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_REFRESH_THRESHOLD_SECONDS = 30


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credential:
    """Bearer token with an absolute expiry time."""
    access_token: str
    expires_at: datetime
    token_type: str = "Bearer"

    @classmethod
    def from_response(cls, data: TokenResponse, issued_at: datetime) -> "Credential":
        return cls(
            access_token=data.access_token,
            expires_at=issued_at + timedelta(seconds=data.expires_in),
            token_type=data.token_type or "Bearer",
        )

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"Bearer {self.access_token}"

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now < self.expires_at

    def should_refresh(
        self,
        threshold_seconds: int = DEFAULT_REFRESH_THRESHOLD_SECONDS,
        now: Optional[datetime] = None
    ) -> bool:
        """True once now >= expiry - threshold."""
        now = now or utcnow()
        return now + timedelta(seconds=threshold_seconds) >= self.expires_at


class TokenBroker:
    """Issues credentials from the OAuth2 client-credentials endpoint."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token_url: str,
        client_id: str,
        client_secret: str,
        now: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.now = now

    async def get_credential(self) -> Credential:
        """
        Fetch a fresh credential.

        Raises AuthFailure when the broker is not configured, the endpoint is
        unreachable or non-2xx, or the body cannot be parsed. Not retried.
        """
        if not (self.token_url and self.client_id and self.client_secret):
            logger.error("Token endpoint, client id or client secret is not configured")
            raise AuthFailure()

        try:
            response = await self.client.post(
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Error while getting the auth data: {e}")
            raise AuthFailure() from e

        if not response.is_success:
            logger.warning(f"Token endpoint returned status={response.status_code}")
            raise AuthFailure()

        if not response.content:
            logger.warning("Token endpoint returned an empty body")
            raise AuthFailure()

        try:
            data = TokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(f"Unable to parse token response: {e}")
            raise AuthFailure() from e

        if not data.access_token.strip():
            raise AuthFailure()

        return Credential.from_response(data, issued_at=self.now())

    async def ensure_fresh(
        self,
        credential: Optional[Credential],
        threshold_seconds: int = DEFAULT_REFRESH_THRESHOLD_SECONDS
    ) -> Credential:
        """Return credential unchanged unless it is missing or due for refresh."""
        if credential is not None and not credential.should_refresh(threshold_seconds, now=self.now()):
            return credential
        if credential is not None:
            logger.info("Credential is close to expiry, requesting a new one")
        return await self.get_credential()
