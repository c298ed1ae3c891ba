"""Session token providers."""

import os
from typing import Protocol

from dotenv import load_dotenv

from core.log import get_logger

logger = get_logger(__name__)


class TokenProvider(Protocol):
    """Source of the dashboard session token."""

    async def get_token(self) -> str | None: ...


class EnvTokenProvider:
    """Read the session token from the environment.

    The .env file is reloaded on every call so a token refreshed on disk is
    picked up by the retry after an authentication failure.
    """

    def __init__(self, env_var: str = "CURSOR_SESSION_TOKEN"):
        self.env_var = env_var

    async def get_token(self) -> str | None:
        load_dotenv(override=True)
        token = os.getenv(self.env_var, "").strip()
        if not token:
            logger.warning(f"{self.env_var} is not set.")
            return None
        return token


class StaticTokenProvider:
    """Always return the same token."""

    def __init__(self, token: str | None):
        self.token = token

    async def get_token(self) -> str | None:
        return self.token
