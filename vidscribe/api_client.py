"""HTTP session shared by the backend requests."""

import logging
from typing import Optional

import aiohttp

from .config import ApiConfig

logger = logging.getLogger(__name__)


class ApiClient:
    """Owns the aiohttp session used to talk to the backend."""

    def __init__(
        self, config: ApiConfig, session: Optional[aiohttp.ClientSession] = None
    ):
        """Initialize the client.

        Args:
            config: Backend configuration.
            session: Optional externally managed session. It is not closed
                by this client.
        """
        self.config = config
        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def url(self, path: str) -> str:
        """Build an absolute URL for an API path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    async def get_session(self) -> aiohttp.ClientSession:
        """Return the session, creating it on first use."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
            logger.debug(f"Opened HTTP session for {self.base_url}")
        return self._session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed HTTP session")
        if self._owns_session:
            self._session = None

    async def __aenter__(self) -> "ApiClient":
        await self.get_session()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
