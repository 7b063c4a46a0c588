import logging
from typing import Optional, Tuple

import aiohttp

from ...application.ports.http_fetcher import HttpFetcher

logger = logging.getLogger(__name__)


class AiohttpFetcher(HttpFetcher):
    """Shared aiohttp session used for every remote GET. Created once at startup."""

    def __init__(self, timeout: float = 30.0, user_agent: Optional[str] = None) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"Accept": "image/*,*/*;q=0.8"}
        if user_agent:
            self.headers["User-Agent"] = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout, headers=self.headers)
        return self._session

    async def get(self, url: str) -> Tuple[int, bytes]:
        async with self.session.get(url, allow_redirects=True) as resp:
            body = await resp.read()
            return resp.status, body

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
