from typing import Protocol, Tuple


class HttpFetcher(Protocol):
    async def get(self, url: str) -> Tuple[int, bytes]:
        """Single GET; returns (status, body). Transport failures raise."""
        ...
