from typing import Protocol


class ObjectNotFoundError(Exception):
    """The requested key does not exist in the bucket."""


class ObjectStoreUnavailableError(Exception):
    """The object store client was never configured or failed to initialize."""


class ObjectStore(Protocol):
    @property
    def enabled(self) -> bool:
        ...

    async def get_object(self, key: str) -> bytes:
        ...
