import asyncio
from typing import Awaitable, Callable, Dict, Tuple, TypeVar

T = TypeVar("T")


class SingleFlight:
    """Coalesces concurrent calls for the same key into one in-flight task.

    Only the caller that starts the task is the leader; the rest await the
    same future and receive its result or exception. The entry is dropped
    once the task settles, so later calls start fresh.
    """

    def __init__(self) -> None:
        self._inflight: Dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._inflight)

    async def do(self, key: str, fn: Callable[[], Awaitable[T]]) -> Tuple[T, bool]:
        """Run ``fn`` once per key. Returns (result, shared)."""
        existing = self._inflight.get(key)
        if existing is not None:
            return await asyncio.shield(existing), True

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await fn()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Consumed here so an unawaited follower-less future does not warn
            future.exception()
            raise
        else:
            future.set_result(result)
            return result, False
        finally:
            self._inflight.pop(key, None)
