"""Coalesce concurrent calls that share a key into a single execution."""

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Run at most one call per key at a time.

    Callers that arrive while a call for the same key is in flight await
    the leader's future and receive its result or exception. The key is
    released once the leader finishes, so later calls run fresh.

    If the leader is cancelled its followers are not: they retry, and the
    first to get there runs ``fn`` itself. ``fn`` always runs in the task
    of the caller that started it.
    """

    def __init__(self) -> None:
        self._inflight: dict[Hashable, asyncio.Future[T]] = {}

    def in_flight(self, key: Hashable) -> bool:
        return key in self._inflight

    async def do(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        while (existing := self._inflight.get(key)) is not None:
            try:
                # Shield so a cancelled follower does not cancel the shared call
                return await asyncio.shield(existing)
            except asyncio.CancelledError:
                if not existing.cancelled() or _cancel_requested():
                    raise
                # Leader went away; take over or join whoever did

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            result = await fn()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved; with no followers nobody else will read it
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            if self._inflight.get(key) is future:
                del self._inflight[key]


def _cancel_requested() -> bool:
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0
