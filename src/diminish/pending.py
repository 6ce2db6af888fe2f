from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Generator
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Pending(Generic[T]):
    """Shared handle for a resolution that completes on a later event loop turn.

    The coroutine is created and scheduled as a task on the first ``await``.
    Every later ``await``, from any caller, waits on that same task, so the
    underlying work runs at most once. A failure is re-raised to every awaiter.

    Awaiters wait through ``asyncio.shield``: cancelling one caller, directly or
    through ``asyncio.wait_for``, leaves the shared task running for the others.

    ``discard`` is called if the handle is garbage collected before anyone
    awaited it, to release work that was prepared eagerly, such as a coroutine
    object that would otherwise never be awaited.
    """

    __slots__ = ("_discard", "_factory", "_task")

    def __init__(
        self,
        factory: Callable[[], Coroutine[Any, Any, T]],
        *,
        discard: Callable[[], object] | None = None,
    ) -> None:
        self._factory: Callable[[], Coroutine[Any, Any, T]] | None = factory
        self._discard = discard
        self._task: asyncio.Future[T] | None = None

    def __await__(self) -> Generator[Any, None, T]:
        return asyncio.shield(self._ensure_task()).__await__()

    def done(self) -> bool:
        """Return whether the underlying work has completed, successfully or not."""
        return self._task is not None and self._task.done()

    def _ensure_task(self) -> asyncio.Future[T]:
        if self._task is None:
            factory = self._factory
            self._factory = None
            self._discard = None
            # Scheduled on the running loop of the first awaiter.
            self._task = asyncio.ensure_future(factory())  # type: ignore[misc]
        return self._task

    def __del__(self) -> None:
        if self._task is None and self._discard is not None:
            self._discard()

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"<Pending {state}>"
