"""Tests for async producers, Pending handles and the awaiting entry points."""

from __future__ import annotations

import asyncio
import inspect
from typing import Annotated, Any

import pytest

from diminish.container import Container
from diminish.exceptions import DiminishContextNotAllowedError, DiminishResolutionFailedError
from diminish.markers import Group
from diminish.pending import Pending


class TestAsyncProducers:
    @pytest.mark.asyncio
    async def test_resolve_returns_pending_for_async_producer(self, container: Container) -> None:
        async def connection() -> str:
            await asyncio.sleep(0)
            return "connected"

        container.register("connection", connection)

        pending = container.resolve("connection")

        assert isinstance(pending, Pending)
        assert await pending == "connected"
        assert container.resolve("connection") == "connected"

    @pytest.mark.asyncio
    async def test_aresolve(self, container: Container) -> None:
        async def token() -> str:
            return "secret"

        container.register("token", token)
        container.literal("plain", 1)

        assert await container.aresolve("token") == "secret"
        assert await container.aresolve("plain") == 1

    @pytest.mark.asyncio
    async def test_async_dependency_makes_dependent_pending(self, container: Container) -> None:
        async def settings() -> dict[str, str]:
            await asyncio.sleep(0)
            return {"dsn": "sqlite://"}

        class Repository:
            def __init__(self, settings: dict[str, str]) -> None:
                self.dsn = settings["dsn"]

        container.register({"settings": settings, "repository": Repository})

        repository = await container.aresolve("repository")

        assert isinstance(repository, Repository)
        assert repository.dsn == "sqlite://"

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_application(self, container: Container) -> None:
        calls: list[int] = []

        async def expensive() -> object:
            calls.append(1)
            await asyncio.sleep(0.01)
            return object()

        container.register("expensive", expensive)

        results = await asyncio.gather(
            container.aresolve("expensive"),
            container.aresolve("expensive"),
            container.aresolve("expensive"),
        )

        assert calls == [1]
        assert results[0] is results[1] is results[2]

    @pytest.mark.asyncio
    async def test_shared_async_dependency_runs_once(self, container: Container) -> None:
        calls: list[int] = []

        async def pool() -> object:
            calls.append(1)
            await asyncio.sleep(0)
            return object()

        container.register(
            {
                "pool": pool,
                "reader": lambda pool: ("reader", pool),
                "writer": lambda pool: ("writer", pool),
                "app": lambda reader, writer: reader[1] is writer[1],
            },
        )

        assert await container.aresolve("app") is True
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_async_failure(self, container: Container) -> None:
        async def broken() -> None:
            msg = "timeout"
            raise TimeoutError(msg)

        container.register({"broken": broken, "service": lambda broken: broken})

        with pytest.raises(DiminishResolutionFailedError) as exc_info:
            await container.aresolve("service")

        assert exc_info.value.key == "broken"
        assert exc_info.value.requested == "service"
        assert isinstance(exc_info.value.error, TimeoutError)

    @pytest.mark.asyncio
    async def test_sync_producer_failing_after_async_dependency(
        self,
        container: Container,
    ) -> None:
        async def config() -> dict[str, str]:
            return {}

        def service(config: dict[str, str]) -> str:
            return config["missing"]

        container.register({"config": config, "service": service})

        with pytest.raises(DiminishResolutionFailedError) as exc_info:
            await container.aresolve("service")

        assert exc_info.value.key == "service"
        assert isinstance(exc_info.value.error, KeyError)

    @pytest.mark.asyncio
    async def test_caller_timeout_leaves_shared_work_running(self, container: Container) -> None:
        async def slow() -> int:
            await asyncio.sleep(0.05)
            return 42

        container.register("slow", slow)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(container.aresolve("slow"), 0.001)

        assert await container.aresolve("slow") == 42
        assert container.resolve("slow") == 42

    @pytest.mark.asyncio
    async def test_cancelled_dependent_leaves_dependency_running(
        self,
        container: Container,
    ) -> None:
        async def pool() -> str:
            await asyncio.sleep(0.05)
            return "pool"

        container.register({"pool": pool, "reader": lambda pool: ("reader", pool)})

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(container.aresolve("reader"), 0.001)

        assert await container.aresolve("pool") == "pool"
        assert await container.aresolve("reader") == ("reader", "pool")


class TestAsyncGroups:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(("a_is_async", "b_is_async"), [(True, False), (False, True), (True, True)])
    async def test_group_members_sync_or_async(
        self,
        container: Container,
        a_is_async: bool,
        b_is_async: bool,
    ) -> None:
        def make(value: str, *, is_async: bool) -> Any:
            if is_async:

                async def produce() -> str:
                    await asyncio.sleep(0)
                    return value

                return produce
            return lambda: value

        def combine(members: Annotated[dict[str, Any], Group("a", "b")]) -> dict[str, Any]:
            return members

        container.register(
            {
                "a": make("A", is_async=a_is_async),
                "b": make("B", is_async=b_is_async),
                "combined": combine,
            },
        )

        assert await container.aresolve("combined") == {"a": "A", "b": "B"}

    @pytest.mark.asyncio
    async def test_group_beside_positional_dependency(self, container: Container) -> None:
        async def slow() -> int:
            await asyncio.sleep(0.01)
            return 1

        async def fast() -> int:
            return 2

        def build(
            slow: int,
            members: Annotated[dict[str, Any], Group("fast", "slow")],
            *,
            label: str,
        ) -> tuple[int, dict[str, Any], str]:
            return (slow, members, label)

        container.register({"slow": slow, "fast": fast, "build": build})
        container.literal("label", "mixed")

        assert await container.aresolve("build") == (1, {"fast": 2, "slow": 1}, "mixed")


class TestAsyncInvoke:
    @pytest.mark.asyncio
    async def test_ainvoke(self, container: Container) -> None:
        async def user() -> str:
            return "ada"

        container.register("user", user)

        async def greet(self: str, user: str) -> str:
            return f"{self}, {user}"

        assert await container.ainvoke("hello", greet) == "hello, ada"
        assert await container.ainvoke(lambda user: user.upper()) == "ADA"

    @pytest.mark.asyncio
    async def test_ainvoke_rejects_context_for_class(self, container: Container) -> None:
        class Job:
            pass

        with pytest.raises(DiminishContextNotAllowedError):
            await container.ainvoke("context", Job)


class TestPending:
    @pytest.mark.asyncio
    async def test_work_starts_on_first_await(self) -> None:
        started: list[int] = []

        async def work() -> str:
            started.append(1)
            return "done"

        pending: Pending[str] = Pending(work)
        await asyncio.sleep(0)

        assert started == []
        assert not pending.done()
        assert repr(pending) == "<Pending pending>"

        assert await pending == "done"
        assert await pending == "done"
        assert started == [1]
        assert pending.done()
        assert repr(pending) == "<Pending done>"

    @pytest.mark.asyncio
    async def test_cancelled_awaiter_does_not_cancel_work(self) -> None:
        release = asyncio.Event()

        async def work() -> str:
            await release.wait()
            return "done"

        pending: Pending[str] = Pending(work)

        async def wait() -> str:
            return await pending

        waiter = asyncio.ensure_future(wait())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        release.set()

        assert await pending == "done"

    def test_discard_runs_when_never_awaited(self) -> None:
        async def work() -> str:
            return "done"

        coroutine = work()
        pending: Pending[str] = Pending(lambda: coroutine, discard=coroutine.close)

        del pending

        assert inspect.getcoroutinestate(coroutine) == inspect.CORO_CLOSED

    @pytest.mark.asyncio
    async def test_discard_skipped_once_awaited(self) -> None:
        discarded: list[int] = []

        async def work() -> str:
            return "done"

        pending: Pending[str] = Pending(work, discard=lambda: discarded.append(1))

        assert await pending == "done"
        del pending

        assert discarded == []
