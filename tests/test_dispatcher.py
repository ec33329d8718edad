"""Tests for script_sentinel.storage.dispatcher — per-session ordering."""

from __future__ import annotations

import asyncio

import pytest

from script_sentinel.storage.dispatcher import SessionDispatcher


class TestSessionDispatcher:
    def test_returns_operation_result(self) -> None:
        async def scenario() -> int:
            dispatcher = SessionDispatcher()

            async def op() -> int:
                return 7

            return await dispatcher.submit("s1", op)

        assert asyncio.run(scenario()) == 7

    def test_same_session_runs_one_at_a_time_in_order(self) -> None:
        events: list[str] = []

        async def scenario() -> None:
            dispatcher = SessionDispatcher()

            def make_op(name: str, delay: float):
                async def op() -> str:
                    events.append(f"start:{name}")
                    await asyncio.sleep(delay)
                    events.append(f"end:{name}")
                    return name

                return op

            results = await asyncio.gather(
                dispatcher.submit("s1", make_op("a", 0.05)),
                dispatcher.submit("s1", make_op("b", 0.0)),
                dispatcher.submit("s1", make_op("c", 0.01)),
            )
            assert results == ["a", "b", "c"]

        asyncio.run(scenario())
        assert events == ["start:a", "end:a", "start:b", "end:b", "start:c", "end:c"]

    def test_different_sessions_interleave(self) -> None:
        events: list[str] = []

        async def scenario() -> None:
            dispatcher = SessionDispatcher()
            gate = asyncio.Event()

            async def slow() -> None:
                events.append("slow:start")
                await gate.wait()
                events.append("slow:end")

            async def fast() -> None:
                events.append("fast")
                gate.set()

            await asyncio.gather(dispatcher.submit("s1", slow), dispatcher.submit("s2", fast))

        asyncio.run(scenario())
        assert events == ["slow:start", "fast", "slow:end"]

    def test_failure_does_not_block_later_operations(self) -> None:
        async def scenario() -> str:
            dispatcher = SessionDispatcher()

            async def boom() -> None:
                raise RuntimeError("failed turn")

            async def ok() -> str:
                return "next"

            failing = asyncio.ensure_future(dispatcher.submit("s1", boom))
            following = asyncio.ensure_future(dispatcher.submit("s1", ok))
            with pytest.raises(RuntimeError, match="failed turn"):
                await failing
            return await following

        assert asyncio.run(scenario()) == "next"

    def test_mailbox_released_when_idle(self) -> None:
        async def scenario() -> int:
            dispatcher = SessionDispatcher()

            async def op() -> None:
                assert dispatcher.active_sessions == 1

            await dispatcher.submit("s1", op)
            await asyncio.sleep(0)
            return dispatcher.active_sessions

        assert asyncio.run(scenario()) == 0
