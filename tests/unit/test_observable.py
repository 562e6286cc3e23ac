"""
Unit tests for latest-value broadcasting.
"""

import asyncio
import logging

import pytest

from pagemachine.observable import StateBroadcaster


class TestStateStream:
    """Test async streams."""

    @pytest.mark.asyncio
    async def test_stream_starts_with_current_value(self):
        broadcaster = StateBroadcaster("initial")
        broadcaster.publish("second")

        stream = broadcaster.stream()

        assert await asyncio.wait_for(stream.__anext__(), 1) == "second"

    @pytest.mark.asyncio
    async def test_stream_receives_values_in_order(self):
        broadcaster = StateBroadcaster(0)
        stream = broadcaster.stream()

        for value in (1, 2, 3):
            broadcaster.publish(value)
        broadcaster.close()

        assert [value async for value in stream] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_several_streams_see_the_same_values(self):
        broadcaster = StateBroadcaster("a")
        first = broadcaster.stream()
        broadcaster.publish("b")
        second = broadcaster.stream()
        broadcaster.publish("c")
        broadcaster.close()

        assert [value async for value in first] == ["a", "b", "c"]
        assert [value async for value in second] == ["b", "c"]

    @pytest.mark.asyncio
    async def test_closed_stream_stops_receiving(self):
        broadcaster = StateBroadcaster(0)
        stream = broadcaster.stream()

        stream.close()
        broadcaster.publish(1)

        assert [value async for value in stream] == [0]
        assert stream.closed is True
        assert broadcaster.observer_count == 0

    @pytest.mark.asyncio
    async def test_stream_context_manager_closes(self):
        broadcaster = StateBroadcaster(0)

        async with broadcaster.stream() as stream:
            assert await stream.__anext__() == 0

        assert stream.closed is True
        assert broadcaster.observer_count == 0

    @pytest.mark.asyncio
    async def test_ended_stream_keeps_stopping(self):
        broadcaster = StateBroadcaster(0)
        stream = broadcaster.stream()
        broadcaster.close()

        assert [value async for value in stream] == [0]
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()


@pytest.mark.unit
class TestSubscription:
    """Test callback subscriptions."""

    def test_subscribe_replays_current_value(self):
        broadcaster = StateBroadcaster("current")
        seen = []

        broadcaster.subscribe(seen.append)

        assert seen == ["current"]

    def test_cancel_stops_delivery(self):
        broadcaster = StateBroadcaster(0)
        seen = []
        subscription = broadcaster.subscribe(seen.append)

        broadcaster.publish(1)
        subscription.cancel()
        broadcaster.publish(2)

        assert seen == [0, 1]
        assert subscription.active is False

    def test_failing_callback_does_not_starve_others(self, caplog):
        broadcaster = StateBroadcaster(0)
        seen = []

        def broken(value):
            if value:
                raise ValueError("observer bug")

        broadcaster.subscribe(broken)
        broadcaster.subscribe(seen.append)
        caplog.set_level(logging.ERROR, logger="pagemachine")

        broadcaster.publish(1)

        assert seen == [0, 1]
        assert "State observer failed" in caplog.text

    def test_publish_after_close_is_dropped(self):
        broadcaster = StateBroadcaster(0)
        seen = []
        subscription = broadcaster.subscribe(seen.append)

        broadcaster.close()
        broadcaster.publish(1)

        assert seen == [0]
        assert broadcaster.value == 0
        assert subscription.active is False
