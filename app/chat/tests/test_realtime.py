"""
Tests for rooms and the connection registry.

Verifies:
- Room publish reaches subscribers through the channel layer
- One live typing timer per connection; re-arming replaces it
- Cancellation is idempotent and stale timers cannot clear newer ones
"""

import asyncio
from unittest.mock import patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from chat.realtime import ConnectionRegistry, Room, TypingState


def _typing(conversation_id=1, name="Alice"):
    return TypingState(conversation_id=conversation_id, sender_name=name, sender_type="customer")


class TestRoom:
    def test_room_names(self):
        assert Room.for_business("acme").name == "business_acme"
        assert Room.for_conversation(7).name == "conversation_7"

    def test_publish_reaches_subscribers(self):
        async def scenario():
            layer = get_channel_layer()
            room = Room.for_conversation(1, layer)
            first = await layer.new_channel()
            second = await layer.new_channel()
            await room.subscribe(first)
            await room.subscribe(second)

            await room.publish("new_message", {"id": 1}, exclude=second)

            return await layer.receive(first), await layer.receive(second)

        first_event, second_event = async_to_sync(scenario)()

        for event in (first_event, second_event):
            assert event["type"] == "room.event"
            assert event["event"] == "new_message"
            assert event["payload"] == {"id": 1}
            assert event["exclude"] is not None

    def test_unsubscribed_connection_receives_nothing(self):
        async def scenario():
            layer = get_channel_layer()
            room = Room.for_conversation(2, layer)
            channel = await layer.new_channel()
            await room.subscribe(channel)
            await room.unsubscribe(channel)
            await room.publish("new_message", {"id": 1})
            try:
                await asyncio.wait_for(layer.receive(channel), timeout=0.1)
            except asyncio.TimeoutError:
                return None
            return "received"

        assert async_to_sync(scenario)() is None


class TestConnectionRegistry:
    def test_register_and_unregister(self):
        registry = ConnectionRegistry()

        state = registry.register("conn-1")

        assert "conn-1" in registry
        assert len(registry) == 1
        assert registry.get("conn-1") is state
        registry.unregister("conn-1")
        assert "conn-1" not in registry
        assert registry.unregister("conn-1") is None

    def test_timer_fires_after_timeout(self):
        registry = ConnectionRegistry()
        registry.register("conn-1")
        expired = []

        async def on_expire(typing):
            if registry.release_typing("conn-1", typing):
                expired.append(typing.conversation_id)

        async def scenario():
            registry.arm_typing("conn-1", _typing(5), 0.05, on_expire)
            await asyncio.sleep(0.2)

        async_to_sync(scenario)()

        assert expired == [5]
        assert registry.get("conn-1").typing is None

    def test_failed_expiry_is_logged(self):
        registry = ConnectionRegistry()
        registry.register("conn-1")

        async def broken(typing):
            raise RuntimeError("layer down")

        async def scenario():
            registry.arm_typing("conn-1", _typing(5), 0.01, broken)
            await asyncio.sleep(0.1)

        with patch("chat.realtime.logger") as logger:
            async_to_sync(scenario)()

        logger.error.assert_called_once()
        assert isinstance(logger.error.call_args.kwargs["exc_info"], RuntimeError)

    def test_rearming_replaces_previous_timer(self):
        """
        Starting typing again cancels the earlier timer instead of stacking.

        Why it matters: stacked timers would emit several stop events.
        """
        registry = ConnectionRegistry()
        registry.register("conn-1")
        expired = []

        async def on_expire(typing):
            if registry.release_typing("conn-1", typing):
                expired.append(typing)

        async def scenario():
            first = _typing(1)
            registry.arm_typing("conn-1", first, 0.05, on_expire)
            await asyncio.sleep(0.02)
            second = _typing(1)
            previous = registry.arm_typing("conn-1", second, 0.05, on_expire)
            await asyncio.sleep(0.2)
            return first, second, previous

        first, second, previous = async_to_sync(scenario)()

        assert previous is first
        assert first.task.cancelled()
        assert expired == [second]

    def test_cancel_is_idempotent(self):
        registry = ConnectionRegistry()
        registry.register("conn-1")

        async def noop(typing):
            return None

        async def scenario():
            registry.arm_typing("conn-1", _typing(1), 10, noop)
            first = registry.cancel_typing("conn-1")
            second = registry.cancel_typing("conn-1")
            return first, second

        first, second = async_to_sync(scenario)()

        assert first is not None
        assert second is None

    def test_cancel_for_other_conversation_keeps_timer(self):
        registry = ConnectionRegistry()
        registry.register("conn-1")

        async def noop(typing):
            return None

        async def scenario():
            registry.arm_typing("conn-1", _typing(1), 10, noop)
            other = registry.cancel_typing("conn-1", conversation_id=2)
            kept = registry.get("conn-1").typing
            registry.cancel_typing("conn-1")
            return other, kept

        other, kept = async_to_sync(scenario)()

        assert other is None
        assert kept.conversation_id == 1

    def test_release_ignores_stale_typing_state(self):
        registry = ConnectionRegistry()
        registry.register("conn-1")

        async def noop(typing):
            return None

        async def scenario():
            stale = _typing(1)
            current = _typing(1)
            registry.arm_typing("conn-1", stale, 10, noop)
            registry.arm_typing("conn-1", current, 10, noop)
            released = registry.release_typing("conn-1", stale)
            still_armed = registry.get("conn-1").typing
            registry.cancel_typing("conn-1")
            return released, still_armed, current

        released, still_armed, current = async_to_sync(scenario)()

        assert released is False
        assert still_armed is current

    def test_unregister_cancels_armed_timer(self):
        registry = ConnectionRegistry()
        registry.register("conn-1")

        async def noop(typing):
            return None

        async def scenario():
            typing = _typing(1)
            registry.arm_typing("conn-1", typing, 10, noop)
            registry.unregister("conn-1")
            await asyncio.sleep(0)
            return typing

        typing = async_to_sync(scenario)()

        assert typing.task.cancelled()
