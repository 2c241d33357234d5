"""Helpers shared by chat tests."""

from asgiref.sync import async_to_sync


def run(coroutine_function, *args, **kwargs):
    """Run an async store/service call from a synchronous test."""
    return async_to_sync(coroutine_function)(*args, **kwargs)


def published_events(publish_mock) -> list[tuple[str, str, dict, str | None]]:
    """
    Flatten calls recorded by ``patch.object(Room, "publish", autospec=True)``.

    Returns:
        (room name, event, payload, exclude) per call, in call order.
    """
    events = []
    for call in publish_mock.await_args_list:
        room, event, payload = call.args[:3]
        events.append((room.name, event, payload, call.kwargs.get("exclude")))
    return events
