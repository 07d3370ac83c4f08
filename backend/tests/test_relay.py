"""
Tests for the relay engine: user fan-out, drops and per-kind payloads.
"""
import pytest

from relay_hub.realtime.hub import RelayHub


async def _connect(hub, *pairs):
    for handle, user_id in pairs:
        await hub.register(handle, user_id)
    hub.emitter.clear()


@pytest.mark.anyio
async def test_message_reaches_every_receiver_connection(hub, emitter):
    await _connect(hub, ("h1", "alice"), ("h2", "bob"), ("h3", "bob"))

    delivered = await hub.send_message("h1", {"senderId": "alice", "receiverId": "bob", "content": "hi"})

    assert delivered == 2
    expected = ("receive_message", {"senderId": "alice", "content": "hi", "messageId": None, "createdAt": None})
    assert emitter.to("h2") == [expected]
    assert emitter.to("h3") == [expected]
    assert emitter.to("h1") == []


@pytest.mark.anyio
async def test_message_optional_fields_pass_through(hub, emitter):
    await _connect(hub, ("h2", "bob"))

    await hub.send_message("h1", {
        "senderId": "alice",
        "receiverId": "bob",
        "content": {"text": "hi", "format": "md"},
        "messageId": 42,
        "createdAt": "2024-01-01T00:00:00Z",
        "ignored": True,
    })

    assert emitter.to("h2") == [("receive_message", {
        "senderId": "alice",
        "content": {"text": "hi", "format": "md"},
        "messageId": 42,
        "createdAt": "2024-01-01T00:00:00Z",
    })]


@pytest.mark.anyio
async def test_message_to_offline_user_is_dropped(hub, emitter):
    await _connect(hub, ("h1", "alice"))

    delivered = await hub.send_message("h1", {"senderId": "alice", "receiverId": "bob", "content": "hi"})

    assert delivered == 0
    assert emitter.sent == []


@pytest.mark.anyio
@pytest.mark.parametrize("payload", [
    {"receiverId": "bob", "content": "hi"},
    {"senderId": "alice", "content": "hi"},
    {"senderId": "alice", "receiverId": "bob"},
    {"senderId": "alice", "receiverId": "bob", "content": None},
    {"senderId": "", "receiverId": "bob", "content": "hi"},
    {"senderId": 1, "receiverId": "bob", "content": "hi"},
    "hi",
    None,
])
async def test_malformed_message_is_dropped(hub, emitter, payload):
    await _connect(hub, ("h2", "bob"))

    assert await hub.send_message("h1", payload) == 0
    assert emitter.sent == []


@pytest.mark.anyio
async def test_typing_indicators(hub, emitter):
    await _connect(hub, ("h2", "bob"), ("h3", "bob"))

    await hub.typing("h1", {"senderId": "alice", "receiverId": "bob"})
    await hub.stop_typing("h1", {"senderId": "alice", "receiverId": "bob"})

    for handle in ("h2", "h3"):
        assert emitter.to(handle) == [
            ("typing", {"senderId": "alice"}),
            ("stop_typing", {"senderId": "alice"}),
        ]


@pytest.mark.anyio
async def test_typing_without_receiver_is_dropped(hub, emitter):
    await _connect(hub, ("h2", "bob"))

    assert await hub.typing("h1", {"senderId": "alice"}) == 0
    assert emitter.sent == []


@pytest.mark.anyio
async def test_media_relay(hub, emitter):
    await _connect(hub, ("h2", "bob"))
    blob = b"\x89PNG\r\n"

    delivered = await hub.send_media("h1", {
        "senderId": "alice",
        "receiverId": "bob",
        "mediaType": "image/png",
        "data": blob,
        "filename": "cat.png",
        "messageId": "m-1",
    })

    assert delivered == 1
    event, data = emitter.to("h2")[0]
    assert event == "receive_media"
    assert data == {
        "senderId": "alice",
        "mediaType": "image/png",
        "data": blob,
        "filename": "cat.png",
        "messageId": "m-1",
        "createdAt": None,
    }
    assert data["data"] is blob


@pytest.mark.anyio
async def test_media_without_type_is_dropped(hub, emitter):
    await _connect(hub, ("h2", "bob"))

    assert await hub.send_media("h1", {"senderId": "alice", "receiverId": "bob", "data": "x"}) == 0
    assert emitter.sent == []


@pytest.mark.anyio
async def test_failed_send_does_not_block_other_connections(hub, emitter):
    await _connect(hub, ("h2", "bob"), ("h3", "bob"), ("h4", "bob"))
    emitter.fail_for = {"h3"}

    delivered = await hub.send_message("h1", {"senderId": "alice", "receiverId": "bob", "content": "hi"})

    assert delivered == 2
    assert len(emitter.to("h2")) == 1
    assert len(emitter.to("h4")) == 1
    assert emitter.to("h3") == []


@pytest.mark.anyio
async def test_sender_echo_when_enabled(emitter):
    hub = RelayHub(emitter, echo_sent_messages=True)
    await _connect(hub, ("h1", "alice"), ("h1b", "alice"), ("h2", "bob"))

    await hub.send_message("h1", {"senderId": "alice", "receiverId": "bob", "content": "hi"})

    echo = ("message_sent", {"receiverId": "bob", "content": "hi", "messageId": None, "createdAt": None})
    assert emitter.to("h1") == [echo]
    assert emitter.to("h1b") == [echo]
    assert len(emitter.to("h2")) == 1


@pytest.mark.anyio
async def test_notify_reaches_all_sessions(hub, emitter):
    await _connect(hub, ("h2", "bob"), ("h3", "bob"))

    delivered = await hub.notify("bob", "Your appointment is confirmed")

    assert delivered == 2
    # Fan-out order across connections is unspecified
    assert sorted(emitter.events("notification"), key=lambda e: e[1]) == [
        ({"message": "Your appointment is confirmed"}, "h2"),
        ({"message": "Your appointment is confirmed"}, "h3"),
    ]


@pytest.mark.anyio
async def test_notify_offline_user_is_noop(hub, emitter):
    assert await hub.notify("ghost", "hello") == 0
    assert await hub.notify("", "hello") == 0
    assert emitter.sent == []


@pytest.mark.anyio
async def test_relay_to_connection_requires_registered_handle(hub, emitter):
    await _connect(hub, ("h2", "bob"))

    assert await hub.relay.relay_to_connection("h2", "ping", {"n": 1}) is True
    assert await hub.relay.relay_to_connection("h9", "ping", {"n": 2}) is False
    assert emitter.sent == [("ping", {"n": 1}, "h2")]
