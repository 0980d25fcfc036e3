import threading
import time
import uuid
from unittest.mock import patch

import pytest

from sswarm.message import Message
from sswarm.message_buffer import (
    MAX_RECEIVE_BUFFER_SIZE,
    PeerMessageBuffer,
    PopFlag,
    ReceivedMessage,
    SsMessage,
)
from sswarm.utils import Endpoint

EP = Endpoint("127.0.0.1", 9000)


def _msg(text):
    return Message({"messenger": text})


def _push_at(buffer, msg, when):
    with patch("time.time", return_value=when):
        return buffer.push(msg)


@pytest.fixture
def buffer():
    return PeerMessageBuffer(EP)


def test_initial_state(buffer):
    assert len(buffer) == 0
    assert buffer.binding_endpoint == EP
    assert buffer.max_dynamic_mem_usage_bytes == 8388608 == MAX_RECEIVE_BUFFER_SIZE
    assert buffer.pop() is None


def test_push_pop_fifo(buffer):
    first = _msg("a")
    second = _msg("b")
    buffer.push(first)
    buffer.push(second)
    assert buffer.dynamic_mem_usage_bytes == 2
    assert buffer.pop().msg is first
    assert buffer.pop().msg is second
    assert buffer.pop() is None
    assert buffer.dynamic_mem_usage_bytes == 0


def test_peek_keeps_message(buffer):
    buffer.push(_msg("a"))
    peeked = buffer.pop(0, PopFlag.PEEK)
    assert peeked.msg.body == {"messenger": "a"}
    assert len(buffer) == 1


def test_pop_out_of_range(buffer):
    buffer.push(_msg("a"))
    assert buffer.pop(1) is None
    assert len(buffer) == 1


def test_push_updates_last_received_at(buffer):
    _push_at(buffer, _msg("a"), 1234.0)
    assert buffer.last_received_at == 1234.0


def test_pop_by_id(buffer):
    buffer.push(_msg("a"))
    wanted = buffer.push(_msg("b"))
    buffer.push(_msg("c"))
    peeked = buffer.pop_by_id(wanted, PopFlag.PEEK)
    assert peeked.id == wanted
    assert len(buffer) == 3
    taken = buffer.pop_by_id(wanted)
    assert taken.msg.body == {"messenger": "b"}
    assert len(buffer) == 2
    assert buffer.pop_by_id(wanted) is None


def test_pop_since(buffer):
    _push_at(buffer, _msg("old"), 100.0)
    _push_at(buffer, _msg("new"), 300.0)
    found = buffer.pop_since(200.0, PopFlag.PEEK)
    assert found.msg.body == {"messenger": "new"}
    assert len(buffer) == 2
    assert buffer.pop_since(300.0) is None


def test_pop_since_uses_binded_at(buffer):
    _push_at(buffer, _msg("old"), 100.0)
    with patch("time.time", return_value=150.0):
        buffer.update_last_binded_at()
    _push_at(buffer, _msg("new"), 200.0)
    assert buffer.last_binded_at == 150.0
    assert buffer.pop_since().msg.body == {"messenger": "new"}
    assert len(buffer) == 1


def test_drop_older_than(buffer):
    for when in (100.0, 200.0, 300.0):
        _push_at(buffer, _msg(str(when)), when)
    assert buffer.drop_older_than(200.0) == 2
    assert len(buffer) == 1
    assert buffer.pop().time == 300.0


def test_clear(buffer):
    buffer.push(_msg("a"))
    buffer.clear()
    assert len(buffer) == 0


def test_copy_shares_messages_not_queue(buffer):
    buffer.push(_msg("a"))
    other = buffer.copy()
    assert other.binding_endpoint == EP
    assert other.pop(0, PopFlag.PEEK) is buffer.pop(0, PopFlag.PEEK)
    other.pop()
    assert len(other) == 0
    assert len(buffer) == 1


def test_wait_pop_immediate(buffer):
    assert buffer.wait_pop(0) is None
    buffer.push(_msg("a"))
    assert buffer.wait_pop(0).msg.body == {"messenger": "a"}


def test_wait_pop_times_out(buffer):
    start = time.monotonic()
    assert buffer.wait_pop(0.05) is None
    assert time.monotonic() - start >= 0.04


def test_wait_pop_wakes_on_push(buffer):
    timer = threading.Timer(0.05, buffer.push, args=(_msg("late"),))
    timer.start()
    try:
        received = buffer.wait_pop(None)
    finally:
        timer.join()
    assert received.msg.body == {"messenger": "late"}


def test_received_message_ids():
    received = ReceivedMessage(_msg("a"))
    assert ReceivedMessage.invalid_message_id() == uuid.UUID(int=0)
    assert not received.is_invalid()
    received.id = ReceivedMessage.invalid_message_id()
    assert received.is_invalid()


def test_ss_message():
    received = ReceivedMessage(Message({"messenger": "hello", "app_id": [1]}))
    ss = SsMessage(received, EP)
    assert ss.get("messenger") == "hello"
    assert ss.get("missing") == {}
    assert ss.meta.src_endpoint == EP
    assert ss.meta.timestamp == received.time
    assert ss.meta.relay_endpoints == []


def test_ss_message_body_is_copied():
    msg = Message({"messenger": {"k": 1}})
    ss = SsMessage(ReceivedMessage(msg), EP)
    ss.body["messenger"]["k"] = 2
    assert msg.body["messenger"]["k"] == 1


@pytest.mark.parametrize(
    "payload, expected",
    [({}, True), (None, True), ([], True), ({"a": 1}, False), ("text", False), (0, False)],
)
def test_is_invalid(payload, expected):
    assert SsMessage.is_invalid(payload) is expected