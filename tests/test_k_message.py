import uuid

import pytest

from sswarm.kademlia.k_message import KMessage, MessageType, Rpc
from sswarm.message import Message
from sswarm.utils import Endpoint


def test_request_ping_body():
    msg = KMessage.request(Rpc.PING)
    assert msg.body == {"type": "request", "rpc": "ping"}
    assert msg.is_request()
    assert msg.rpc is Rpc.PING
    assert msg.message_type is MessageType.REQUEST


def test_response_find_node():
    msg = KMessage.response(Rpc.FIND_NODE)
    assert msg.body == {"type": "response", "rpc": "find_node"}
    assert not msg.is_request()
    assert msg.rpc is Rpc.FIND_NODE


def test_unknown_rpc_is_find_node():
    assert KMessage({"type": "request", "rpc": "other"}).rpc is Rpc.FIND_NODE


def test_message_type_setter_turns_request_into_response():
    msg = KMessage.request(Rpc.PING)
    msg.message_type = MessageType.RESPONSE
    assert msg.body["type"] == "response"
    assert msg.message_type is MessageType.RESPONSE


def test_validate_requires_type_and_rpc():
    assert KMessage.request(Rpc.PING).validate()
    assert not KMessage({"type": "request"}).validate()
    assert not KMessage({"rpc": "ping"}).validate()


def test_observer_id_round_trip():
    msg = KMessage.request(Rpc.PING)
    oid = uuid.uuid4()
    msg.observer_id = oid
    assert msg.observer_id == oid
    assert msg.body["observer_id"] == str(oid)


def test_missing_observer_id_raises():
    with pytest.raises(KeyError):
        KMessage.request(Rpc.PING).observer_id


def test_ignore_endpoints_stored_as_strings():
    msg = KMessage.request(Rpc.FIND_NODE)
    eps = [Endpoint("127.0.0.1", 5000), Endpoint("10.1.2.3", 6000)]
    msg.ignore_endpoints = eps
    assert msg.body["ignore_eps"] == ["127.0.0.1:5000", "10.1.2.3:6000"]
    assert msg.ignore_endpoints == eps


def test_found_endpoints_use_finded_eps_key():
    msg = KMessage.response(Rpc.FIND_NODE)
    eps = [Endpoint("192.168.0.9", 7000)]
    msg.found_endpoints = eps
    assert msg.body["finded_eps"] == ["192.168.0.9:7000"]
    assert msg.found_endpoints == eps


def test_encode_returns_independent_copy():
    msg = KMessage.request(Rpc.FIND_NODE)
    msg.ignore_endpoints = [Endpoint("127.0.0.1", 1)]
    encoded = msg.encode()
    encoded["ignore_eps"].append("x")
    assert msg.body["ignore_eps"] == ["127.0.0.1:1"]


def test_survives_wire_round_trip():
    k_msg = KMessage.request(Rpc.FIND_NODE)
    k_msg.observer_id = uuid.uuid4()
    k_msg.ignore_endpoints = [Endpoint("127.0.0.1", 9000)]
    outer = Message.for_app("abcdefgh")
    outer.set_param("kademlia", k_msg.encode())
    decoded = KMessage(Message.decode(outer.encode()).get_param("kademlia"))
    assert decoded.body == k_msg.body
    assert decoded.ignore_endpoints == [Endpoint("127.0.0.1", 9000)]