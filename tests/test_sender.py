import pytest

from sswarm.message import Message
from sswarm.sender import Sender
from sswarm.socket_manager import UdpSocketManager
from sswarm.utils import Endpoint

APP_ID = "abcdefgh"


@pytest.fixture
def pair():
    a = UdpSocketManager(Endpoint("127.0.0.1", 0))
    b = UdpSocketManager(Endpoint("127.0.0.1", 0))
    b.sock.settimeout(2)
    yield a, b
    a.close()
    b.close()


def _receive(manager):
    data, _ = manager.sock.recvfrom(65535)
    return Message.decode(data)


def test_send_wraps_payload_with_app_id(pair):
    a, b = pair
    sender = Sender(a, APP_ID)
    assert sender.send(b.local_endpoint(), "greet", {"x": 1}) is True
    received = _receive(b)
    assert received.get_param("greet") == {"x": 1}
    assert received.get_param("app_id") == Message.for_app(APP_ID).body["app_id"]


def test_send_message_preserves_body(pair):
    a, b = pair
    msg = Message({"kademlia": {"type": "request", "rpc": "ping"}})
    assert Sender(a, APP_ID).send_message(b.local_endpoint(), msg) is True
    assert _receive(b) == msg


def test_send_on_closed_socket_reports_failure(pair):
    a, b = pair
    sender = Sender(a, APP_ID)
    a.close()
    assert sender.send(b.local_endpoint(), "greet", "hi") is False