import threading
import uuid

from sswarm.kademlia.k_message import KMessage, Rpc
from sswarm.kademlia.k_observer import FindNodeObserver, KObserverStore, PingObserver
from sswarm.message import Message
from sswarm.utils import Endpoint

EP = Endpoint("10.0.0.1", 4000)


def _recorder():
    calls = []
    return calls, calls.append


def test_pong_calls_pong_handler_and_expires():
    pongs, on_pong = _recorder()
    timeouts, on_timeout = _recorder()
    obs = PingObserver(EP, on_pong, on_timeout)
    assert obs.income_message(Message(), EP) == 0
    assert pongs == [EP]
    assert timeouts == []
    assert obs.is_expired()


def test_timeout_after_pong_does_nothing():
    pongs, on_pong = _recorder()
    timeouts, on_timeout = _recorder()
    obs = PingObserver(EP, on_pong, on_timeout)
    obs.income_message(Message(), EP)
    obs.timeout()
    assert pongs == [EP]
    assert len(timeouts) == 0
    assert obs.is_expired()


def test_timeout_without_pong_calls_timeout_handler():
    timeouts, on_timeout = _recorder()
    obs = PingObserver(EP, lambda ep: None, on_timeout)
    obs.timeout()
    assert timeouts == [EP]
    assert obs.is_expired()


def test_init_fires_timeout_when_no_pong():
    fired = threading.Event()
    seen = []

    def on_timeout(ep):
        seen.append(ep)
        fired.set()

    obs = PingObserver(EP, lambda ep: None, on_timeout, timeout=1)
    obs.init()
    assert fired.wait(3)
    assert seen == [EP]


def test_init_extends_expiry_beyond_timeout():
    obs = PingObserver(EP, lambda ep: None, lambda ep: None, timeout=30)
    obs.init()
    try:
        assert obs.expire_time_left() > obs.response_timeout
        assert not obs.is_expired()
    finally:
        obs.income_message(Message(), EP)


def test_find_node_reports_found_endpoints_in_order():
    found, on_response = _recorder()
    eps = [Endpoint("10.0.0.2", 4001), Endpoint("10.0.0.3", 4002)]
    k_msg = KMessage.response(Rpc.FIND_NODE)
    k_msg.found_endpoints = eps
    obs = FindNodeObserver(on_response)
    obs.init()
    assert obs.income_message(Message({"kademlia": k_msg.encode()}), EP) == 0
    assert found == eps
    assert obs.is_expired()


def test_find_node_ignores_message_without_kademlia():
    found, on_response = _recorder()
    obs = FindNodeObserver(on_response)
    assert obs.income_message(Message({"other": 1}), EP) == 0
    assert found == []
    assert not obs.is_expired()


def test_type_names():
    assert PingObserver(EP, print, print).type_name == "k_observer:ping"
    assert FindNodeObserver(print).type_name == "k_observer:find_node"


def test_store_finds_by_kind_and_id():
    store = KObserverStore()
    obs = FindNodeObserver(lambda ep: None)
    store.add(obs)
    assert store.find(FindNodeObserver, obs.id) == [obs]
    assert store.find(PingObserver, obs.id) == []
    assert store.find(FindNodeObserver, uuid.uuid4()) == []
    assert len(store) == 1


def test_store_skips_and_removes_expired():
    store = KObserverStore()
    live = FindNodeObserver(lambda ep: None)
    dead = FindNodeObserver(lambda ep: None)
    store.add(live)
    store.add(dead)
    dead.destruct_self()
    assert store.find(FindNodeObserver, dead.id) == []
    assert store.remove_expired() == 1
    assert len(store) == 1
    assert store.find(FindNodeObserver, live.id) == [live]