"""Observers waiting for Kademlia replies, and the store that holds them."""

from __future__ import annotations

import threading
import uuid
from typing import Callable

from sswarm.kademlia.k_message import KMessage
from sswarm.message import Message
from sswarm.observer import BaseObserver
from sswarm.utils import Endpoint

DEFAULT_PING_RESPONSE_TIMEOUT_S = 5

EndpointHandler = Callable[[Endpoint], None]


class PingObserver(BaseObserver):
    """Waits for a pong; calls ``on_pong`` or, after the timeout, ``on_timeout``."""

    def __init__(
        self,
        endpoint: Endpoint,
        on_pong: EndpointHandler,
        on_timeout: EndpointHandler,
        timeout: float = DEFAULT_PING_RESPONSE_TIMEOUT_S,
    ) -> None:
        super().__init__("k_observer:ping")
        self.endpoint = endpoint
        self.response_timeout = timeout
        self.pong_arrived = False
        self._on_pong = on_pong
        self._on_timeout = on_timeout
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def init(self) -> None:
        """Start the timeout clock; the observer outlives the timer slightly."""
        self._timer = threading.Timer(max(self.response_timeout - 1, 0), self.timeout)
        self._timer.daemon = True
        self._timer.start()
        self.extend_expire_at(self.response_timeout + 1)

    def timeout(self) -> None:
        with self._lock:
            if self.pong_arrived:
                return
        self._on_timeout(self.endpoint)
        self.destruct_self()

    def income_message(self, msg: Message, endpoint: Endpoint) -> int:
        with self._lock:
            self.pong_arrived = True
            if self._timer is not None:
                self._timer.cancel()
        self._on_pong(self.endpoint)
        self.destruct_self()
        return 0


class FindNodeObserver(BaseObserver):
    """Waits for a find_node response and reports every endpoint it lists."""

    def __init__(self, on_response: EndpointHandler) -> None:
        super().__init__("k_observer:find_node")
        self._on_response = on_response

    def init(self) -> None:
        """Nothing to start: expiry alone bounds the wait."""

    def income_message(self, msg: Message, endpoint: Endpoint) -> int:
        param = msg.get_param("kademlia")
        if param is None:
            return 0
        for found in KMessage(param).found_endpoints:
            self._on_response(found)
        self.destruct_self()
        return 0


class KObserverStore:
    """Pending observers keyed by id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._observers: dict[uuid.UUID, BaseObserver] = {}

    def add(self, observer: BaseObserver) -> None:
        self.remove_expired()
        with self._lock:
            self._observers[observer.id] = observer

    def find(self, kind: type, observer_id: uuid.UUID) -> list[BaseObserver]:
        """Live observers of the given class with the given id."""
        with self._lock:
            observer = self._observers.get(observer_id)
        if observer is None or not isinstance(observer, kind) or observer.is_expired():
            return []
        return [observer]

    def remove_expired(self) -> int:
        """Discard expired observers; return how many were removed."""
        with self._lock:
            expired = [oid for oid, obs in self._observers.items() if obs.is_expired()]
            for oid in expired:
                del self._observers[oid]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)