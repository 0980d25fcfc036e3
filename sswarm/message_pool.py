"""Pool of per-peer receive buffers and the hub that dispatches to applications."""

from __future__ import annotations

import functools
import logging
import threading
import time
from typing import Callable, Iterator

from sswarm.message import Message
from sswarm.message_buffer import (
    DEFAULT_MEMPOOL_REFRESH_TICK_TIME_S,
    DEFAULT_MESSAGE_LIFETIME_M,
    PeerMessageBuffer,
    PopFlag,
    ReceivedMessage,
    SsMessage,
)
from sswarm.peer import Peer, PeerId, calc_peer_id
from sswarm.utils import Endpoint, endpoint_to_str, get_console_width

EndpointToPeer = Callable[[Endpoint], Peer]
MessageHandler = Callable[[Peer, SsMessage], None]

_log = logging.getLogger(__name__)


class MessageHub:
    """Hands every stored message to an application handler while active."""

    def __init__(self, endpoint_to_peer: EndpointToPeer) -> None:
        self._endpoint_to_peer = endpoint_to_peer
        self._lock = threading.RLock()
        self._handler: MessageHandler | None = None
        self._active = False

    def is_active(self) -> bool:
        with self._lock:
            return self._active

    def start(self, handler: MessageHandler) -> None:
        with self._lock:
            self._handler = handler
            self._active = True

    def stop(self) -> None:
        with self._lock:
            self._active = False

    def on_receive_message(
        self,
        pop_func: Callable[[], ReceivedMessage | None],
        src_endpoint: Endpoint,
    ) -> None:
        """Take the message via ``pop_func`` and pass it to the handler."""
        received = pop_func()
        if received is None:
            return
        msg = SsMessage(received, src_endpoint)
        peer = self._endpoint_to_peer(src_endpoint)
        with self._lock:
            handler = self._handler
        if handler is not None:
            handler(peer, msg)


class MessagePool:
    """Receive buffers keyed by peer id, with periodic expiry of old messages."""

    def __init__(
        self,
        endpoint_to_peer: EndpointToPeer,
        logger=None,
        requires_refresh: bool = True,
    ) -> None:
        self._lock = threading.RLock()
        self._pool: dict[PeerId, PeerMessageBuffer] = {}
        self._logger = logger
        self._timer: threading.Timer | None = None
        self.requires_refresh = requires_refresh
        self.message_hub = MessageHub(endpoint_to_peer)

    def set_requires_refresh(self, flag: bool) -> None:
        """Turn periodic refreshing on (scheduling the next tick) or off."""
        with self._lock:
            self.requires_refresh = flag
            if flag:
                self._schedule()
            elif self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(DEFAULT_MEMPOOL_REFRESH_TICK_TIME_S, self._on_tick)
        self._timer.daemon = True
        self._timer.start()

    def _on_tick(self) -> None:
        self.refresh()
        with self._lock:
            if self.requires_refresh:
                self._schedule()

    def refresh(self) -> int:
        """Drop messages older than the message lifetime; return how many."""
        if self._logger is not None:
            self._logger.log(logging.INFO, "(@message pool)", "refresh tick start")
        else:
            _log.info("(@message pool) refresh tick start")
        cutoff = time.time() - DEFAULT_MESSAGE_LIFETIME_M * 60
        with self._lock:
            buffers = list(self._pool.values())
        return sum(buffer.drop_older_than(cutoff) for buffer in buffers)

    def store(self, msg: Message, endpoint: Endpoint) -> None:
        """Keep a received message and, if the hub is active, dispatch it."""
        with self._lock:
            peer_id = calc_peer_id(endpoint)
            buffer = self._pool.get(peer_id)
            if buffer is None:
                buffer = self._pool[peer_id] = PeerMessageBuffer(endpoint)
        msg_id = buffer.push(msg)

        if self.message_hub.is_active():
            # Popping by id avoids taking a later message if a reader got this one.
            pop_func = functools.partial(buffer.pop_by_id, msg_id, PopFlag.NONE)
            self.message_hub.on_receive_message(pop_func, endpoint)

    def get_peer_message_buffer(self, peer_id: PeerId) -> PeerMessageBuffer | None:
        with self._lock:
            return self._pool.get(peer_id)

    def deallocate(self, peer_id: PeerId) -> PeerMessageBuffer | None:
        """Remove and return a peer's buffer, or None if there was none."""
        with self._lock:
            return self._pool.pop(peer_id, None)

    def iter_by_received_at(self) -> Iterator[PeerMessageBuffer]:
        """Buffers ordered by the time their last message arrived."""
        with self._lock:
            buffers = list(self._pool.values())
        yield from sorted(buffers, key=lambda b: b.last_received_at)

    def format(self) -> str:
        dashes = "-" * (get_console_width() // 2)
        with self._lock:
            buffers = list(self._pool.values())
        return "".join(
            f"{dashes}\n(msg_entry) :{endpoint_to_str(b.binding_endpoint)}\n{b}"
            for b in buffers
        )

    def close(self) -> None:
        """Stop periodic refreshing."""
        self.set_requires_refresh(False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pool)