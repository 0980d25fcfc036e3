"""Per-peer buffers of received messages and the view handed to applications."""

from __future__ import annotations

import bisect
import copy
import enum
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any

from sswarm.message import Message
from sswarm.utils import Endpoint

DEFAULT_MEMPOOL_REFRESH_TICK_TIME_S = 200
DEFAULT_MESSAGE_LIFETIME_M = 20
MAX_RECEIVE_BUFFER_SIZE = 8388608


class PopFlag(enum.Enum):
    NONE = "none"  # take the message out of the queue
    PEEK = "peek"  # only look at it


class ReceivedMessage:
    """A message together with the time it arrived and a unique id."""

    __slots__ = ("id", "msg", "time")

    def __init__(self, msg: Message) -> None:
        self.id = uuid.uuid4()
        self.msg = msg
        self.time = time.time()

    @staticmethod
    def invalid_message_id() -> uuid.UUID:
        return uuid.UUID(int=0)

    def is_invalid(self) -> bool:
        return self.id == self.invalid_message_id()

    def __str__(self) -> str:
        return f"{self.id} : {self.time}"


def _received_time(received: ReceivedMessage) -> float:
    return received.time


class PeerMessageBuffer:
    """Messages received from one endpoint, oldest first."""

    def __init__(self, endpoint: Endpoint) -> None:
        self.binding_endpoint = endpoint
        self._cond = threading.Condition(threading.RLock())
        self._queue: list[ReceivedMessage] = []
        self.max_dynamic_mem_usage_bytes = MAX_RECEIVE_BUFFER_SIZE
        self.dynamic_mem_usage_bytes = 0
        self.last_binded_at: float = 0
        self.last_received_at: float = 0

    def push(self, msg: Message) -> uuid.UUID:
        """Append a message, wake any waiting reader and return the message id."""
        with self._cond:
            received = ReceivedMessage(msg)
            self._queue.append(received)
            self._cond.notify_all()
            self.dynamic_mem_usage_bytes += 1
            self.last_received_at = time.time()
            return received.id

    def pop(self, index: int = 0, flag: PopFlag = PopFlag.NONE) -> ReceivedMessage | None:
        """Return the message at ``index`` (from the oldest), or None."""
        with self._cond:
            if not 0 <= index < len(self._queue):
                return None
            if flag is PopFlag.PEEK:
                return self._queue[index]
            self.dynamic_mem_usage_bytes -= 1
            return self._queue.pop(index)

    def pop_by_id(
        self, message_id: uuid.UUID, flag: PopFlag = PopFlag.NONE
    ) -> ReceivedMessage | None:
        with self._cond:
            for position in range(len(self._queue) - 1, -1, -1):
                if self._queue[position].id == message_id:
                    return self.pop(position, flag)
            return None

    def pop_since(self, since: float = 0, flag: PopFlag = PopFlag.NONE) -> ReceivedMessage | None:
        """Return the first message received after ``since``; 0 means after the
        last time this buffer was bound."""
        with self._cond:
            if since == 0:
                since = self.last_binded_at
            position = bisect.bisect_right(self._queue, since, key=_received_time)
            return self.pop(position, flag)

    def wait_pop(self, timeout: float | None = None) -> ReceivedMessage | None:
        """Pop the oldest message, waiting for one to arrive.

        ``timeout`` 0 returns at once, None or a negative value waits forever,
        otherwise waits at most that many seconds.
        """
        with self._cond:
            result = self.pop()
            if result is not None or timeout == 0:
                return result
            if timeout is not None and timeout < 0:
                timeout = None

            def ready() -> bool:
                nonlocal result
                result = self.pop()
                return result is not None

            self._cond.wait_for(ready, timeout)
            return result

    def clear(self) -> None:
        with self._cond:
            self._queue.clear()

    def drop_older_than(self, cutoff: float) -> int:
        """Remove every message received at or before ``cutoff``; return how many."""
        with self._cond:
            position = bisect.bisect_right(self._queue, cutoff, key=_received_time)
            del self._queue[:position]
            return position

    def update_last_binded_at(self) -> None:
        with self._cond:
            self.last_binded_at = time.time()

    def copy(self) -> "PeerMessageBuffer":
        """A new buffer holding the same received messages."""
        with self._cond:
            other = PeerMessageBuffer(self.binding_endpoint)
            other._queue = list(self._queue)
            other.dynamic_mem_usage_bytes = self.dynamic_mem_usage_bytes
            other.last_binded_at = self.last_binded_at
            other.last_received_at = self.last_received_at
            return other

    def __len__(self) -> int:
        return len(self._queue)

    def __str__(self) -> str:
        return "".join(f"({i}) {received}\n" for i, received in enumerate(list(self._queue)))


@dataclass
class MessageMeta:
    src_endpoint: Endpoint
    relay_endpoints: list[Endpoint] = field(default_factory=list)
    timestamp: float = 0


class SsMessage:
    """A received message as seen by applications."""

    def __init__(self, received: ReceivedMessage, src_endpoint: Endpoint) -> None:
        self.body: dict[str, Any] = copy.deepcopy(received.msg.body)
        self.meta = MessageMeta(src_endpoint=src_endpoint, timestamp=received.time)

    def get(self, app_id: str) -> Any:
        """The payload of one application, or an empty object."""
        return self.body.get(app_id, {})

    @staticmethod
    def is_invalid(payload: Any) -> bool:
        if payload is None:
            return True
        if isinstance(payload, (dict, list)):
            return not payload
        return False