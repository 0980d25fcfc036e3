"""Remote peers: identity, sending and blocking receive."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from sswarm.message_buffer import PeerMessageBuffer, SsMessage
from sswarm.utils import Endpoint, endpoint_to_str

PEER_ID_LENGTH_BYTES = 20

SendFunc = Callable[[Endpoint, str, Any], None]


@dataclass(frozen=True)
class PeerId:
    """A 20-byte identifier derived from a peer's endpoint."""

    raw: bytes = field(default=bytes(PEER_ID_LENGTH_BYTES))

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != PEER_ID_LENGTH_BYTES:
            raise ValueError(
                f"peer id must be {PEER_ID_LENGTH_BYTES} bytes, got {len(raw)}"
            )
        object.__setattr__(self, "raw", raw)

    @classmethod
    def none(cls) -> "PeerId":
        return cls(bytes(PEER_ID_LENGTH_BYTES))

    def to_str(self) -> str:
        return self.raw.hex()

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.to_str()


def calc_peer_id(ep: Endpoint) -> PeerId:
    """SHA-1 of the ``address:port`` text of the endpoint."""
    return PeerId(hashlib.sha1(endpoint_to_str(ep).encode("ascii")).digest())


class Peer:
    """A remote node reachable over the overlay."""

    def __init__(
        self,
        endpoint: Endpoint,
        buffer: PeerMessageBuffer | None,
        send_func: SendFunc,
    ) -> None:
        self.endpoint = endpoint
        self.id = calc_peer_id(endpoint)
        self.keep_alive = 1
        self._buffer = buffer
        self._send_func = send_func

    def send(self, payload: str | bytes | Iterable[str]) -> None:
        """Send an application payload as a string under the ``messenger`` key."""
        if isinstance(payload, str):
            text = payload
        elif isinstance(payload, (bytes, bytearray, memoryview)):
            text = bytes(payload).decode("latin-1")
        else:
            text = "".join(payload)
        self._send_func(self.endpoint, "messenger", text)

    def receive(self, timeout: float | None = -1) -> SsMessage | None:
        """Take the oldest message from this peer.

        ``timeout`` -1 (or None) blocks until a message arrives, 0 returns at
        once, otherwise waits up to that many seconds. Returns None when
        nothing arrived in time.
        """
        if self._buffer is None:
            raise LookupError(f"no receive buffer bound to {self.endpoint}")
        received = self._buffer.wait_pop(timeout)
        if received is None:
            return None
        return SsMessage(received, self.endpoint)

    def ping(self) -> bool:
        """Liveness check; not answered by this implementation."""
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Peer):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Peer({self.endpoint})"