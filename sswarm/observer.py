"""Base observer with expiry, and observer id helpers."""

from __future__ import annotations

import random
import time
import uuid

DEFAULT_EXPIRE_TIME_S = 20


class BaseObserver:
    """Something waiting for a reply; it may be discarded once expired."""

    def __init__(self, type_name: str, observer_id: uuid.UUID | None = None) -> None:
        self.type_name = type_name
        if observer_id is None or observer_id.int == 0:
            observer_id = uuid.uuid4()
        self.id = observer_id
        self.expire_at: float = time.time() + DEFAULT_EXPIRE_TIME_S
        self.expire_flag = False

    def id_str(self) -> str:
        return observer_id_to_str(self.id)

    def is_expired(self) -> bool:
        return self.expire_flag or self.expire_at <= time.time()

    def expire_time_left(self) -> float:
        return self.expire_at - time.time()

    def destruct_self(self) -> None:
        """Allow this observer to be discarded."""
        self.expire_at = 0

    def extend_expire_at(self, seconds: float = DEFAULT_EXPIRE_TIME_S) -> None:
        self.expire_at = time.time() + seconds

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BaseObserver):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"<{self.type_name} {self.id} left={self.expire_time_left():.0f}s>"


def str_to_observer_id(text: str) -> uuid.UUID:
    """Parse an observer id; raises ValueError when malformed."""
    return uuid.UUID(text)


def observer_id_to_str(observer_id: uuid.UUID) -> str:
    return str(observer_id)


def generate_uuid_from_str(seed: str) -> uuid.UUID:
    """Return a random-style UUID determined entirely by the seed."""
    rng = random.Random(seed)
    return uuid.UUID(int=rng.getrandbits(128), version=4)