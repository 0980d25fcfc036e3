"""Messages exchanged between node controllers, carried as BSON."""

from __future__ import annotations

import copy
import json
from typing import Any, Mapping

import bson
from bson.errors import BSONError

APP_ID_LENGTH = 8


def _app_id_to_json(app_id: str | bytes) -> list[int]:
    raw = app_id.encode("latin-1") if isinstance(app_id, str) else bytes(app_id)
    if len(raw) != APP_ID_LENGTH:
        raise ValueError(f"app id must be {APP_ID_LENGTH} bytes, got {len(raw)}")
    # Stored as signed chars, the way the wire format carries them.
    return [b - 256 if b > 127 else b for b in raw]


class Message:
    """A JSON-like document addressed by parameter names."""

    def __init__(self, body: Mapping[str, Any] | None = None) -> None:
        self._body: dict[str, Any] = dict(body) if body is not None else {}

    @classmethod
    def for_app(cls, app_id: str | bytes) -> "Message":
        """Create an empty message tagged with an application id."""
        msg = cls()
        msg.set_app_id(app_id)
        return msg

    @property
    def body(self) -> dict[str, Any]:
        return self._body

    def set_app_id(self, app_id: str | bytes) -> None:
        self._body["app_id"] = _app_id_to_json(app_id)

    def get_param(self, key: str) -> Any | None:
        """Return a copy of a parameter, or None when it is absent."""
        if key in self._body:
            return copy.deepcopy(self._body[key])
        return None

    def set_param(self, key: str, value: Any) -> None:
        self._body[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._body

    def encode(self) -> bytes:
        """Serialise the message body as BSON."""
        return bson.encode(self._body)

    @classmethod
    def decode(cls, data: bytes) -> "Message":
        """Parse a raw BSON datagram; raises ValueError when it is malformed."""
        try:
            body = bson.decode(bytes(data))
        except BSONError as exc:
            raise ValueError(f"malformed message: {exc}") from exc
        return cls(body)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self._body == other._body

    def __str__(self) -> str:
        return json.dumps(self._body, default=str)

    def __repr__(self) -> str:
        return f"Message({self._body!r})"