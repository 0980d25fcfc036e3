"""The ``kademlia`` part of a message: RPC kind, direction and arguments."""

from __future__ import annotations

import copy
import enum
import uuid
from typing import Any, Iterable, Mapping

from sswarm.observer import observer_id_to_str, str_to_observer_id
from sswarm.utils import Endpoint, endpoint_to_str, str_to_endpoint


class Rpc(enum.Enum):
    PING = "ping"
    FIND_NODE = "find_node"
    NONE = "none"


class MessageType(enum.Enum):
    REQUEST = "request"
    RESPONSE = "response"


class KMessage:
    """A view over the JSON document carried under the ``kademlia`` key."""

    def __init__(self, body: Mapping[str, Any] | None = None) -> None:
        self.body: dict[str, Any] = dict(body) if body is not None else {}

    @classmethod
    def _new(cls, message_type: MessageType, rpc: Rpc) -> "KMessage":
        msg = cls({"type": message_type.value, "rpc": {}})
        msg.rpc = rpc
        return msg

    @classmethod
    def request(cls, rpc: Rpc) -> "KMessage":
        return cls._new(MessageType.REQUEST, rpc)

    @classmethod
    def response(cls, rpc: Rpc) -> "KMessage":
        return cls._new(MessageType.RESPONSE, rpc)

    @property
    def rpc(self) -> Rpc:
        """``ping`` is a ping; anything else is treated as find_node."""
        return Rpc.PING if self.body.get("rpc") == "ping" else Rpc.FIND_NODE

    @rpc.setter
    def rpc(self, value: Rpc) -> None:
        self.body["rpc"] = value.value

    @property
    def message_type(self) -> MessageType:
        if self.body.get("type") == "request":
            return MessageType.REQUEST
        return MessageType.RESPONSE

    @message_type.setter
    def message_type(self, value: MessageType) -> None:
        self.body["type"] = value.value

    def is_request(self) -> bool:
        return self.body.get("type") == "request"

    def validate(self) -> bool:
        return "type" in self.body and "rpc" in self.body

    def encode(self) -> dict[str, Any]:
        """A copy of the document, ready to be placed in a message."""
        return copy.deepcopy(self.body)

    @property
    def observer_id(self) -> uuid.UUID:
        """Raises KeyError when absent and ValueError when malformed."""
        return str_to_observer_id(self.body["observer_id"])

    @observer_id.setter
    def observer_id(self, value: uuid.UUID) -> None:
        self.body["observer_id"] = observer_id_to_str(value)

    @property
    def ignore_endpoints(self) -> list[Endpoint]:
        return [str_to_endpoint(text) for text in self.body["ignore_eps"]]

    @ignore_endpoints.setter
    def ignore_endpoints(self, eps: Iterable[Endpoint]) -> None:
        self.body["ignore_eps"] = [endpoint_to_str(ep) for ep in eps]

    @property
    def found_endpoints(self) -> list[Endpoint]:
        return [str_to_endpoint(text) for text in self.body["finded_eps"]]

    @found_endpoints.setter
    def found_endpoints(self, eps: Iterable[Endpoint]) -> None:
        self.body["finded_eps"] = [endpoint_to_str(ep) for ep in eps]

    def __str__(self) -> str:
        return str(self.body)

    def __repr__(self) -> str:
        return f"KMessage({self.body!r})"