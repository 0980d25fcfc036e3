"""A node known to the routing table."""

from __future__ import annotations

from sswarm.kademlia.node_id import NodeId, calc_node_id
from sswarm.utils import Endpoint, endpoint_to_str

_BLANK_ENDPOINT = Endpoint("0.0.0.0", 0)


class KNode:
    """An endpoint together with its node id; nodes compare by id."""

    __slots__ = ("endpoint", "id")

    def __init__(self, endpoint: Endpoint | None = None) -> None:
        if endpoint is None:
            self.endpoint = _BLANK_ENDPOINT
            self.id = NodeId.none()
        else:
            self.endpoint = endpoint
            self.id = calc_node_id(endpoint)

    @classmethod
    def blank(cls) -> "KNode":
        node = cls(_BLANK_ENDPOINT)
        node.id = NodeId.none()
        return node

    def to_str(self) -> str:
        return f"{endpoint_to_str(self.endpoint)}|{self.id.to_str()}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KNode):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return f"{self.endpoint}\n{self.id}"

    def __repr__(self) -> str:
        return f"KNode({self.endpoint!r})"