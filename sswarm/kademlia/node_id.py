"""Kademlia node identifiers and XOR distance."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from sswarm.utils import Endpoint, endpoint_to_binary

K_NODE_ID_LENGTH = 20


@dataclass(frozen=True)
class NodeId:
    """A 160-bit node identifier."""

    raw: bytes = field(default=bytes(K_NODE_ID_LENGTH))

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != K_NODE_ID_LENGTH:
            raise ValueError(f"node id must be {K_NODE_ID_LENGTH} bytes, got {len(raw)}")
        object.__setattr__(self, "raw", raw)

    @classmethod
    def none(cls) -> "NodeId":
        return cls(bytes(K_NODE_ID_LENGTH))

    def to_str(self) -> str:
        return self.raw.hex().upper()

    def __getitem__(self, index: int) -> int:
        return self.raw[index]

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.to_str()


def calc_node_xor_distance(first: NodeId, second: NodeId) -> int:
    """Count zero bits of the XOR, least significant bit of each byte first,
    up to the first set bit."""
    count = 0
    for a, b in zip(first.raw, second.raw):
        xor = a ^ b
        for bit in range(8):
            if (xor >> bit) & 1:
                return count
            count += 1
    return count


def calc_node_id_from_bytes(data: bytes) -> NodeId:
    return NodeId(hashlib.sha1(data).digest())


def calc_node_id(ep: Endpoint) -> NodeId:
    return calc_node_id_from_bytes(endpoint_to_binary(ep))