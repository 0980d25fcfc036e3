"""Choosing peers from the routing table to multicast to."""

from __future__ import annotations

import enum
import random
from typing import Callable, Iterable

from sswarm.kademlia.k_node import KNode
from sswarm.kademlia.k_routing_table import KRoutingTable
from sswarm.peer import Peer
from sswarm.utils import Endpoint

EndpointToPeer = Callable[[Endpoint], Peer]


class CastType(enum.Enum):
    BREADTH_FIRST = "breadth_first"  # spread picks across buckets
    DEPTH_FIRST = "depth_first"  # concentrate on one bucket


class MulticastManager:
    """Picks peers, never returning one already picked until the context is cleared."""

    def __init__(
        self,
        routing_table: KRoutingTable,
        endpoint_to_peer: EndpointToPeer,
        rng: random.Random | None = None,
    ) -> None:
        self.routing_table = routing_table
        self._endpoint_to_peer = endpoint_to_peer
        self._rng = rng or random.Random()
        self.picked_peers: list[Peer] = []

    def _ignore_nodes(self) -> list[KNode]:
        return [KNode(peer.endpoint) for peer in self.picked_peers]

    def get_multicast_target(
        self, n: int, cast_type: CastType = CastType.BREADTH_FIRST
    ) -> list[Peer]:
        """Up to ``n`` peers: one random pick, then the nodes nearest to it.

        Picks are made breadth-first whatever ``cast_type`` is given.
        """
        if n < 1:
            return []
        first = self.get_random()
        if first is None:
            return []
        targets = [first]
        if n == 1:
            return targets
        nodes = self.routing_table.collect_node(
            KNode(first.endpoint), n - 1, self._ignore_nodes()
        )
        targets.extend(self._endpoint_to_peer(node.endpoint) for node in nodes)
        return targets

    def get_random(self) -> Peer | None:
        """Pick a not yet picked peer from a random non-empty bucket, or None."""
        buckets = [bucket for _branch, bucket in self.routing_table.iter_buckets()]
        self._rng.shuffle(buckets)
        ignore = self._ignore_nodes()
        for bucket in buckets:
            if len(bucket) == 0:
                continue
            nodes = bucket.get_node_front(1, ignore)
            if nodes:
                peer = self._endpoint_to_peer(nodes[0].endpoint)
                self.update_context(peer)
                return peer
        return None

    def update_context(self, picked: Peer | Iterable[Peer]) -> None:
        """Mark one peer, or several, as already picked."""
        if isinstance(picked, Peer):
            self.picked_peers.append(picked)
        else:
            self.picked_peers.extend(picked)

    def clear_context(self) -> None:
        self.picked_peers.clear()