"""Endpoint-level access to a routing table."""

from __future__ import annotations

from typing import Iterable, Iterator

from sswarm.kademlia.k_bucket import KBucket
from sswarm.kademlia.k_node import KNode
from sswarm.kademlia.k_routing_table import FIRST_BRANCH, KRoutingTable
from sswarm.utils import Endpoint


class DirectRoutingTableController:
    """Lets callers work with endpoints instead of k-nodes."""

    def __init__(self, routing_table: KRoutingTable) -> None:
        self.routing_table = routing_table

    def collect_node(
        self, root_node: KNode, max_count: int, ignore_nodes: Iterable[KNode] = ()
    ) -> list[KNode]:
        return self.routing_table.collect_node(root_node, max_count, ignore_nodes)

    def collect_endpoint(
        self, root_ep: Endpoint, max_count: int, ignore_eps: Iterable[Endpoint] = ()
    ) -> list[Endpoint]:
        ignore_nodes = [KNode(ep) for ep in ignore_eps]
        found = self.collect_node(KNode(root_ep), max_count, ignore_nodes)
        return [node.endpoint for node in found]

    def is_exist(self, target: Endpoint | KNode) -> bool:
        node = target if isinstance(target, KNode) else KNode(target)
        return node in self.routing_table

    def auto_update_batch(self, eps: Iterable[Endpoint]) -> None:
        for ep in eps:
            self.routing_table.auto_update(KNode(ep))

    def auto_update(self, ep: Endpoint) -> None:
        self.routing_table.auto_update(KNode(ep))

    def get_node_count(self) -> int:
        return self.routing_table.get_node_count()

    def iter_buckets(self) -> Iterator[tuple[int, KBucket]]:
        return self.routing_table.iter_buckets()

    def format(self, start_branch: int = FIRST_BRANCH) -> str:
        return self.routing_table.format(start_branch)