"""The Kademlia routing table: one k-bucket per branch of the XOR distance."""

from __future__ import annotations

from typing import Iterable, Iterator

from sswarm.kademlia.k_bucket import KBucket, UpdateState
from sswarm.kademlia.k_node import KNode
from sswarm.kademlia.node_id import K_NODE_ID_LENGTH, NodeId, calc_node_xor_distance
from sswarm.utils import Endpoint, get_console_width

K_BUCKET_COUNT = K_NODE_ID_LENGTH * 8
FIRST_BRANCH = 1
LAST_BRANCH = K_BUCKET_COUNT


class KRoutingTable:
    """Buckets numbered by branch, from 1 to 160."""

    def __init__(self, self_id: NodeId) -> None:
        self.self_id = self_id
        self._table = [KBucket() for _ in range(K_BUCKET_COUNT)]

    def calc_branch(self, node: KNode) -> int:
        """Branch of a node: 160 minus its XOR distance from this node."""
        return K_BUCKET_COUNT - calc_node_xor_distance(self.self_id, node.id)

    def calc_branch_index(self, node: KNode) -> int:
        return max(self.calc_branch(node) - 1, 0)

    def auto_update(self, node: KNode) -> UpdateState:
        return self.bucket_for(node).auto_update(node)

    def swap_node(self, src: KNode, dest: KNode) -> None:
        self.bucket_for(src).swap_node(src, dest)

    def get_node_front(
        self, root_node: KNode, count: int, ignore_nodes: Iterable[KNode] = ()
    ) -> list[KNode]:
        return self.bucket_for(root_node).get_node_front(count, ignore_nodes)

    def get_node_back(
        self, root_node: KNode, count: int, ignore_nodes: Iterable[KNode] = ()
    ) -> list[KNode]:
        return self.bucket_for(root_node).get_node_back(count, ignore_nodes)

    def __contains__(self, node: object) -> bool:
        if not isinstance(node, KNode):
            return False
        return node in self.bucket_for(node)

    def collect_node(
        self, root_node: KNode, max_count: int, ignore_nodes: Iterable[KNode] = ()
    ) -> list[KNode]:
        """Gather nodes from the root's bucket, then alternately from the
        buckets above and below it, until ``max_count`` is reached."""
        ignored = list(ignore_nodes)
        root_branch = self.calc_branch(root_node)
        collected = self.get_bucket(root_branch).get_node_back(max_count, ignored)

        upper_done = lower_done = False
        offset = 1
        while len(collected) < max_count and not (upper_done and lower_done):
            if root_branch - offset >= FIRST_BRANCH:
                bucket = self.get_bucket(root_branch - offset)
                collected += bucket.get_node_back(max_count - len(collected), ignored)
            else:
                upper_done = True

            if root_branch + offset <= LAST_BRANCH:
                bucket = self.get_bucket(root_branch + offset)
                collected += bucket.get_node_back(max_count - len(collected), ignored)
            else:
                lower_done = True
            offset += 1
        return collected

    def get_node_count(self) -> int:
        return sum(len(bucket) for bucket in self._table)

    def bucket_for(self, node: KNode) -> KBucket:
        return self._table[self.calc_branch_index(node)]

    def get_bucket(self, branch: int) -> KBucket:
        """Bucket of a branch; branch 0 maps to the first bucket."""
        if branch > LAST_BRANCH:
            raise IndexError(f"branch out of range: {branch}")
        return self._table[max(branch - 1, 0)]

    def iter_buckets(self) -> Iterator[tuple[int, KBucket]]:
        """Yield ``(branch, bucket)`` pairs from branch 1 upwards."""
        yield from enumerate(self._table, start=FIRST_BRANCH)

    def update_self_id(self, node_id: NodeId) -> None:
        self.self_id = node_id

    def format(self, start_branch: int = FIRST_BRANCH) -> str:
        width = get_console_width()
        parts = []
        for branch in range(start_branch, K_BUCKET_COUNT + 1):
            bucket = self.get_bucket(branch)
            parts.append(
                "=" * width
                + f"| k-bucket ({branch}) | c: {len(bucket)} |\n"
                + "-" * width
                + bucket.format_horizontal()
                + "\n"
            )
        return "".join(parts)


def eps_to_k_nodes(eps: Iterable[Endpoint]) -> list[KNode]:
    return [KNode(ep) for ep in eps]