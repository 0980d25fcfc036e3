"""A k-bucket: an ordered, bounded list of nodes, least recently seen first."""

from __future__ import annotations

import enum
from typing import Iterable, Iterator

from sswarm.kademlia.k_node import KNode

DEFAULT_K = 20


class UpdateState(enum.Enum):
    ADDED_BACK = "added_back"
    MOVED_BACK = "moved_back"
    OVERFLOW = "overflow"
    NOT_FOUND = "not_found"
    ERROR = "error"


class KBucket:
    def __init__(self, capacity: int = DEFAULT_K) -> None:
        self.capacity = capacity
        self._nodes: list[KNode] = []

    def auto_update(self, node: KNode) -> UpdateState:
        """Move a known node to the back, or append a new one if there is room."""
        if node in self:
            self.move_back(node)
            return UpdateState.MOVED_BACK
        if self.is_full():
            return UpdateState.OVERFLOW
        self.add_back(node)
        return UpdateState.ADDED_BACK

    @staticmethod
    def _pick(nodes: Iterable[KNode], count: int, ignore_nodes: Iterable[KNode]) -> list[KNode]:
        ignored = list(ignore_nodes)
        picked: list[KNode] = []
        for node in nodes:
            if node in ignored:
                continue
            picked.append(node)
            if len(picked) >= count:
                break
        return picked

    def get_node_front(self, count: int, ignore_nodes: Iterable[KNode] = ()) -> list[KNode]:
        """Up to ``count`` nodes from the oldest end, skipping ignored ones."""
        return self._pick(self._nodes, count, ignore_nodes)

    def get_node_back(self, count: int, ignore_nodes: Iterable[KNode] = ()) -> list[KNode]:
        """Up to ``count`` nodes from the newest end, skipping ignored ones."""
        return self._pick(reversed(self._nodes), count, ignore_nodes)

    def nodes(self) -> list[KNode]:
        return list(self._nodes)

    def add_back(self, node: KNode) -> None:
        if self.is_full() or node in self:
            return
        self._nodes.append(node)

    def move_back(self, node: KNode) -> None:
        try:
            index = self._nodes.index(node)
        except ValueError:
            return
        self._nodes.append(self._nodes.pop(index))

    def delete_node(self, node: KNode) -> None:
        try:
            self._nodes.remove(node)
        except ValueError:
            pass

    def swap_node(self, src: KNode, dest: KNode) -> None:
        """Put ``dest`` in the place of ``src`` unless ``dest`` is already present."""
        try:
            index = self._nodes.index(src)
        except ValueError:
            return
        if dest in self:
            return
        self._nodes[index] = dest

    def __contains__(self, node: object) -> bool:
        return node in self._nodes

    def is_full(self) -> bool:
        return len(self._nodes) >= self.capacity

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[KNode]:
        return iter(list(self._nodes))

    def format_vertical(self) -> str:
        lines = [f"node ({i}) {node}\n" for i, node in enumerate(self._nodes)]
        return "".join(lines) + "\n"

    def format_horizontal(self) -> str:
        def row(cells: Iterable[str]) -> str:
            return "".join(f"|{cell:>15} | " for cell in cells) + "\n"

        return (
            row(str(i + 1) for i in range(len(self._nodes)))
            + row(node.endpoint.address for node in self._nodes)
            + row(str(node.endpoint.port) for node in self._nodes)
        )