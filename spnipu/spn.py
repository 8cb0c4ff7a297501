"""A sum-product network: owner of its nodes with a designated root."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, TypeVar

from spnipu.nodes import LeafNode, Node, NodeTraversalOrder

N = TypeVar("N", bound=Node)


class SPN:
    """Holds the nodes of a network and the root from which it is evaluated."""

    def __init__(self) -> None:
        self.root: Node | None = None
        self._nodes: list[Node] = []

    @property
    def nodes(self) -> tuple[Node, ...]:
        """All nodes created through this network, in creation order."""
        return tuple(self._nodes)

    def create_node(self, cls: type[N], *args: Any, **kwargs: Any) -> N:
        """Construct a node of type ``cls``, register it and return it."""
        node = cls(*args, **kwargs)
        self._nodes.append(node)
        return node

    def clear_nodes(self) -> None:
        """Forget every registered node."""
        self._nodes.clear()

    def _require_root(self) -> Node:
        if self.root is None:
            raise ValueError("SPN has no root node")
        return self.root

    def dump(self) -> None:
        """Print the network starting at the root."""
        self._require_root().dump()

    def walk(
        self, order: NodeTraversalOrder = NodeTraversalOrder.PRE_ORDER
    ) -> Iterator[Node]:
        """Yield every node reachable from the root exactly once."""
        return self._require_root().walk(order)

    def num_features(self) -> int:
        """Number of input features: the largest leaf scope plus one."""
        largest = 0
        for node in self.walk():
            if isinstance(node, LeafNode):
                largest = max(largest, node.scope)
        return largest + 1