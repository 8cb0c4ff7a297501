"""Nodes of a sum-product network, edges between them and node visitors."""

from __future__ import annotations

import abc
import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass


class NodeTraversalOrder(enum.Enum):
    """Order in which a walk yields a node relative to its children."""

    PRE_ORDER = "pre"
    POST_ORDER = "post"


@dataclass(frozen=True)
class Edge:
    """A directed edge from ``source`` to ``target``.

    The target may be ``None``; it then marks the value of ``source`` as
    leaving the network (used for the root node).
    """

    source: "Node"
    target: "Node | None"


class NodeVisitor(abc.ABC):
    """Double-dispatch visitor over the concrete node types."""

    def visit(self, node: "Node") -> None:
        """Dispatch to the method for the concrete type of ``node``."""
        node.accept(self)

    @abc.abstractmethod
    def visit_product(self, node: "ProductNode") -> None:
        """Handle a product node."""

    @abc.abstractmethod
    def visit_sum(self, node: "SumNode") -> None:
        """Handle a sum node."""

    @abc.abstractmethod
    def visit_gaussian(self, node: "GaussianLeafNode") -> None:
        """Handle a Gaussian leaf node."""


class Node(abc.ABC):
    """Base class of every node. Nodes compare and hash by identity."""

    @property
    @abc.abstractmethod
    def children(self) -> tuple["Node", ...]:
        """The node's children, in order."""

    def walk(
        self, order: NodeTraversalOrder = NodeTraversalOrder.PRE_ORDER
    ) -> Iterator["Node"]:
        """Yield every node reachable from this one exactly once, depth first."""
        pre = order is NodeTraversalOrder.PRE_ORDER
        visited = {self}
        if pre:
            yield self
        stack: list[tuple[Node, Iterator[Node]]] = [(self, iter(self.children))]
        while stack:
            node, pending = stack[-1]
            for child in pending:
                if child not in visited:
                    visited.add(child)
                    if pre:
                        yield child
                    stack.append((child, iter(child.children)))
                    break
            else:
                stack.pop()
                if not pre:
                    yield node

    @abc.abstractmethod
    def accept(self, visitor: NodeVisitor) -> None:
        """Call the visitor method matching this node's type."""

    @abc.abstractmethod
    def dump(self, indent: str = "") -> None:
        """Print the subtree rooted at this node to standard output."""


class LeafNode(Node):
    """A node without children that reads one input feature."""

    @property
    def children(self) -> tuple[Node, ...]:
        return ()

    @property
    @abc.abstractmethod
    def scope(self) -> int:
        """Index of the input feature this leaf reads."""


class SumNode(Node):
    """Weighted sum of its children."""

    def __init__(self, children: Iterable[tuple[Node, float]] = ()) -> None:
        self._children: list[Node] = []
        self._weights: list[float] = []
        for node, weight in children:
            self.add_summand(node, weight)

    @property
    def children(self) -> tuple[Node, ...]:
        return tuple(self._children)

    @property
    def weights(self) -> tuple[float, ...]:
        """The weights, aligned with :attr:`children`."""
        return tuple(self._weights)

    def add_summand(self, node: Node, weight: float) -> None:
        """Append a child with the given weight."""
        self._children.append(node)
        self._weights.append(weight)

    def weight(self, index: int) -> float:
        """Return the weight of the child at ``index``."""
        return self._weights[index]

    def accept(self, visitor: NodeVisitor) -> None:
        visitor.visit_sum(self)

    def dump(self, indent: str = "") -> None:
        print("SumNode:")
        indent += "  "
        for child, weight in zip(self._children, self._weights):
            print(f"{indent}{weight:g} * ", end="")
            child.dump(indent)


class ProductNode(Node):
    """Product of its children."""

    def __init__(self, children: Iterable[Node] = ()) -> None:
        self._children: list[Node] = list(children)

    @property
    def children(self) -> tuple[Node, ...]:
        return tuple(self._children)

    def add_factor(self, node: Node) -> None:
        """Append a child."""
        self._children.append(node)

    def accept(self, visitor: NodeVisitor) -> None:
        visitor.visit_product(self)

    def dump(self, indent: str = "") -> None:
        print("ProductNode:")
        indent += "  "
        for child in self._children:
            print(indent, end="")
            child.dump(indent)


class GaussianLeafNode(LeafNode):
    """Univariate normal distribution over one feature."""

    def __init__(self, mean: float, variance: float, scope: int) -> None:
        self._mean = mean
        self._variance = variance
        self._scope = scope

    @property
    def mean(self) -> float:
        return self._mean

    @property
    def variance(self) -> float:
        return self._variance

    @property
    def scope(self) -> int:
        return self._scope

    def accept(self, visitor: NodeVisitor) -> None:
        visitor.visit_gaussian(self)

    def dump(self, indent: str = "") -> None:
        print(
            f"GaussianLeafNode (mean={self._mean:g}, "
            f"variance={self._variance:g}, scope={self._scope})"
        )