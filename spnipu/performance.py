"""Cost model used to weigh computation and communication when scheduling."""

from __future__ import annotations

from spnipu.nodes import GaussianLeafNode, Node, NodeVisitor, ProductNode, SumNode
from spnipu.spn import SPN


class _NonLogCostVisitor(NodeVisitor):
    """Counts floating-point operations for evaluation in linear space."""

    def __init__(self) -> None:
        self.cost = 0

    def visit_product(self, node: ProductNode) -> None:
        # product *= child: one operation per child
        self.cost = len(node.children)

    def visit_sum(self, node: SumNode) -> None:
        # sum += weight * child: two operations per child
        self.cost = 2 * len(node.children)

    def visit_gaussian(self, node: GaussianLeafNode) -> None:
        self.cost = 6


class PerformanceModel:
    """Estimates the cost of computing nodes and of communicating values."""

    def __init__(self, spn: SPN) -> None:
        self.spn = spn

    def computation_cost(self, node: Node, proc: int = 0) -> int:
        """Cycles needed to compute ``node`` on processor ``proc``."""
        visitor = _NonLogCostVisitor()
        node.accept(visitor)
        return visitor.cost

    def communication_cost(self) -> int:
        """Cycles needed to communicate one value."""
        return 1