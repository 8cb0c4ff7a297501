"""Reference evaluation of an SPN on the host in double precision."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from spnipu.nodes import GaussianLeafNode, NodeVisitor, ProductNode, SumNode
from spnipu.spn import SPN

logger = logging.getLogger(__name__)


class HostExecutor(NodeVisitor):
    """Computes the joint probability of an SPN for one input vector."""

    def __init__(self, spn: SPN) -> None:
        self._spn = spn
        self._features: tuple[float, ...] = ()
        self._result = 0.0

    def evaluate(self, features: Iterable[float]) -> float:
        """Return the value of the root for the given features."""
        root = self._spn.root
        if root is None:
            raise ValueError("SPN has no root node")
        self._features = tuple(float(x) for x in features)
        root.accept(self)
        return self._result

    def visit_product(self, node: ProductNode) -> None:
        product = 1.0
        for child in node.children:
            child.accept(self)
            product *= self._result
        self._result = product
        logger.debug("Evaluating ProductNode: result=%s", product)

    def visit_sum(self, node: SumNode) -> None:
        total = 0.0
        for child, weight in zip(node.children, node.weights):
            child.accept(self)
            total += self._result * weight
        self._result = total
        logger.debug("Evaluating SumNode: result=%s", total)

    def visit_gaussian(self, node: GaussianLeafNode) -> None:
        scope = node.scope
        if not 0 <= scope < len(self._features):
            raise IndexError(
                f"Scope {scope} is out of range for input size {len(self._features)}"
            )
        x = self._features[scope]
        diff = x - node.mean
        exponent = -(diff * diff) / (2.0 * node.variance)
        normalization = 1.0 / math.sqrt(2.0 * math.pi * node.variance)
        self._result = normalization * math.exp(exponent)
        logger.debug(
            "Evaluating GaussianLeafNode: x=%s, mean=%s, variance=%s, result=%s",
            x,
            node.mean,
            node.variance,
            self._result,
        )