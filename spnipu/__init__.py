"""Sum-product networks with BSP scheduling, ILP scheduling, host evaluation and Graphviz export."""

__version__ = "0.1.0"

__all__ = ["nodes", "spn", "schedule", "performance", "ilp", "host", "visualization"]