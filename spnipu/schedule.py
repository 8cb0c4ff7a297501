"""Bulk-synchronous-parallel schedules that place SPN nodes on supersteps and processors."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from spnipu.nodes import Edge, Node
from spnipu.spn import SPN


class ScheduleError(RuntimeError):
    """Raised when a schedule is used in a way it does not allow, or is invalid."""


@dataclass
class _Superstep:
    nodes: dict[int, set[Node]] = field(default_factory=lambda: defaultdict(set))
    incoming_edges: set[Edge] = field(default_factory=set)
    outgoing_edges: set[Edge] = field(default_factory=set)


class BSPSchedule:
    """Assigns each node of an SPN a superstep and a processor.

    Once locked, no more nodes can be scheduled and the edges crossing
    superstep boundaries are available per superstep.
    """

    def __init__(self, spn: SPN) -> None:
        self._spn = spn
        self._node_superstep: dict[Node, int] = {}
        self._node_proc: dict[Node, int] = {}
        self._supersteps: list[_Superstep] = []
        self._num_supersteps = 0
        self._num_processors = 0
        self._locked = False

    @property
    def spn(self) -> SPN:
        return self._spn

    @property
    def num_supersteps(self) -> int:
        return self._num_supersteps

    @property
    def num_processors(self) -> int:
        return self._num_processors

    @property
    def locked(self) -> bool:
        return self._locked

    def superstep(self, node: Node) -> int:
        """Return the superstep the node is scheduled in."""
        try:
            return self._node_superstep[node]
        except KeyError:
            raise KeyError(f"node {node!r} is not scheduled") from None

    def processor(self, node: Node) -> int:
        """Return the processor the node is scheduled on."""
        try:
            return self._node_proc[node]
        except KeyError:
            raise KeyError(f"node {node!r} is not scheduled") from None

    def nodes_of_superstep(self, superstep: int) -> Mapping[int, frozenset[Node]]:
        """Map each processor to the nodes scheduled on it in ``superstep``."""
        if not 0 <= superstep < len(self._supersteps):
            return MappingProxyType({})
        return MappingProxyType(
            {
                proc: frozenset(nodes)
                for proc, nodes in self._supersteps[superstep].nodes.items()
                if nodes
            }
        )

    def is_scheduled(self, node: Node) -> bool:
        return node in self._node_superstep

    def schedule_node(self, node: Node, superstep: int, proc: int) -> None:
        """Place ``node`` in ``superstep`` on processor ``proc``."""
        if self._locked:
            raise ScheduleError("Cannot schedule node after locking the schedule")
        if superstep < 0 or proc < 0:
            raise ValueError("superstep and processor must be non-negative")
        if node in self._node_superstep:
            old = self._supersteps[self._node_superstep[node]].nodes
            old[self._node_proc[node]].discard(node)
        self._node_superstep[node] = superstep
        self._node_proc[node] = proc

        while len(self._supersteps) <= superstep:
            self._supersteps.append(_Superstep())
        self._supersteps[superstep].nodes[proc].add(node)

        self._num_supersteps = max(self._num_supersteps, superstep + 1)
        self._num_processors = max(self._num_processors, proc + 1)

    def dump(self) -> None:
        """Print the superstep of every scheduled node."""
        for node, superstep in self._node_superstep.items():
            print(f"Node {node} is scheduled in superstep {superstep}")

    def _child_superstep(self, child: Node) -> int:
        try:
            return self._node_superstep[child]
        except KeyError:
            raise ScheduleError("Child node is not scheduled.") from None

    def validate(self) -> None:
        """Raise :class:`ScheduleError` if the schedule is not valid."""
        for node in self._spn.walk():
            if node not in self._node_superstep:
                raise ScheduleError("Node is not scheduled (no superstep assigned).")
            if node not in self._node_proc:
                raise ScheduleError("Node is not scheduled (no processor assigned).")

        for node, superstep in self._node_superstep.items():
            for child in node.children:
                child_superstep = self._child_superstep(child)
                if child_superstep > superstep:
                    raise ScheduleError("Node is scheduled after child.")
                if (
                    child_superstep == superstep
                    and self._node_proc[node] != self._node_proc[child]
                ):
                    raise ScheduleError(
                        "Node is scheduled in the same superstep as child, "
                        "but on different processors."
                    )

    def lock(self) -> None:
        """Forbid further scheduling and compute the edges of each superstep."""
        if self._locked:
            return
        self._locked = True

        for index, step in enumerate(self._supersteps):
            for node, superstep in self._node_superstep.items():
                if superstep == index:
                    continue
                for child in node.children:
                    if self._child_superstep(child) == index:
                        step.outgoing_edges.add(Edge(child, node))

            for nodes in step.nodes.values():
                for node in nodes:
                    for child in node.children:
                        if self._child_superstep(child) != index:
                            step.incoming_edges.add(Edge(child, node))

    @classmethod
    def single_superstep(cls, spn: SPN) -> "BSPSchedule":
        """Schedule every node of ``spn`` in superstep 0 on processor 0."""
        schedule = cls(spn)
        for node in spn.walk():
            schedule.schedule_node(node, 0, 0)
        return schedule

    def _locked_superstep(self, superstep: int) -> _Superstep:
        if not self._locked:
            raise ScheduleError("Schedule is not locked.")
        if not 0 <= superstep < len(self._supersteps):
            raise IndexError(f"superstep {superstep} out of range")
        return self._supersteps[superstep]

    def incoming_edges(self, superstep: int) -> frozenset[Edge]:
        """Edges into ``superstep`` from nodes of other supersteps."""
        return frozenset(self._locked_superstep(superstep).incoming_edges)

    def outgoing_edges(self, superstep: int) -> frozenset[Edge]:
        """Edges from nodes of ``superstep`` to nodes of other supersteps."""
        return frozenset(self._locked_superstep(superstep).outgoing_edges)

    def without_empty_supersteps(self) -> "BSPSchedule":
        """Return a locked copy of this schedule with empty supersteps removed."""
        result = BSPSchedule(self._spn)
        shifted = 0
        for superstep in range(self._num_supersteps):
            nodes_per_proc = self.nodes_of_superstep(superstep)
            if not nodes_per_proc:
                continue
            for proc, nodes in nodes_per_proc.items():
                for node in nodes:
                    result.schedule_node(node, shifted, proc)
            shifted += 1
        result.lock()
        return result