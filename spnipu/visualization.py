"""Graphviz dot output for SPNs and their BSP schedules."""

from __future__ import annotations

import os
from typing import TextIO

from spnipu.nodes import GaussianLeafNode, Node, ProductNode, SumNode
from spnipu.performance import PerformanceModel
from spnipu.schedule import BSPSchedule
from spnipu.spn import SPN

_HEADER = ('  graph [rankdir=TB];\n', '  node [fontname="Arial"];\n')


class DotVisualizer:
    """Writes SPNs and schedules as dot graphs."""

    @staticmethod
    def _node_id(node: Node) -> str:
        return f"node_{id(node):#x}"

    @staticmethod
    def _node_attributes(node: Node, proc: int, model: PerformanceModel) -> str:
        cost = model.computation_cost(node, proc)
        if isinstance(node, SumNode):
            return (
                "shape=diamond, style=filled, fillcolor=lightblue, "
                f'label="Sum\\nCost={cost}"'
            )
        if isinstance(node, ProductNode):
            return (
                "shape=box, style=filled, fillcolor=lightgreen, "
                f'label="Product\\nCost={cost}"'
            )
        if isinstance(node, GaussianLeafNode):
            return (
                "shape=ellipse, style=filled, fillcolor=lightyellow, "
                f'label="Gaussian\\nCost={cost}\\nScope={node.scope}"'
            )
        return 'shape=ellipse, label="Unknown"'

    @classmethod
    def _write_edges(cls, out: TextIO, spn: SPN) -> None:
        for node in spn.walk():
            node_id = cls._node_id(node)
            for child in node.children:
                out.write(f"  {node_id} -> {cls._node_id(child)};\n")

    @classmethod
    def plot_spn(cls, spn: SPN, filename: str | os.PathLike[str]) -> None:
        """Write the graph of ``spn`` to ``filename``."""
        model = PerformanceModel(spn)
        with open(filename, "w", encoding="utf-8") as out:
            out.write("digraph SPN {\n")
            out.writelines(_HEADER)
            for node in spn.walk():
                out.write(
                    f"  {cls._node_id(node)} "
                    f"[{cls._node_attributes(node, 0, model)}];\n"
                )
            cls._write_edges(out, spn)
            out.write("}\n")

    @classmethod
    def plot_bsp_schedule(
        cls, schedule: BSPSchedule, filename: str | os.PathLike[str]
    ) -> None:
        """Write ``schedule`` to ``filename``, clustered by superstep and processor."""
        spn = schedule.spn
        model = PerformanceModel(spn)
        with open(filename, "w", encoding="utf-8") as out:
            out.write("digraph BSPSchedule {\n")
            out.writelines(_HEADER)
            for superstep in range(schedule.num_supersteps):
                out.write(f"  subgraph cluster_superstep_{superstep} {{\n")
                out.write(f'    label="Superstep {superstep}";\n')
                out.write("    style=filled;\n")
                out.write("    color=lightgrey;\n")
                out.write("    rank=same;\n")
                for proc in range(schedule.num_processors):
                    out.write(
                        f"    subgraph cluster_superstep_{superstep}_proc_{proc} {{\n"
                    )
                    out.write(f'      label="Processor {proc}";\n')
                    out.write("      style=filled;\n")
                    out.write("      color=white;\n")
                    for node in spn.walk():
                        if (
                            schedule.is_scheduled(node)
                            and schedule.superstep(node) == superstep
                            and schedule.processor(node) == proc
                        ):
                            out.write(
                                f"      {cls._node_id(node)} "
                                f"[{cls._node_attributes(node, proc, model)}];\n"
                            )
                    out.write("    }\n")
                out.write("  }\n")
            cls._write_edges(out, spn)
            out.write("}\n")