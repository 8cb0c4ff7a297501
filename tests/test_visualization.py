import re

import pytest

from spnipu.nodes import GaussianLeafNode, ProductNode, SumNode
from spnipu.performance import PerformanceModel
from spnipu.schedule import BSPSchedule
from spnipu.spn import SPN
from spnipu.visualization import DotVisualizer


@pytest.fixture
def network():
    spn = SPN()
    a = spn.create_node(GaussianLeafNode, 0.0, 1.0, 0)
    b = spn.create_node(GaussianLeafNode, 1.0, 1.0, 3)
    p1 = spn.create_node(ProductNode, [a, b])
    p2 = spn.create_node(ProductNode, [a])
    root = spn.create_node(SumNode, [(p1, 0.4), (p2, 0.6)])
    spn.root = root
    return spn


def _node_lines(text):
    return [line for line in text.splitlines() if line.strip().endswith("];")
            and "->" not in line and "graph [" not in line and "node [" not in line]


def test_plot_spn_structure(network, tmp_path):
    path = tmp_path / "spn.dot"
    DotVisualizer.plot_spn(network, path)
    text = path.read_text()
    lines = text.splitlines()
    assert lines[0] == "digraph SPN {"
    assert lines[1] == "  graph [rankdir=TB];"
    assert lines[2] == '  node [fontname="Arial"];'
    assert lines[-1] == "}"
    # shared leaf appears once
    assert len(_node_lines(text)) == len(list(network.walk()))
    edges = sum(len(n.children) for n in network.walk())
    assert text.count("->") == edges


def test_plot_spn_labels(network, tmp_path):
    path = tmp_path / "spn.dot"
    DotVisualizer.plot_spn(network, path)
    text = path.read_text()
    model = PerformanceModel(network)
    root_cost = model.computation_cost(network.root, 0)
    assert f'label="Sum\\nCost={root_cost}"' in text
    assert "shape=diamond, style=filled, fillcolor=lightblue" in text
    assert "\\nScope=3\"" in text
    assert text.count("fillcolor=lightgreen") == 2


def test_node_ids_are_consistent(network, tmp_path):
    path = tmp_path / "spn.dot"
    DotVisualizer.plot_spn(network, path)
    text = path.read_text()
    defined = set(re.findall(r"^  (node_0x[0-9a-f]+) \[", text, re.M))
    used = set(re.findall(r"(node_0x[0-9a-f]+)", text))
    assert defined == used
    assert len(defined) == 5


def test_plot_bsp_schedule_clusters(network, tmp_path):
    schedule = BSPSchedule(network)
    for node in network.walk():
        if isinstance(node, GaussianLeafNode):
            schedule.schedule_node(node, 0, 1)
        else:
            schedule.schedule_node(node, 1, 0)
    path = tmp_path / "schedule.dot"
    DotVisualizer.plot_bsp_schedule(schedule, path)
    text = path.read_text()
    assert text.startswith("digraph BSPSchedule {\n")
    assert "  subgraph cluster_superstep_1 {" in text
    assert "    subgraph cluster_superstep_0_proc_1 {" in text
    assert '    label="Superstep 1";' in text
    assert '      label="Processor 0";' in text
    assert text.count("subgraph cluster_superstep_") == (
        schedule.num_supersteps * (1 + schedule.num_processors)
    )
    node_lines = [line for line in text.splitlines() if line.startswith("      node_")]
    assert len(node_lines) == len(list(network.walk()))
    assert text.count("->") == sum(len(n.children) for n in network.walk())


def test_plot_bsp_schedule_places_node_in_its_cluster(network, tmp_path):
    schedule = BSPSchedule.single_superstep(network)
    path = tmp_path / "schedule.dot"
    DotVisualizer.plot_bsp_schedule(schedule, path)
    text = path.read_text()
    block = text.split("    subgraph cluster_superstep_0_proc_0 {")[1].split("    }")[0]
    assert block.count("node_") == len(list(network.walk()))
    assert "cluster_superstep_1" not in text