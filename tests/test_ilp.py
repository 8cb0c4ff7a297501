import pytest

from spnipu.ilp import ILPConfig, ILPSolver, schedule_with_ilp
from spnipu.nodes import GaussianLeafNode, ProductNode, SumNode
from spnipu.spn import SPN


def _quiet(**kwargs):
    kwargs.setdefault("enable_output", False)
    return ILPConfig(**kwargs)


def _product_of_two_leaves():
    spn = SPN()
    a = spn.create_node(GaussianLeafNode, 0.0, 1.0, 0)
    b = spn.create_node(GaussianLeafNode, 1.0, 2.0, 1)
    root = spn.create_node(ProductNode, [a, b])
    spn.root = root
    return spn, a, b, root


def _assert_precedence(schedule):
    for node in schedule.spn.walk():
        assert schedule.is_scheduled(node)
        for child in node.children:
            assert schedule.superstep(child) <= schedule.superstep(node)
            if schedule.superstep(child) == schedule.superstep(node):
                assert schedule.processor(child) == schedule.processor(node)


def test_default_config_matches_documented_limits():
    config = ILPConfig()
    assert config.max_processors == 10
    assert config.max_supersteps == 5
    assert config.solver is ILPSolver.HIGHS


def test_single_leaf_is_one_superstep():
    spn = SPN()
    leaf = spn.create_node(GaussianLeafNode, 0.0, 1.0, 0)
    spn.root = leaf
    schedule = schedule_with_ilp(spn, _quiet(max_processors=2, max_supersteps=2))
    assert schedule is not None
    assert schedule.superstep(leaf) == 0
    assert schedule.num_supersteps == 1
    assert schedule.locked


def test_parallel_leaves_on_two_processors():
    spn, a, b, root = _product_of_two_leaves()
    schedule = schedule_with_ilp(spn, _quiet(max_processors=2, max_supersteps=3))
    assert schedule is not None
    _assert_precedence(schedule)
    assert schedule.superstep(a) == schedule.superstep(b) == 0
    assert schedule.processor(a) != schedule.processor(b)
    assert schedule.superstep(root) == 1
    assert schedule.num_supersteps == 2


def test_single_processor_uses_processor_zero():
    spn, a, b, root = _product_of_two_leaves()
    schedule = schedule_with_ilp(spn, _quiet(max_processors=1, max_supersteps=3))
    assert schedule is not None
    assert {schedule.processor(node) for node in (a, b, root)} == {0}
    assert schedule.num_processors == 1
    _assert_precedence(schedule)


def test_sum_network_respects_precedence_and_has_no_empty_supersteps():
    spn = SPN()
    leaves = [spn.create_node(GaussianLeafNode, float(i), 1.0, i) for i in range(3)]
    prod = spn.create_node(ProductNode, leaves[:2])
    root = spn.create_node(SumNode, [(prod, 0.4), (leaves[2], 0.6)])
    spn.root = root
    schedule = schedule_with_ilp(spn, _quiet(max_processors=2, max_supersteps=3))
    assert schedule is not None
    _assert_precedence(schedule)
    for step in range(schedule.num_supersteps):
        assert len(schedule.nodes_of_superstep(step)) > 0
    scheduled = {
        node
        for step in range(schedule.num_supersteps)
        for nodes in schedule.nodes_of_superstep(step).values()
        for node in nodes
    }
    assert scheduled == set(spn.walk())


def test_unsupported_solver_raises():
    spn, *_ = _product_of_two_leaves()
    with pytest.raises(ValueError):
        schedule_with_ilp(spn, _quiet(solver=ILPSolver.GUROBI))


def test_zero_supersteps_raises():
    spn, *_ = _product_of_two_leaves()
    with pytest.raises(ValueError):
        schedule_with_ilp(spn, _quiet(max_supersteps=0))


def test_missing_root_raises():
    spn = SPN()
    spn.create_node(GaussianLeafNode, 0.0, 1.0, 0)
    with pytest.raises(ValueError):
        schedule_with_ilp(spn, _quiet())


def test_child_outside_spn_raises():
    spn = SPN()
    stray = GaussianLeafNode(0.0, 1.0, 0)
    root = spn.create_node(ProductNode, [stray])
    spn.root = root
    with pytest.raises(ValueError):
        schedule_with_ilp(spn, _quiet(max_processors=1, max_supersteps=1))