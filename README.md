# spnipu

Sum-product networks (SPNs) with Gaussian leaves, plus tools for spreading
their evaluation over processors in a bulk-synchronous-parallel (BSP) schedule.

## What it does

- **Model** (`spnipu.nodes`, `spnipu.spn`): build an SPN from `SumNode`,
  `ProductNode` and `GaussianLeafNode` objects created through
  `SPN.create_node` and set `SPN.root`. Nodes can be walked in pre- or
  post-order (`NodeTraversalOrder`), each reachable node yielded once, and
  processed with a `NodeVisitor`. Edges between nodes are `Edge` values.
  `SPN.num_features()` is the largest leaf scope plus one.
- **Host evaluation** (`spnipu.host`): `HostExecutor` computes the joint
  probability density of the network for one feature vector, in double
  precision. A leaf whose scope lies outside the feature vector raises
  `IndexError`.
- **Scheduling** (`spnipu.schedule`, `spnipu.performance`, `spnipu.ilp`):
  `BSPSchedule` assigns each node to a superstep and a processor, checks that
  the assignment is valid and works out the edges that cross superstep
  boundaries. `PerformanceModel` estimates the cost of each node (one
  operation per product child, two per sum child, six per Gaussian leaf; one
  per communicated value). `schedule_with_ilp` finds a cost-minimal schedule
  by solving a mixed-integer linear program with SciPy's HiGHS solver.
- **Visualisation** (`spnipu.visualization`): `DotVisualizer` writes an SPN or
  a schedule as a Graphviz `.dot` file.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from spnipu.spn import SPN
from spnipu.nodes import SumNode, ProductNode, GaussianLeafNode
from spnipu.host import HostExecutor
from spnipu.schedule import BSPSchedule
from spnipu.ilp import ILPConfig, schedule_with_ilp
from spnipu.visualization import DotVisualizer

spn = SPN()
x0 = spn.create_node(GaussianLeafNode, 0.0, 1.0, 0)
x1 = spn.create_node(GaussianLeafNode, 1.0, 2.0, 1)
prod = spn.create_node(ProductNode)
prod.add_factor(x0)
prod.add_factor(x1)
alt = spn.create_node(GaussianLeafNode, 0.5, 1.0, 0)
root = spn.create_node(SumNode)
root.add_summand(prod, 0.3)
root.add_summand(alt, 0.7)
spn.root = root

print(spn.num_features())                     # 2
print(HostExecutor(spn).evaluate([0.5, 0.5]))

# Everything in one superstep on one processor
simple = BSPSchedule.single_superstep(spn)
simple.validate()

# A cost-optimised schedule; None if no solution was found
config = ILPConfig(max_processors=2, max_supersteps=3, enable_output=False)
schedule = schedule_with_ilp(spn, config)
if schedule is not None:
    DotVisualizer.plot_bsp_schedule(schedule, "schedule.dot")

DotVisualizer.plot_spn(spn, "spn.dot")
```

Render the `.dot` files with Graphviz, for example `dot -Tpng spn.dot -o spn.png`.

## Schedules

A schedule may be changed with `schedule_node` until `lock()` is called;
scheduling after that raises `ScheduleError`. Locking computes each
superstep's incoming and outgoing edges, which are then available through
`incoming_edges(superstep)` and `outgoing_edges(superstep)` (both raise
`ScheduleError` on an unlocked schedule). `nodes_of_superstep(superstep)`
maps each processor to its nodes in that superstep.

`validate()` raises `ScheduleError` when a reachable node is unscheduled,
when a node is placed before one of its children, or when a node and a child
share a superstep but not a processor. `without_empty_supersteps()` returns a
locked copy with empty supersteps removed.

## ILP options

`ILPConfig` holds `solver`, `max_processors` (default 10), `max_supersteps`
(default 5), `time_limit_seconds` (non-positive means no limit) and
`enable_output` (solver progress output, on by default).
`ILPSolver` names GUROBI, CBC, GLPK and HIGHS, but only `ILPSolver.HIGHS` is
usable; any other choice raises `ValueError`. The result of
`schedule_with_ilp` is locked, validated and free of empty supersteps, or
`None` when no feasible solution is found. The program grows with nodes ×
processors × supersteps, so keep these small for large networks.

## What it does not do

- It does not read SPNs from files; networks are built in code.
- It does not compile a schedule for, or run it on, parallel hardware; the
  only evaluation is `HostExecutor` on the host.
- It has no command-line program.