"""Optimal BSP scheduling of an SPN as a mixed-integer linear program."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp
from scipy.sparse import coo_matrix

from spnipu.nodes import Node
from spnipu.performance import PerformanceModel
from spnipu.schedule import BSPSchedule
from spnipu.spn import SPN

logger = logging.getLogger(__name__)

__all__ = ["ILPSolver", "ILPConfig", "schedule_with_ilp"]


class ILPSolver(enum.Enum):
    """Mixed-integer solvers the scheduler can be asked to use.

    Only HiGHS ships with the scientific stack this package depends on;
    asking for any other backend raises :class:`ValueError`.
    """

    GUROBI = "gurobi"
    CBC = "cbc"
    GLPK = "glpk"
    HIGHS = "highs"


_AVAILABLE_SOLVERS = frozenset({ILPSolver.HIGHS})


@dataclass(frozen=True)
class ILPConfig:
    """Settings for :func:`schedule_with_ilp`.

    A non-positive ``time_limit_seconds`` means no limit.
    """

    solver: ILPSolver = ILPSolver.HIGHS
    max_processors: int = 10
    max_supersteps: int = 5
    time_limit_seconds: float = -1
    enable_output: bool = True


# Variable kinds of the four node x processor x superstep families.
_COMP, _PRES, _SENT, _RECV = range(4)


class _Problem:
    """Index arithmetic and sparse row accumulation for the scheduling ILP."""

    def __init__(self, num_nodes: int, procs: int, steps: int) -> None:
        self.n = num_nodes
        self.procs = procs
        self.steps = steps
        self.num_binary = 4 * num_nodes * procs * steps
        self.num_vars = self.num_binary + 2 * steps
        self._rows: list[int] = []
        self._cols: list[int] = []
        self._data: list[float] = []
        self._lower: list[float] = []
        self._upper: list[float] = []

    def var(self, kind: int, v: int, p: int, s: int) -> int:
        return ((kind * self.n + v) * self.procs + p) * self.steps + s

    def work(self, s: int) -> int:
        return self.num_binary + s

    def comm(self, s: int) -> int:
        return self.num_binary + self.steps + s

    def add(self, terms: list[tuple[int, float]], lower: float, upper: float) -> None:
        row = len(self._lower)
        for col, coeff in terms:
            self._rows.append(row)
            self._cols.append(col)
            self._data.append(coeff)
        self._lower.append(lower)
        self._upper.append(upper)

    @property
    def num_constraints(self) -> int:
        return len(self._lower)

    def constraint(self) -> LinearConstraint:
        matrix = coo_matrix(
            (self._data, (self._rows, self._cols)),
            shape=(self.num_constraints, self.num_vars),
        ).tocsr()
        return LinearConstraint(matrix, np.array(self._lower), np.array(self._upper))


def _build(problem: _Problem, nodes: list[Node], index: dict[Node, int],
           model: PerformanceModel) -> np.ndarray:
    """Add all constraints to ``problem`` and return the objective vector."""
    n, procs, steps = problem.n, problem.procs, problem.steps
    var = problem.var
    inf = np.inf

    # (1) Each node is computed exactly once.
    for v in range(n):
        terms = [(var(_COMP, v, p, s), 1.0) for p in range(procs) for s in range(steps)]
        problem.add(terms, 1.0, 1.0)

    # (2) A value is present where it was computed, kept or received.
    for v in range(n):
        for p in range(procs):
            problem.add([(var(_PRES, v, p, 0), 1.0), (var(_COMP, v, p, 0), -1.0)], 0.0, 0.0)
            for s in range(1, steps):
                problem.add(
                    [
                        (var(_PRES, v, p, s), 1.0),
                        (var(_PRES, v, p, s - 1), -1.0),
                        (var(_COMP, v, p, s), -1.0),
                        (var(_RECV, v, p, s - 1), -1.0),
                    ],
                    -inf,
                    0.0,
                )

    # (3) A node is computed only where all its children are present.
    for node in nodes:
        v = index[node]
        for child in node.children:
            try:
                u = index[child]
            except KeyError:
                raise ValueError("child node does not belong to the SPN") from None
            for p in range(procs):
                for s in range(steps):
                    problem.add(
                        [(var(_COMP, v, p, s), 1.0), (var(_PRES, u, p, s), -1.0)], -inf, 0.0
                    )

    # (4) Only present values are sent; received values were sent elsewhere.
    for v in range(n):
        for p in range(procs):
            for s in range(steps):
                problem.add(
                    [(var(_SENT, v, p, s), 1.0), (var(_PRES, v, p, s), -1.0)], -inf, 0.0
                )
    for v in range(n):
        for p in range(procs):
            for s in range(steps):
                terms = [(var(_RECV, v, p, s), 1.0)]
                terms.extend(
                    (var(_SENT, v, other, s), -1.0) for other in range(procs) if other != p
                )
                problem.add(terms, -inf, 0.0)

    # (5) Work of a superstep bounds the work of every processor in it.
    for s in range(steps):
        for p in range(procs):
            terms = [
                (var(_COMP, v, p, s), float(model.computation_cost(node, p)))
                for v, node in enumerate(nodes)
            ]
            terms.append((problem.work(s), -1.0))
            problem.add(terms, -inf, 0.0)

    # (6) Communication of a superstep bounds what any processor sends or receives.
    for s in range(steps):
        for p in range(procs):
            sent = [(var(_SENT, v, p, s), 1.0) for v in range(n)]
            recv = [(var(_RECV, v, p, s), 1.0) for v in range(n)]
            problem.add(sent + [(problem.comm(s), -1.0)], -inf, 0.0)
            problem.add(recv + [(problem.comm(s), -1.0)], -inf, 0.0)

    # (7) Minimise total work plus weighted communication.
    objective = np.zeros(problem.num_vars)
    g = float(model.communication_cost())
    for s in range(steps):
        objective[problem.work(s)] = 1.0
        objective[problem.comm(s)] = g
    return objective


def schedule_with_ilp(spn: SPN, config: ILPConfig | None = None) -> BSPSchedule | None:
    """Find a cost-minimal BSP schedule of ``spn``.

    Returns a locked, validated schedule without empty supersteps, or ``None``
    when the solver finds no feasible solution.
    """
    config = config if config is not None else ILPConfig()
    if config.solver not in _AVAILABLE_SOLVERS:
        raise ValueError(f"Unsupported solver type: {config.solver.name}")
    if config.max_processors < 1 or config.max_supersteps < 1:
        raise ValueError("max_processors and max_supersteps must be at least 1")
    if spn.root is None:
        raise ValueError("SPN has no root node")

    started = time.monotonic()
    nodes = list(spn.nodes)
    index = {node: i for i, node in enumerate(nodes)}
    model = PerformanceModel(spn)

    logger.debug("Scheduling SPN using %s solver", config.solver.name)
    problem = _Problem(len(nodes), config.max_processors, config.max_supersteps)
    objective = _build(problem, nodes, index, model)

    integrality = np.zeros(problem.num_vars)
    integrality[: problem.num_binary] = 1
    upper = np.full(problem.num_vars, np.inf)
    upper[: problem.num_binary] = 1.0
    bounds = Bounds(np.zeros(problem.num_vars), upper)

    options: dict[str, object] = {"disp": bool(config.enable_output)}
    if config.time_limit_seconds > 0:
        options["time_limit"] = float(config.time_limit_seconds)

    logger.debug(
        "ILP problem constructed with %d variables and %d constraints",
        problem.num_vars,
        problem.num_constraints,
    )
    result = milp(
        objective,
        integrality=integrality,
        bounds=bounds,
        constraints=problem.constraint(),
        options=options,
    )
    elapsed = time.monotonic() - started

    if result.x is None:
        logger.error("No solution found after %.3f s: %s", elapsed, result.message)
        return None

    logger.info(
        "Solution found after %.3f s with objective value: %s", elapsed, result.fun
    )
    schedule = BSPSchedule(spn)
    for v, node in enumerate(nodes):
        for p in range(problem.procs):
            for s in range(problem.steps):
                if result.x[problem.var(_COMP, v, p, s)] > 0.5:
                    schedule.schedule_node(node, s, p)

    schedule.lock()
    schedule.validate()
    return schedule.without_empty_supersteps()