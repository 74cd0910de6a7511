"""Constraint graph analysis.

Points are nodes; two points are adjacent when some active constraint
depends on both.  Connected components can be analysed and solved
independently.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from .constraints import Angle, BaseConstraint, Distance, Fixed, constraint_equation_count, get_constraint_points
from .sketch import SketchModel
from .types import PointId, entity_point_ids

logger = logging.getLogger(__name__)

_VALUE_EPS = 1e-6


@dataclass
class GraphNode:
    point_id: PointId
    fixed: bool
    neighbors: Set[PointId] = field(default_factory=set)
    constraints: List[BaseConstraint] = field(default_factory=list)


@dataclass
class GraphComponent:
    points: List[PointId]
    constraints: List[BaseConstraint]
    base_dof: int
    constraint_dof: int
    remaining_dof: int

    @property
    def is_under_constrained(self) -> bool:
        return self.remaining_dof > 0

    @property
    def is_fully_constrained(self) -> bool:
        return self.remaining_dof == 0

    @property
    def is_over_constrained(self) -> bool:
        return self.remaining_dof < 0


@dataclass
class ConstraintConflict:
    constraints: List[BaseConstraint]
    message: str


@dataclass
class GraphAnalysis:
    nodes: Dict[PointId, GraphNode]
    components: List[GraphComponent]
    total_dof: int
    constrained_dof: int
    remaining_dof: int
    conflicts: List[ConstraintConflict]


def _active(constraints: Sequence[BaseConstraint]) -> List[BaseConstraint]:
    # counting first rejects objects that are not constraints
    return [c for c in constraints if constraint_equation_count(c) and c.active]


def build_constraint_graph(sketch: SketchModel, constraints: Sequence[BaseConstraint]) -> Dict[PointId, GraphNode]:
    nodes = {pid: GraphNode(point_id=pid, fixed=p.fixed) for pid, p in sorted(sketch.points.items())}
    for constraint in _active(constraints):
        pids = [pid for pid in get_constraint_points(constraint, sketch) if pid in nodes]
        for pid in pids:
            nodes[pid].constraints.append(constraint)
        for i, a in enumerate(pids):
            for b in pids[i + 1:]:
                if a != b:
                    nodes[a].neighbors.add(b)
                    nodes[b].neighbors.add(a)
    return nodes


def find_connected_components(nodes: Dict[PointId, GraphNode]) -> List[List[PointId]]:
    """Breadth-first components, discovered in point-ID order."""

    visited: Set[PointId] = set()
    components: List[List[PointId]] = []
    for start in sorted(nodes):
        if start in visited:
            continue
        component: List[PointId] = []
        queue = deque([start])
        visited.add(start)
        while queue:
            current = queue.popleft()
            component.append(current)
            for neighbor in sorted(nodes[current].neighbors):
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append(neighbor)
        components.append(component)
    return components


def get_component_constraints(
    sketch: SketchModel, component: Sequence[PointId], constraints: Sequence[BaseConstraint]
) -> List[BaseConstraint]:
    members = set(component)
    return [
        c
        for c in _active(constraints)
        if all(pid in members for pid in get_constraint_points(c, sketch))
        and any(pid in members for pid in get_constraint_points(c, sketch))
    ]


def analyze_component_dof(
    sketch: SketchModel, component: Sequence[PointId], constraints: Sequence[BaseConstraint]
) -> GraphComponent:
    base = 2 * sum(1 for pid in component if pid in sketch.points and not sketch.points[pid].fixed)
    constrained = sum(constraint_equation_count(c) for c in constraints)
    return GraphComponent(
        points=list(component),
        constraints=list(constraints),
        base_dof=base,
        constraint_dof=constrained,
        remaining_dof=base - constrained,
    )


def detect_conflicts(sketch: SketchModel, constraints: Sequence[BaseConstraint]) -> List[ConstraintConflict]:
    """Cheap pairwise checks for contradictory duplicate constraints."""

    conflicts: List[ConstraintConflict] = []
    fixed_by_point: Dict[PointId, List[Fixed]] = defaultdict(list)
    distances: Dict[Tuple[PointId, PointId], List[Distance]] = defaultdict(list)
    angles: Dict[Tuple[int, int], List[Angle]] = defaultdict(list)

    for c in _active(constraints):
        if isinstance(c, Fixed):
            fixed_by_point[c.point].append(c)
        elif isinstance(c, Distance):
            distances[tuple(sorted((c.p1, c.p2)))].append(c)  # type: ignore[index]
        elif isinstance(c, Angle):
            angles[(c.line1, c.line2)].append(c)

    for pid, group in fixed_by_point.items():
        first = group[0]
        for other in group[1:]:
            if tuple(first.position) != tuple(other.position):
                conflicts.append(ConstraintConflict([first, other], f"conflicting fixed positions for point {pid}"))

    for (a, b), group in distances.items():
        first = group[0]
        for other in group[1:]:
            if abs(first.distance - other.distance) > _VALUE_EPS:
                conflicts.append(
                    ConstraintConflict([first, other], f"conflicting distance constraints between points {a}-{b}")
                )

    for (l1, l2), group in angles.items():
        first = group[0]
        for other in group[1:]:
            if abs(first.angle - other.angle) > _VALUE_EPS:
                conflicts.append(
                    ConstraintConflict([first, other], f"conflicting angle constraints between lines {l1}-{l2}")
                )

    if conflicts:
        logger.debug("Detected %d constraint conflict(s)", len(conflicts))
    return conflicts


def analyze_constraint_graph(sketch: SketchModel, constraints: Sequence[BaseConstraint]) -> GraphAnalysis:
    nodes = build_constraint_graph(sketch, constraints)
    components = [
        analyze_component_dof(sketch, pids, get_component_constraints(sketch, pids, constraints))
        for pids in find_connected_components(nodes)
    ]
    total = sum(c.base_dof for c in components)
    constrained = sum(c.constraint_dof for c in components)
    return GraphAnalysis(
        nodes=nodes,
        components=components,
        total_dof=total,
        constrained_dof=constrained,
        remaining_dof=total - constrained,
        conflicts=detect_conflicts(sketch, constraints),
    )


def partition_for_solving(
    sketch: SketchModel, constraints: Sequence[BaseConstraint]
) -> List[Tuple[SketchModel, List[BaseConstraint]]]:
    """Split into independent sub-sketches, each a deep copy of its points and entities."""

    analysis = analyze_constraint_graph(sketch, constraints)
    partitions: List[Tuple[SketchModel, List[BaseConstraint]]] = []
    for component in analysis.components:
        members = set(component.points)
        sub = sketch.clone()
        sub.points = {pid: copy.deepcopy(p) for pid, p in sketch.points.items() if pid in members}
        sub.entities = {
            eid: copy.deepcopy(e)
            for eid, e in sketch.entities.items()
            if all(pid in members for pid in entity_point_ids(e))
        }
        partitions.append((sub, list(component.constraints)))
    return partitions


def can_solve(sketch: SketchModel, constraints: Sequence[BaseConstraint]) -> Tuple[bool, str, GraphAnalysis]:
    analysis = analyze_constraint_graph(sketch, constraints)
    if analysis.conflicts:
        return False, f"found {len(analysis.conflicts)} constraint conflict(s)", analysis
    over = [c for c in analysis.components if c.is_over_constrained]
    if over:
        return False, f"{len(over)} component(s) are over-constrained", analysis
    if analysis.remaining_dof > 0:
        return True, f"under-constrained by {analysis.remaining_dof} DOF", analysis
    return True, "fully constrained", analysis


__all__ = [
    "ConstraintConflict",
    "GraphAnalysis",
    "GraphComponent",
    "GraphNode",
    "analyze_component_dof",
    "analyze_constraint_graph",
    "build_constraint_graph",
    "can_solve",
    "detect_conflicts",
    "find_connected_components",
    "get_component_constraints",
    "partition_for_solving",
]
