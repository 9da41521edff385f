"""
Constraint graph validation.

Checks a guest list, its pairwise must/cannot constraints and its adjacency
("sit right next to") requests against the tables before any plan is built.

Conflict types:
    adjacency_violation       a guest has more than two adjacency partners
    circular                  an adjacency chain closes into a loop
    capacity_violation        a chain or must group fits no eligible table
    assignment_conflict       members are restricted to disjoint tables
    adjacency_contradiction   two adjacent guests also have a cannot constraint
    contradictory_constraint  a pair is must one way and cannot the other
    cannot_within_must_group  a cannot pair is forced together by musts
    unknown_guest             a constraint or edge names a guest not in the list

Adjacency implies must: an adjacency edge is honoured as co-seating even
without a matching must entry.
"""
from __future__ import annotations

import logging
from itertools import combinations
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import networkx as nx

from .conflicts import dedupe_conflicts
from .models import (
    CANNOT,
    MUST,
    AdjacencyMap,
    AssignmentMap,
    Conflict,
    ConstraintMap,
    Guest,
    SeatingSnapshot,
    Table,
)

logger = logging.getLogger(__name__)

ADJACENCY_VIOLATION = "adjacency_violation"
CIRCULAR = "circular"
CAPACITY_VIOLATION = "capacity_violation"
ASSIGNMENT_CONFLICT = "assignment_conflict"
ADJACENCY_CONTRADICTION = "adjacency_contradiction"
CONTRADICTORY_CONSTRAINT = "contradictory_constraint"
CANNOT_WITHIN_MUST_GROUP = "cannot_within_must_group"
UNKNOWN_GUEST = "unknown_guest"

_SEVERITY = {
    ADJACENCY_VIOLATION: "high",
    CIRCULAR: "high",
    CAPACITY_VIOLATION: "critical",
    ASSIGNMENT_CONFLICT: "high",
    ADJACENCY_CONTRADICTION: "critical",
    CONTRADICTORY_CONSTRAINT: "critical",
    CANNOT_WITHIN_MUST_GROUP: "critical",
    UNKNOWN_GUEST: "medium",
}


# ----------------------------- helpers -----------------------------
class _Context:
    """Lookups shared by the checks of one validation call."""

    def __init__(
        self,
        guests: Sequence[Guest],
        tables: Sequence[Table],
        assignments: Optional[AssignmentMap],
    ) -> None:
        self.tables = list(tables)
        self.counts = {g.id: g.count for g in guests}
        self.names = {g.id: g.name for g in guests}
        known_tables = {t.id for t in self.tables}
        self.allowed: Dict[str, FrozenSet[int]] = {}
        for gid, table_ids in (assignments or {}).items():
            valid = frozenset(int(t) for t in table_ids or () if int(t) in known_tables)
            if valid:
                self.allowed[str(gid)] = valid

    def known(self, gid: str) -> bool:
        return gid in self.counts

    def label(self, members: Iterable[str]) -> str:
        return ", ".join(self.names.get(m, m) for m in members)

    def seats(self, members: Iterable[str]) -> int:
        return sum(self.counts.get(m, 1) for m in members)


def _conflict(kind: str, members: Iterable[str], description: str, table_ids: Iterable[int] = ()) -> Conflict:
    return Conflict(
        type=kind,
        affected_guests=tuple(sorted(set(members))),
        description=description,
        severity=_SEVERITY.get(kind, "high"),
        table_ids=tuple(sorted(set(table_ids))),
    )


def _pair(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a <= b else (b, a)


def _adjacency_graph(adjacents: AdjacencyMap) -> nx.Graph:
    graph = nx.Graph()
    for a, partners in (adjacents or {}).items():
        for b in partners or ():
            a_id, b_id = str(a), str(b)
            if a_id != b_id:
                graph.add_edge(a_id, b_id)
    return graph


def _constraint_pairs(constraints: Optional[ConstraintMap]) -> Dict[Tuple[str, str], Set[str]]:
    """Collapse a constraint matrix into canonical pairs, ignoring self entries."""
    pairs: Dict[Tuple[str, str], Set[str]] = {}
    for a, row in (constraints or {}).items():
        for b, value in (row or {}).items():
            a_id, b_id = str(a), str(b)
            if a_id == b_id or value not in (MUST, CANNOT):
                continue
            pairs.setdefault(_pair(a_id, b_id), set()).add(value)
    return pairs


def _components(graph: nx.Graph) -> List[List[str]]:
    return sorted((sorted(c) for c in nx.connected_components(graph)), key=lambda c: c[0])


def _fit_conflict(members: Sequence[str], ctx: _Context, what: str) -> Optional[Conflict]:
    """Existential capacity check: can some eligible table seat every member?"""
    if not ctx.tables:
        return None
    restricted = [ctx.allowed[m] for m in members if m in ctx.allowed]
    eligible = ctx.tables
    if restricted:
        common = frozenset.intersection(*restricted)
        if not common:
            union = frozenset.union(*restricted)
            return _conflict(
                ASSIGNMENT_CONFLICT,
                members,
                f"{what} {ctx.label(members)} must share a table but their table assignments do not overlap.",
                union,
            )
        eligible = [t for t in ctx.tables if t.id in common]

    seats = ctx.seats(members)
    largest = max(t.capacity for t in eligible)
    if seats > largest:
        return _conflict(
            CAPACITY_VIOLATION,
            members,
            f"{what} {ctx.label(members)} requires {seats} seats but the largest eligible table has {largest}.",
            (t.id for t in eligible),
        )
    return None


# ----------------------------- adjacency -----------------------------
def validate_adjacency(
    guests: Sequence[Guest],
    adjacents: AdjacencyMap,
    tables: Sequence[Table],
    constraints: Optional[ConstraintMap] = None,
    assignments: Optional[AssignmentMap] = None,
) -> List[Conflict]:
    """Validate adjacency chains: degree, topology, capacity and cannot contradictions."""
    ctx = _Context(guests, tables, assignments)
    graph = _adjacency_graph(adjacents)
    conflicts: List[Conflict] = []

    for a, b in sorted(_pair(a, b) for a, b in graph.edges()):
        missing = [g for g in (a, b) if not ctx.known(g)]
        if missing:
            conflicts.append(_conflict(
                UNKNOWN_GUEST, (a, b), f"Adjacency {a} - {b} references unknown guest {', '.join(missing)}."
            ))

    for node in sorted(graph.nodes()):
        partners = sorted(graph.neighbors(node))
        if len(partners) > 2:
            conflicts.append(_conflict(
                ADJACENCY_VIOLATION,
                [node, *partners],
                f"{ctx.label([node])} is adjacent to {len(partners)} guests "
                f"({ctx.label(partners)}) but can have at most two neighbors.",
            ))

    for component in _components(graph):
        # a tree on n nodes has n - 1 edges; anything more is a loop
        if len(component) >= 3 and graph.subgraph(component).number_of_edges() >= len(component):
            conflicts.append(_conflict(
                CIRCULAR,
                component,
                f"Adjacency chain {ctx.label(component)} closes into a loop; a chain needs two open ends.",
            ))
        fit = _fit_conflict(component, ctx, "Adjacency chain")
        if fit is not None:
            conflicts.append(fit)

    pairs = _constraint_pairs(constraints)
    for a, b in sorted(_pair(a, b) for a, b in graph.edges()):
        if CANNOT in pairs.get((a, b), ()):
            conflicts.append(_conflict(
                ADJACENCY_CONTRADICTION,
                (a, b),
                f"{ctx.label([a])} and {ctx.label([b])} must sit next to each other but also cannot sit together.",
            ))

    logger.debug("Adjacency validation: %d nodes, %d edges, %d conflicts",
                 graph.number_of_nodes(), graph.number_of_edges(), len(conflicts))
    return conflicts


# ----------------------------- must / cannot -----------------------------
def _group_conflicts(
    graph: nx.Graph,
    cannot_pairs: Iterable[Tuple[str, str]],
    ctx: _Context,
    what: str,
    skip_groups: Set[FrozenSet[str]] = frozenset(),
    skip_pairs: Set[Tuple[str, str]] = frozenset(),
) -> List[Conflict]:
    """Capacity and cannot checks for groups of three or more forced together."""
    conflicts: List[Conflict] = []
    group_of: Dict[str, int] = {}
    for index, component in enumerate(_components(graph)):
        for member in component:
            group_of[member] = index
        if len(component) < 3 or frozenset(component) in skip_groups:
            continue
        fit = _fit_conflict(component, ctx, what)
        if fit is not None:
            conflicts.append(fit)

    for a, b in sorted(cannot_pairs):
        if (a, b) in skip_pairs or a not in group_of or b not in group_of:
            continue
        if group_of[a] == group_of[b]:
            conflicts.append(_conflict(
                CANNOT_WITHIN_MUST_GROUP,
                (a, b),
                f"{ctx.label([a])} and {ctx.label([b])} cannot sit together "
                f"but {what.lower()} links force them to the same table.",
            ))
    return conflicts


def validate_constraints(
    guests: Sequence[Guest],
    constraints: ConstraintMap,
    tables: Sequence[Table],
    assignments: Optional[AssignmentMap] = None,
) -> List[Conflict]:
    """Validate must/cannot pairs and the must groups they form."""
    ctx = _Context(guests, tables, assignments)
    pairs = _constraint_pairs(constraints)
    conflicts: List[Conflict] = []
    must_graph = nx.Graph()
    cannot_pairs: List[Tuple[str, str]] = []

    for (a, b), values in sorted(pairs.items()):
        missing = [g for g in (a, b) if not ctx.known(g)]
        if missing:
            conflicts.append(_conflict(
                UNKNOWN_GUEST, (a, b), f"Constraint {a} - {b} references unknown guest {', '.join(missing)}."
            ))
            continue
        if len(values) > 1:
            conflicts.append(_conflict(
                CONTRADICTORY_CONSTRAINT,
                (a, b),
                f"{ctx.label([a])} and {ctx.label([b])} are marked both must and cannot.",
            ))
            continue
        if MUST in values:
            must_graph.add_edge(a, b)
            fit = _fit_conflict((a, b), ctx, "Must pair")
            if fit is not None:
                conflicts.append(fit)
        else:
            cannot_pairs.append((a, b))

    conflicts.extend(_group_conflicts(must_graph, cannot_pairs, ctx, "Must group"))
    logger.debug("Constraint validation: %d pairs, %d conflicts", len(pairs), len(conflicts))
    return conflicts


# ----------------------------- combined -----------------------------
def detect_conflicts(snapshot: SeatingSnapshot) -> List[Conflict]:
    """Run every check over a snapshot and return deduplicated conflicts.

    Must pairs and adjacency edges together form co-seating groups; groups
    that only appear once both kinds of link are combined are checked too.
    """
    conflicts = validate_constraints(
        snapshot.guests, snapshot.constraints, snapshot.tables, snapshot.assignments
    )
    conflicts += validate_adjacency(
        snapshot.guests, snapshot.adjacents, snapshot.tables, snapshot.constraints, snapshot.assignments
    )

    ctx = _Context(snapshot.guests, snapshot.tables, snapshot.assignments)
    adjacency = _adjacency_graph(snapshot.adjacents)
    pairs = _constraint_pairs(snapshot.constraints)
    musts = nx.Graph()
    musts.add_edges_from(p for p, v in pairs.items() if v == {MUST})
    combined = nx.compose(musts, adjacency)
    combined.remove_nodes_from([n for n in list(combined.nodes()) if not ctx.known(n)])

    seen = {frozenset(c) for c in nx.connected_components(musts)}
    seen |= {frozenset(c) for c in nx.connected_components(adjacency)}
    cannot_pairs = [p for p, v in pairs.items() if v == {CANNOT}]
    adjacent_pairs = {_pair(a, b) for a, b in adjacency.edges()}
    conflicts += _group_conflicts(
        combined, cannot_pairs, ctx, "Seating group", skip_groups=seen, skip_pairs=adjacent_pairs
    )

    result = dedupe_conflicts(conflicts)
    logger.debug("Detected %d conflicts (%d before dedupe)", len(result), len(conflicts))
    return result


# ----------------------------- edit guards -----------------------------
def would_close_cycle(adjacents: AdjacencyMap, a: str, b: str) -> bool:
    """True when adding the ``a``-``b`` edge would close an adjacency loop."""
    graph = _adjacency_graph(adjacents)
    if a == b:
        return False
    if graph.has_edge(a, b) or a not in graph or b not in graph:
        return False
    return nx.has_path(graph, a, b)


def can_add_adjacent(adjacents: AdjacencyMap, a: str, b: str) -> bool:
    """Whether ``a``-``b`` can be added while keeping every component an open chain."""
    if a == b:
        return False
    graph = _adjacency_graph(adjacents)
    if graph.has_edge(a, b):
        return True
    for node in (a, b):
        if node in graph and graph.degree(node) >= 2:
            return False
    return not would_close_cycle(adjacents, a, b)
