"""Data models for seating-constraints."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

MUST = "must"
CANNOT = "cannot"

ConstraintMap = Mapping[str, Mapping[str, str]]
AdjacencyMap = Mapping[str, Iterable[str]]
AssignmentMap = Mapping[str, Sequence[int]]


@dataclass
class Guest:
    """One guest unit: a single entry in the guest list that may seat several people."""

    id: str
    name: str
    count: int = 1
    normalized_key: str = ""
    individual_names: Tuple[str, ...] = ()
    sort_key: str = ""

    def __post_init__(self) -> None:
        self.count = max(1, int(self.count))
        if not self.normalized_key:
            self.normalized_key = " ".join(self.name.split()).lower()

    @property
    def display_name(self) -> str:
        return self.name


@dataclass(frozen=True)
class Table:
    """Dinner table definition."""

    id: int
    capacity: int
    name: Optional[str] = None


@dataclass(frozen=True)
class ParseWarning:
    """Recoverable problem found while parsing one row of guest input."""

    row: int
    input: str
    message: str


@dataclass(frozen=True)
class Conflict:
    """Structural problem between two or more guests."""

    type: str
    affected_guests: Tuple[str, ...]
    description: str
    severity: str = "high"
    table_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class SeatingSnapshot:
    """Read-only view of everything that affects seating feasibility."""

    guests: Sequence[Guest] = field(default_factory=tuple)
    tables: Sequence[Table] = field(default_factory=tuple)
    constraints: ConstraintMap = field(default_factory=dict)
    adjacents: AdjacencyMap = field(default_factory=dict)
    assignments: AssignmentMap = field(default_factory=dict)


# ----------------------------- constraint helpers -----------------------------
def get_constraint(constraints: ConstraintMap, a: str, b: str) -> str:
    """Return ``"must"``, ``"cannot"`` or ``""`` for a pair."""
    return (constraints.get(a) or {}).get(b, "") or ""


def set_constraint(constraints: ConstraintMap, a: str, b: str, value: str) -> Dict[str, Dict[str, str]]:
    """Return a copy of ``constraints`` with the pair set symmetrically.

    An empty ``value`` clears the pair. Self pairs are ignored.
    """
    out = {k: dict(v) for k, v in constraints.items()}
    if a == b:
        return out
    if value:
        out.setdefault(a, {})[b] = value
        out.setdefault(b, {})[a] = value
    else:
        out.get(a, {}).pop(b, None)
        out.get(b, {}).pop(a, None)
    return out


def add_adjacent(adjacents: AdjacencyMap, a: str, b: str) -> Dict[str, List[str]]:
    """Return a copy of ``adjacents`` with a symmetric ``a``-``b`` edge."""
    out = {k: list(v) for k, v in adjacents.items()}
    if a == b:
        return out
    for x, y in ((a, b), (b, a)):
        partners = out.setdefault(x, [])
        if y not in partners:
            partners.append(y)
    return out


def remove_adjacent(adjacents: AdjacencyMap, a: str, b: str) -> Dict[str, List[str]]:
    """Return a copy of ``adjacents`` without the ``a``-``b`` edge."""
    out = {k: list(v) for k, v in adjacents.items()}
    if a in out:
        out[a] = [p for p in out[a] if p != b]
    if b in out:
        out[b] = [p for p in out[b] if p != a]
    return out


def adjacency_degree(adjacents: AdjacencyMap, guest_id: str) -> int:
    return len({p for p in adjacents.get(guest_id, ()) if p != guest_id})
