"""Resolve free-text table and guest references to canonical ids."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .models import CANNOT, MUST, AdjacencyMap, ConstraintMap, Guest, Table

logger = logging.getLogger(__name__)

RawRefs = Union[str, int, Iterable[Union[str, int]], None]

_TOKEN_SPLIT_RE = re.compile(r"[,\n;]+")
_POSITIVE_INT_RE = re.compile(r"^\+?\d+$")


@dataclass
class Resolution:
    """Ids resolved from raw references plus a warning per unresolved token."""

    ids: Tuple[Union[int, str], ...] = ()
    warnings: List[str] = field(default_factory=list)


@dataclass
class Migration:
    constraints: Dict[str, Dict[str, str]] = field(default_factory=dict)
    adjacents: Dict[str, List[str]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


def _squash(text: str) -> str:
    return " ".join(str(text).split()).lower()


def split_tokens(raw: RawRefs) -> List[str]:
    """Flatten a comma separated string or an iterable of references into tokens."""
    if raw is None:
        return []
    if isinstance(raw, (str, int)):
        return [t.strip() for t in _TOKEN_SPLIT_RE.split(str(raw)) if t.strip()]
    tokens: List[str] = []
    for item in raw:
        tokens.extend(split_tokens(item))
    return tokens


# ----------------------------- tables -----------------------------
def normalize_assignment_ids(raw: RawRefs, tables: Sequence[Table]) -> Resolution:
    """Resolve table ids or names to a sorted tuple of existing table ids.

    ``"1, Head Table, 9"`` with tables 1 and 3 ("Head Table") gives ``(1, 3)``
    and a warning for ``9``.
    """
    known_ids = {t.id for t in tables}
    id_by_name = {_squash(t.name): t.id for t in tables if t.name}
    resolved = set()
    warnings: List[str] = []
    for token in split_tokens(raw):
        if _POSITIVE_INT_RE.match(token) and int(token) > 0:
            if int(token) in known_ids:
                resolved.add(int(token))
            else:
                warnings.append(f"Unknown table ID: {token}")
            continue
        table_id = id_by_name.get(_squash(token))
        if table_id is None:
            warnings.append(f"Unknown table name: {token}")
        else:
            resolved.add(table_id)
    return Resolution(ids=tuple(sorted(resolved)), warnings=warnings)


# ----------------------------- guests -----------------------------
def _guest_lookup(guests: Sequence[Guest]) -> Tuple[Dict[str, str], Dict[str, str]]:
    by_id = {g.id: g.id for g in guests}
    by_name: Dict[str, str] = {}
    for g in guests:
        by_name.setdefault(_squash(g.name), g.id)
    return by_id, by_name


def _resolve_guest(ref: str, by_id: Mapping[str, str], by_name: Mapping[str, str]) -> Optional[str]:
    ref = str(ref)
    if ref in by_id:
        return ref
    return by_name.get(_squash(ref))


def normalize_guest_ids(raw: RawRefs, guests: Sequence[Guest]) -> Resolution:
    """Resolve guest ids or names; result follows the guest list order."""
    by_id, by_name = _guest_lookup(guests)
    found = set()
    warnings: List[str] = []
    for token in split_tokens(raw):
        gid = _resolve_guest(token, by_id, by_name)
        if gid is None:
            warnings.append(f"Unknown guest: {token}")
        else:
            found.add(gid)
    return Resolution(ids=tuple(g.id for g in guests if g.id in found), warnings=warnings)


def normalize_assignments(
    assignments: Mapping[str, RawRefs], guests: Sequence[Guest], tables: Sequence[Table]
) -> Tuple[Dict[str, Tuple[int, ...]], List[str]]:
    """Resolve a whole assignment map keyed by guest name or id."""
    by_id, by_name = _guest_lookup(guests)
    name_by_id = {g.id: g.name for g in guests}
    out: Dict[str, Tuple[int, ...]] = {}
    warnings: List[str] = []
    for key, raw in assignments.items():
        gid = _resolve_guest(key, by_id, by_name)
        if gid is None:
            warnings.append(f"Unknown guest in assignments: {key}")
            continue
        res = normalize_assignment_ids(raw, tables)
        if res.warnings:
            warnings.append(f"Unknown tables for {name_by_id[gid]}: {', '.join(res.warnings)}")
        if res.ids:
            merged = set(out.get(gid, ())) | set(res.ids)
            out[gid] = tuple(sorted(merged))
    return out, warnings


def compute_assignment_signature(assignments: Mapping[str, Sequence[int]]) -> str:
    """Canonical string for an id keyed assignment map; empty entries are dropped."""
    canonical = {
        str(gid): sorted({int(t) for t in table_ids})
        for gid, table_ids in assignments.items()
        if table_ids
    }
    return json.dumps(canonical, sort_keys=True, separators=(",", ":"))


# ----------------------------- legacy migration -----------------------------
def migrate_legacy_keys(
    constraints: ConstraintMap, adjacents: AdjacencyMap, guests: Sequence[Guest]
) -> Migration:
    """Re-key name keyed constraint and adjacency maps by guest id.

    The result is symmetric. Each guest keeps at most its first two resolved
    adjacency partners; later partners are dropped with a warning.
    """
    by_id, by_name = _guest_lookup(guests)
    result = Migration()

    for k1, row in (constraints or {}).items():
        a = _resolve_guest(k1, by_id, by_name)
        if a is None:
            result.warnings.append(f"Unresolved constraint key: {k1}")
            continue
        for k2, value in (row or {}).items():
            if value not in (MUST, CANNOT):
                continue
            b = _resolve_guest(k2, by_id, by_name)
            if b is None:
                result.warnings.append(f"Unresolved constraint key: {k2}")
                continue
            if a == b:
                continue
            current = result.constraints.get(a, {}).get(b)
            if current and current != value:
                result.warnings.append(
                    f"Contradictory constraint between {k1} and {k2}; keeping {current}"
                )
                continue
            result.constraints.setdefault(a, {})[b] = value
            result.constraints.setdefault(b, {})[a] = value

    for k1, partners in (adjacents or {}).items():
        a = _resolve_guest(k1, by_id, by_name)
        if a is None:
            result.warnings.append(f"Unresolved adjacency key: {k1}")
            continue
        if isinstance(partners, Mapping):
            partners = list(partners.keys())
        for k2 in partners or ():
            b = _resolve_guest(k2, by_id, by_name)
            if b is None:
                result.warnings.append(f"Unresolved adjacency partner for {k1}: {k2}")
                continue
            if a == b or b in result.adjacents.get(a, []):
                continue
            if len(result.adjacents.get(a, [])) >= 2 or len(result.adjacents.get(b, [])) >= 2:
                result.warnings.append(f"Dropped adjacency {k1} - {k2}: a guest can have at most two neighbors")
                continue
            result.adjacents.setdefault(a, []).append(b)
            result.adjacents.setdefault(b, []).append(a)

    logger.debug(
        "Migrated %d constraint rows and %d adjacency rows, %d warnings",
        len(result.constraints), len(result.adjacents), len(result.warnings),
    )
    return result
