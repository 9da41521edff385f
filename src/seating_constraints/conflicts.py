"""Conflict list post-processing."""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List

from .models import Conflict


def conflict_key(conflict: Conflict) -> str:
    """Identity of a conflict: its type plus the sorted set of affected guests."""
    ids = sorted({str(g) for g in conflict.affected_guests if g})
    return f"{conflict.type or 'generic'}::{'|'.join(ids)}"


def dedupe_conflicts(conflicts: Iterable[Conflict]) -> List[Conflict]:
    """Keep the first conflict per key and drop those with fewer than two guests.

    Affected guests come back sorted and unique; every other field is kept.
    """
    seen: Dict[str, Conflict] = {}
    for c in conflicts:
        affected = tuple(sorted({str(g) for g in c.affected_guests if g}))
        if len(affected) < 2:
            continue
        key = conflict_key(c)
        if key not in seen:
            seen[key] = replace(c, affected_guests=affected)
    return list(seen.values())


def summarize_conflicts(conflicts: Iterable[Conflict]) -> Dict[str, int]:
    """Count conflicts per type, in first-seen order."""
    counts: Dict[str, int] = {}
    for c in conflicts:
        counts[c.type] = counts.get(c.type, 0) + 1
    return counts
