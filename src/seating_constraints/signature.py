"""Stable fingerprint of the inputs a seating plan depends on."""
from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Optional

from .assignments import compute_assignment_signature
from .models import CANNOT, MUST, SeatingSnapshot


def canonical_payload(snapshot: SeatingSnapshot) -> Dict[str, Any]:
    """Order independent view of tables, guests, constraints and adjacency."""
    constraints: Dict[str, Dict[str, str]] = {}
    for a, row in (snapshot.constraints or {}).items():
        cleaned = {
            str(b): v for b, v in (row or {}).items() if str(b) != str(a) and v in (MUST, CANNOT)
        }
        if cleaned:
            constraints[str(a)] = cleaned

    adjacents: Dict[str, list] = {}
    for a, partners in (snapshot.adjacents or {}).items():
        cleaned_partners = sorted({str(b) for b in partners or () if str(b) != str(a)})
        if cleaned_partners:
            adjacents[str(a)] = cleaned_partners

    return {
        "tables": sorted([t.id, t.capacity] for t in snapshot.tables),
        "guests": sorted([str(g.id), g.count] for g in snapshot.guests),
        "constraints": constraints,
        "adjacents": adjacents,
    }


def compute_plan_signature(snapshot: SeatingSnapshot, assignment_signature: Optional[str] = None) -> str:
    """SHA-256 hex digest over the canonical payload and the assignment signature.

    When ``assignment_signature`` is omitted it is derived from ``snapshot.assignments``.
    """
    if assignment_signature is None:
        assignment_signature = compute_assignment_signature(snapshot.assignments or {})
    payload = json.dumps(canonical_payload(snapshot), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(f"{payload}|{assignment_signature}".encode("utf-8")).hexdigest()
