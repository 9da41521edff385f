"""seating-constraints package."""
from .models import Guest, Table, Conflict, ParseWarning, SeatingSnapshot
from .guest_parser import ParserConfig, ParseResult, count_heads, parse_guest_units, sort_key
from .assignments import (
    compute_assignment_signature,
    migrate_legacy_keys,
    normalize_assignment_ids,
    normalize_assignments,
    normalize_guest_ids,
)
from .conflicts import dedupe_conflicts
from .validator import (
    can_add_adjacent,
    detect_conflicts,
    validate_adjacency,
    validate_constraints,
    would_close_cycle,
)
from .signature import compute_plan_signature

__all__ = [
    "Guest",
    "Table",
    "Conflict",
    "ParseWarning",
    "SeatingSnapshot",
    "ParserConfig",
    "ParseResult",
    "count_heads",
    "parse_guest_units",
    "sort_key",
    "compute_assignment_signature",
    "migrate_legacy_keys",
    "normalize_assignment_ids",
    "normalize_assignments",
    "normalize_guest_ids",
    "dedupe_conflicts",
    "can_add_adjacent",
    "detect_conflicts",
    "validate_adjacency",
    "validate_constraints",
    "would_close_cycle",
    "compute_plan_signature",
]
