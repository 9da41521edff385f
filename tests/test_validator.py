import pathlib
import sys

# Ensure src package is on path
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from seating_constraints.models import Guest, SeatingSnapshot, Table
from seating_constraints.validator import (
    can_add_adjacent,
    detect_conflicts,
    validate_adjacency,
    validate_constraints,
    would_close_cycle,
)


def make_guests(**counts):
    return [Guest(gid, gid.upper(), count) for gid, count in counts.items()]


def symmetric(*edges):
    adj = {}
    for a, b in edges:
        adj.setdefault(a, []).append(b)
        adj.setdefault(b, []).append(a)
    return adj


def types(conflicts):
    return [c.type for c in conflicts]


# ----------------------------- adjacency -----------------------------
def test_two_node_chain_is_never_circular():
    guests = make_guests(a=1, b=1)
    conflicts = validate_adjacency(guests, symmetric(("a", "b")), [Table(1, 8)])
    assert conflicts == []


def test_open_path_is_valid():
    guests = make_guests(a=1, b=1, c=1)
    conflicts = validate_adjacency(guests, symmetric(("a", "b"), ("b", "c")), [Table(1, 8)])
    assert conflicts == []


def test_closed_loop_reports_one_circular():
    guests = make_guests(a=1, b=1, c=1)
    adj = symmetric(("a", "b"), ("b", "c"), ("c", "a"))
    conflicts = validate_adjacency(guests, adj, [Table(1, 8)])
    assert types(conflicts) == ["circular"]
    assert conflicts[0].affected_guests == ("a", "b", "c")


def test_degree_above_two_reports_once_for_the_hub():
    guests = make_guests(hub=1, a=1, b=1, c=1)
    adj = {"hub": ["a", "b", "c"]}
    conflicts = validate_adjacency(guests, adj, [])
    assert types(conflicts) == ["adjacency_violation"]
    assert conflicts[0].affected_guests == ("a", "b", "c", "hub")
    assert "HUB" in conflicts[0].description


def test_chain_fits_largest_eligible_table():
    guests = make_guests(a=5, b=6)
    adj = symmetric(("a", "b"))
    assert validate_adjacency(guests, adj, [Table(1, 8), Table(2, 12)]) == []

    conflicts = validate_adjacency(guests, adj, [Table(1, 8), Table(2, 10)])
    assert types(conflicts) == ["capacity_violation"]
    assert conflicts[0].table_ids == (1, 2)
    assert "11 seats" in conflicts[0].description


def test_chain_capacity_limited_to_assigned_tables():
    guests = make_guests(a=5, b=6)
    adj = symmetric(("a", "b"))
    conflicts = validate_adjacency(guests, adj, [Table(1, 12), Table(2, 8)], assignments={"a": (2,)})
    assert types(conflicts) == ["capacity_violation"]
    assert conflicts[0].table_ids == (2,)


def test_chain_with_disjoint_assignments():
    guests = make_guests(a=1, b=1)
    conflicts = validate_adjacency(
        guests, symmetric(("a", "b")), [Table(1, 8), Table(2, 8)], assignments={"a": [1], "b": [2]}
    )
    assert types(conflicts) == ["assignment_conflict"]


def test_unknown_assigned_tables_do_not_restrict():
    guests = make_guests(a=1, b=1)
    conflicts = validate_adjacency(guests, symmetric(("a", "b")), [Table(1, 8)], assignments={"a": [42]})
    assert conflicts == []


def test_no_tables_means_no_capacity_conflicts():
    guests = make_guests(a=50, b=50)
    assert validate_adjacency(guests, symmetric(("a", "b")), []) == []


def test_adjacent_guests_with_cannot_contradict():
    guests = make_guests(a=1, b=1)
    constraints = {"a": {"b": "cannot"}, "b": {"a": "cannot"}}
    conflicts = validate_adjacency(guests, symmetric(("a", "b")), [Table(1, 8)], constraints)
    assert types(conflicts) == ["adjacency_contradiction"]
    assert conflicts[0].severity == "critical"


def test_adjacency_to_unknown_guest():
    guests = make_guests(a=1)
    conflicts = validate_adjacency(guests, {"a": ["ghost"]}, [])
    assert types(conflicts) == ["unknown_guest"]
    assert conflicts[0].affected_guests == ("a", "ghost")


def test_adjacency_self_loops_are_ignored():
    guests = make_guests(a=1)
    assert validate_adjacency(guests, {"a": ["a"]}, [Table(1, 1)]) == []


# ----------------------------- must / cannot -----------------------------
def test_self_references_never_conflict():
    guests = make_guests(a=2, b=2)
    constraints = {
        "a": {"a": "cannot", "b": "must"},
        "b": {"a": "must", "b": "must"},
    }
    assert validate_constraints(guests, constraints, [Table(1, 8)]) == []
    assert validate_constraints(guests, {"a": {"a": "must"}}, [Table(1, 1)]) == []


def test_must_pair_too_big_reported_once():
    guests = make_guests(a=5, b=4)
    constraints = {"a": {"b": "must"}, "b": {"a": "must"}}
    conflicts = validate_constraints(guests, constraints, [Table(1, 8)])
    assert types(conflicts) == ["capacity_violation"]
    assert conflicts[0].affected_guests == ("a", "b")


def test_must_pair_with_disjoint_tables():
    guests = make_guests(a=1, b=1)
    conflicts = validate_constraints(
        guests, {"a": {"b": "must"}}, [Table(1, 8), Table(2, 8)], assignments={"a": (1,), "b": (2,)}
    )
    assert types(conflicts) == ["assignment_conflict"]
    assert conflicts[0].table_ids == (1, 2)


def test_must_pair_fits_shared_table():
    guests = make_guests(a=3, b=3)
    conflicts = validate_constraints(
        guests, {"a": {"b": "must"}}, [Table(1, 4), Table(2, 6)], assignments={"a": (1, 2), "b": (2,)}
    )
    assert conflicts == []


def test_cannot_pairs_have_no_structural_check():
    guests = make_guests(a=9, b=9)
    assert validate_constraints(guests, {"a": {"b": "cannot"}}, [Table(1, 2)]) == []


def test_must_one_way_cannot_the_other():
    guests = make_guests(a=1, b=1)
    conflicts = validate_constraints(guests, {"a": {"b": "must"}, "b": {"a": "cannot"}}, [])
    assert types(conflicts) == ["contradictory_constraint"]


def test_cannot_inside_must_group():
    guests = make_guests(a=1, b=1, c=1)
    constraints = {"a": {"b": "must", "c": "cannot"}, "b": {"c": "must"}}
    conflicts = validate_constraints(guests, constraints, [])
    assert types(conflicts) == ["cannot_within_must_group"]
    assert conflicts[0].affected_guests == ("a", "c")


def test_must_group_too_big():
    guests = make_guests(a=3, b=3, c=3)
    constraints = {"a": {"b": "must"}, "b": {"c": "must"}}
    conflicts = validate_constraints(guests, constraints, [Table(1, 8)])
    assert types(conflicts) == ["capacity_violation"]
    assert conflicts[0].affected_guests == ("a", "b", "c")


def test_constraint_with_unknown_guest():
    guests = make_guests(a=1)
    conflicts = validate_constraints(guests, {"a": {"zed": "must"}}, [Table(1, 8)])
    assert types(conflicts) == ["unknown_guest"]


# ----------------------------- combined -----------------------------
def test_must_and_adjacency_form_one_group():
    guests = make_guests(a=3, b=3, c=3)
    snapshot = SeatingSnapshot(
        guests=guests,
        tables=[Table(1, 8)],
        constraints={"a": {"b": "must"}, "b": {"a": "must"}},
        adjacents=symmetric(("b", "c")),
    )
    conflicts = detect_conflicts(snapshot)
    assert types(conflicts) == ["capacity_violation"]
    assert conflicts[0].affected_guests == ("a", "b", "c")


def test_cannot_between_chain_ends():
    guests = make_guests(a=1, b=1, c=1)
    snapshot = SeatingSnapshot(
        guests=guests,
        tables=[Table(1, 8)],
        constraints={"a": {"c": "cannot"}, "c": {"a": "cannot"}},
        adjacents=symmetric(("a", "b"), ("b", "c")),
    )
    assert types(detect_conflicts(snapshot)) == ["cannot_within_must_group"]


def test_detect_conflicts_has_no_duplicates():
    guests = make_guests(a=1, b=1, c=1, d=1)
    snapshot = SeatingSnapshot(
        guests=guests,
        tables=[Table(1, 2)],
        constraints={"a": {"b": "cannot"}, "b": {"a": "cannot"}},
        adjacents=symmetric(("a", "b"), ("b", "c"), ("c", "a"), ("a", "d")),
    )
    conflicts = detect_conflicts(snapshot)
    keys = [(c.type, c.affected_guests) for c in conflicts]
    assert len(keys) == len(set(keys))
    assert set(types(conflicts)) == {
        "adjacency_violation", "circular", "capacity_violation", "adjacency_contradiction"
    }


# ----------------------------- edit guards -----------------------------
def test_would_close_cycle():
    adj = symmetric(("a", "b"), ("b", "c"))
    assert would_close_cycle(adj, "a", "c")
    assert not would_close_cycle(adj, "a", "d")
    assert not would_close_cycle(adj, "a", "b")


def test_can_add_adjacent():
    adj = symmetric(("a", "b"), ("b", "c"))
    assert can_add_adjacent(adj, "a", "d")
    assert not can_add_adjacent(adj, "b", "d")
    assert not can_add_adjacent(adj, "a", "c")
    assert not can_add_adjacent(adj, "a", "a")
