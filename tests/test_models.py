import pathlib
import sys

# Ensure src package is on path
sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "src"))

from seating_constraints.models import (
    Guest,
    add_adjacent,
    adjacency_degree,
    get_constraint,
    remove_adjacent,
    set_constraint,
)


def test_guest_instantiation():
    guest = Guest(id="g1", name="Alex  Smith", count=0)
    assert guest.count == 1
    assert guest.normalized_key == "alex smith"
    assert guest.display_name == "Alex  Smith"


def test_set_constraint_is_symmetric_and_clears():
    constraints = set_constraint({}, "a", "b", "must")
    assert get_constraint(constraints, "a", "b") == "must"
    assert get_constraint(constraints, "b", "a") == "must"

    cleared = set_constraint(constraints, "b", "a", "")
    assert get_constraint(cleared, "a", "b") == ""
    # original left untouched
    assert get_constraint(constraints, "a", "b") == "must"


def test_set_constraint_ignores_self_pairs():
    assert set_constraint({}, "a", "a", "cannot") == {}


def test_add_and_remove_adjacent():
    adj = add_adjacent({}, "a", "b")
    adj = add_adjacent(adj, "b", "a")
    assert adj == {"a": ["b"], "b": ["a"]}
    assert adjacency_degree(adj, "a") == 1

    adj = remove_adjacent(add_adjacent(adj, "b", "c"), "a", "b")
    assert adj == {"a": [], "b": ["c"], "c": ["b"]}
    assert adjacency_degree(adj, "b") == 1
