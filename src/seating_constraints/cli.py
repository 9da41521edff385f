"""Command line interface for seating-constraints."""
from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import Sequence

from .conflicts import summarize_conflicts
from .csv_loader import SnapshotLoadError, load_snapshot
from .signature import compute_plan_signature
from .validator import detect_conflicts

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check guest constraints against tables before seating")
    parser.add_argument("--guests", required=True, help="Path to guests.csv (name[,id])")
    parser.add_argument("--tables", required=True, help="Path to tables.csv (id,capacity[,name])")
    parser.add_argument("--constraints", help="Path to constraints.csv (guest1,guest2,constraint)")
    parser.add_argument("--adjacents", help="Path to adjacents.csv (guest1,guest2)")
    parser.add_argument("--assignments", help="Path to assignments.csv (guest,tables)")
    parser.add_argument("--out-conflicts", type=Path,
                        help="Write conflicts CSV: type,severity,guests,description.")
    parser.add_argument("--verbose", action="store_true", help="Log debug details.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``python -m seating_constraints.cli``.

    Returns 0 when no conflicts are found, 1 when there are conflicts and 2
    when the input files cannot be loaded.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        loaded = load_snapshot(
            args.guests,
            args.tables,
            constraints_path=args.constraints,
            adjacents_path=args.adjacents,
            assignments_path=args.assignments,
        )
    except SnapshotLoadError as e:
        print(f"Error: {e}")
        return 2

    snapshot = loaded.snapshot
    for warning in loaded.warnings:
        print(f"[WARNING] {warning}")

    conflicts = detect_conflicts(snapshot)
    names = {g.id: g.name for g in snapshot.guests}
    for c in conflicts:
        print(f"[CONFLICT] {c.type} ({c.severity}): {c.description}")

    seats = sum(g.count for g in snapshot.guests)
    capacity = sum(t.capacity for t in snapshot.tables)
    print(f"[REPORT] units={len(snapshot.guests)} seats={seats} capacity={capacity} "
          f"conflicts={len(conflicts)}")
    for kind, n in summarize_conflicts(conflicts).items():
        print(f"[REPORT] {kind}={n}")
    print(f"[SIGNATURE] {compute_plan_signature(snapshot)}")

    if args.out_conflicts:
        args.out_conflicts.parent.mkdir(parents=True, exist_ok=True)
        with args.out_conflicts.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["type", "severity", "guests", "description"])
            for c in conflicts:
                w.writerow([c.type, c.severity, "|".join(names.get(g, g) for g in c.affected_guests),
                            c.description])
        logger.debug("Wrote %d conflicts to %s", len(conflicts), args.out_conflicts)

    return 1 if conflicts else 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
