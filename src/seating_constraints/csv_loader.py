"""CSV loading utilities."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from .assignments import migrate_legacy_keys, normalize_assignments
from .guest_parser import DEFAULT_CONFIG, ParserConfig, parse_guest_units
from .models import CANNOT, MUST, Guest, SeatingSnapshot, Table

Source = Union[Path, str, IO[Any]]


class SnapshotLoadError(ValueError):
    """A CSV file is missing, unreadable or lacks required columns."""


@dataclass
class LoadResult:
    snapshot: SeatingSnapshot
    warnings: List[str] = field(default_factory=list)


def cell_text(value: object) -> str:
    """Text of a CSV cell; ``None`` and pandas ``nan`` become ``""``."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    text = str(value).strip()
    return "" if text.lower() == "nan" else text


def _read(path: Source, required: Sequence[str], label: str) -> pd.DataFrame:
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise SnapshotLoadError(f"failed to read {label}: {e}") from e
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise SnapshotLoadError(f"{label} is missing columns: {', '.join(missing)}")
    return df


def load_guests(path: Source, config: ParserConfig = DEFAULT_CONFIG) -> LoadResult:
    """Load ``guests.csv``; each ``name`` cell is parsed as free guest text.

    An ``id`` column, when present, names the unit parsed from that row.
    """
    df = _read(path, ["name"], "guests.csv")
    by_key: Dict[str, Guest] = {}
    warnings: List[str] = []
    for index, row in df.iterrows():
        row_no = int(index) + 2  # header is line 1
        result = parse_guest_units(cell_text(row.get("name")), config)
        for w in result.warnings:
            warnings.append(f"guests.csv line {row_no}: {w.message}")
        if not result.units:
            warnings.append(f"guests.csv line {row_no}: no guest name")
            continue
        row_id = cell_text(row.get("id", ""))
        for unit in result.units:
            if row_id and len(result.units) == 1:
                unit.id = row_id
            existing = by_key.get(unit.normalized_key)
            if existing is not None:
                warnings.append(f'guests.csv line {row_no}: Merged duplicate guest entry for "{unit.name}".')
                existing.count = max(existing.count, unit.count)
                continue
            by_key[unit.normalized_key] = unit
    return LoadResult(snapshot=SeatingSnapshot(guests=tuple(by_key.values())), warnings=warnings)


def load_tables(path: Source) -> List[Table]:
    """Load table definitions; a missing ``id`` falls back to the row number."""
    df = _read(path, ["capacity"], "tables.csv")
    tables: List[Table] = []
    for index, row in df.iterrows():
        try:
            table_id = int(cell_text(row.get("id", "")) or int(index) + 1)
            capacity = int(cell_text(row["capacity"]))
        except ValueError as e:
            raise SnapshotLoadError(f"tables.csv line {int(index) + 2}: {e}") from e
        if table_id <= 0 or capacity <= 0:
            raise SnapshotLoadError(f"tables.csv line {int(index) + 2}: id and capacity must be positive")
        if any(t.id == table_id for t in tables):
            raise SnapshotLoadError(f"tables.csv line {int(index) + 2}: duplicate table id {table_id}")
        tables.append(Table(id=table_id, capacity=capacity, name=cell_text(row.get("name", "")) or None))
    return tables


def load_pairs(path: Source, label: str, with_value: bool) -> pd.DataFrame:
    required = ["guest1", "guest2"] + (["constraint"] if with_value else [])
    return _read(path, required, label)


def load_snapshot(
    guests_path: Source,
    tables_path: Source,
    constraints_path: Optional[Source] = None,
    adjacents_path: Optional[Source] = None,
    assignments_path: Optional[Source] = None,
    config: ParserConfig = DEFAULT_CONFIG,
) -> LoadResult:
    """Convenience wrapper returning a full snapshot plus every load warning."""
    loaded = load_guests(guests_path, config)
    guests = list(loaded.snapshot.guests)
    warnings = list(loaded.warnings)
    tables = load_tables(tables_path)

    raw_constraints: Dict[str, Dict[str, str]] = {}
    if constraints_path is not None:
        for _, row in load_pairs(constraints_path, "constraints.csv", True).iterrows():
            value = cell_text(row["constraint"]).lower()
            if value not in (MUST, CANNOT):
                warnings.append(f"constraints.csv: unknown constraint {value!r} ignored")
                continue
            raw_constraints.setdefault(cell_text(row["guest1"]), {})[cell_text(row["guest2"])] = value

    raw_adjacents: Dict[str, List[str]] = {}
    if adjacents_path is not None:
        for _, row in load_pairs(adjacents_path, "adjacents.csv", False).iterrows():
            raw_adjacents.setdefault(cell_text(row["guest1"]), []).append(cell_text(row["guest2"]))

    migration = migrate_legacy_keys(raw_constraints, raw_adjacents, guests)
    warnings.extend(migration.warnings)

    assignments: Dict[str, tuple] = {}
    if assignments_path is not None:
        df = _read(assignments_path, ["guest", "tables"], "assignments.csv")
        raw: Dict[str, str] = {}
        for _, r in df.iterrows():
            key = cell_text(r["guest"])
            raw[key] = ",".join(filter(None, [raw.get(key, ""), cell_text(r["tables"])]))
        assignments, assignment_warnings = normalize_assignments(raw, guests, tables)
        warnings.extend(assignment_warnings)

    snapshot = SeatingSnapshot(
        guests=tuple(guests),
        tables=tuple(tables),
        constraints=migration.constraints,
        adjacents=migration.adjacents,
        assignments=assignments,
    )
    return LoadResult(snapshot=snapshot, warnings=warnings)
