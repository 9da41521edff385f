"""
Free-text guest list parser.

A raw entry such as ``"Thomas Hall and Lauren Allen & Kid1, Richard Young (+2)"``
is split on commas into guest units. Each unit is split on connectors into
individual names and given a headcount:

    "(3)" / "(4 people)"      explicit count, overrides everything else
    "(+2)"                    named people plus two
    "&2" / "+3"               a number after a connector adds that many seats
    "plus two" / "and three"  spelled numbers one to ten work the same way
    "family of five"          household size, overridden only by a parenthesized count
    "plus one" / "guest"      one extra seat unless already its own name

Problems never raise; they come back as ``ParseWarning`` rows.
"""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from .models import Guest, ParseWarning

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"^\d+$")
_PERCENT_SORT_RE = re.compile(r"%([^%]+)")


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ParserConfig:
    """Connector vocabulary and id source for ``parse_guest_units``."""

    connector_words: Tuple[str, ...] = ("and", "plus", "also")
    connector_symbols: str = "&+"
    count_nouns: Tuple[str, ...] = ("people", "persons", "guests", "seats")
    # position in the tuple is the value, "one" is 1
    number_words: Tuple[str, ...] = (
        "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten"
    )
    household_words: Tuple[str, ...] = ("family", "household")
    id_factory: Callable[[], str] = _new_id
    split_re: Pattern[str] = field(init=False, repr=False, compare=False)
    paren_count_re: Pattern[str] = field(init=False, repr=False, compare=False)
    display_connector_re: Pattern[str] = field(init=False, repr=False, compare=False)
    plus_one_re: Pattern[str] = field(init=False, repr=False, compare=False)
    guest_re: Pattern[str] = field(init=False, repr=False, compare=False)
    household_re: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        symbols = re.escape(self.connector_symbols)
        words = "|".join(re.escape(w) for w in self.connector_words)
        nouns = "|".join(re.escape(n) for n in self.count_nouns)
        # word connectors need whitespace on both sides so "Anderson" stays whole
        object.__setattr__(
            self, "split_re", re.compile(rf"\s*[{symbols}]\s*|\s+(?:{words})\s+", re.IGNORECASE)
        )
        object.__setattr__(
            self,
            "paren_count_re",
            re.compile(rf"\(\s*(\+)?\s*(\d+)\s*(?:{nouns})?\s*\)", re.IGNORECASE),
        )
        object.__setattr__(
            self, "display_connector_re", re.compile(r"\s*\+\s*|\s*&\s*|\s+and\s+", re.IGNORECASE)
        )
        object.__setattr__(self, "plus_one_re", re.compile(r"\bplus\s+one\b", re.IGNORECASE))
        object.__setattr__(self, "guest_re", re.compile(r"\bguest\b", re.IGNORECASE))
        households = "|".join(re.escape(w) for w in self.household_words)
        spelled = "|".join(re.escape(w) for w in self.number_words)
        object.__setattr__(
            self,
            "household_re",
            re.compile(rf"\b(?:{households})\s+of\s+(\d+|{spelled})\b", re.IGNORECASE),
        )

    def number_value(self, word: str) -> Optional[int]:
        """Value of a digit string or a spelled number word, else ``None``."""
        if _NUMBER_RE.match(word):
            return int(word)
        lowered = word.lower()
        if lowered in self.number_words:
            return self.number_words.index(lowered) + 1
        return None


DEFAULT_CONFIG = ParserConfig()


@dataclass
class ParseResult:
    units: List[Guest] = field(default_factory=list)
    warnings: List[ParseWarning] = field(default_factory=list)

    @property
    def total_seats(self) -> int:
        return sum(g.count for g in self.units)


@dataclass(frozen=True)
class _Unit:
    display_name: str
    names: Tuple[str, ...]
    count: int


# ----------------------------- text helpers -----------------------------
def sanitize(text: str) -> str:
    """Strip HTML tags and control characters and collapse whitespace."""
    text = _HTML_TAG_RE.sub(" ", str(text))
    text = _CONTROL_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_key(display_name: str) -> str:
    return _WHITESPACE_RE.sub(" ", display_name).strip().lower()


def sort_key(display_name: str) -> str:
    """Return the key used to order guests by surname.

    ``"Jane %Doe Smith"`` sorts under ``doe smith``; otherwise the last word wins.
    """
    cleaned = sanitize(display_name)
    if not cleaned:
        return ""
    marked = _PERCENT_SORT_RE.search(cleaned)
    if marked and marked.group(1).strip():
        return marked.group(1).strip().lower()
    return cleaned.split(" ")[-1].lower()


def _analyse(token: str, config: ParserConfig) -> Optional[_Unit]:
    """Split one sanitized token into names and count its seats."""
    paren = config.paren_count_re.search(token)
    base = token
    if paren:
        base = (token[: paren.start()] + " " + token[paren.end():]).strip()

    parts = [p.strip() for p in config.split_re.split(base)]
    sub_names = [p for p in parts if p]
    if not sub_names:
        return None

    count = len(sub_names)
    names: List[str] = []
    for index, part in enumerate(parts):
        if not part:
            continue
        value = config.number_value(part) if index > 0 else None
        if value is not None:
            count += value - 1
            continue
        names.append(part)
        lowered = part.lower()
        if lowered in ("plus one", "guest"):
            continue
        if config.plus_one_re.search(part):
            count += 1
        if config.guest_re.search(part):
            count += 1

    household = config.household_re.search(base)
    if household:
        count = config.number_value(household.group(1)) or count

    if paren and int(paren.group(2)) > 0:
        extra = int(paren.group(2))
        count = max(1, len(names)) + extra if paren.group(1) else extra

    display = config.display_connector_re.sub(" & ", base)
    display = _WHITESPACE_RE.sub(" ", display).strip()
    if paren:
        display = f"{display} {_WHITESPACE_RE.sub(' ', paren.group(0))}".strip()
    return _Unit(display_name=display, names=tuple(names), count=max(1, count))


def count_heads(text: str, config: ParserConfig = DEFAULT_CONFIG) -> int:
    """Seats needed by a single guest unit; ``0`` for blank text."""
    unit = _analyse(sanitize(text or ""), config)
    return unit.count if unit else 0


# ----------------------------- parser -----------------------------
def parse_guest_units(raw: Optional[str], config: ParserConfig = DEFAULT_CONFIG) -> ParseResult:
    """Parse comma separated guest entries into guest units.

    Duplicate units (same normalized key) are merged keeping the larger
    headcount. Blank units are skipped with a warning.
    """
    text = "" if raw is None else str(raw)
    if not text.strip():
        return ParseResult()

    by_key: Dict[str, Guest] = {}
    warnings: List[ParseWarning] = []
    for row, original in enumerate(text.split(","), start=1):
        unit = _analyse(sanitize(original), config)
        if unit is None:
            warnings.append(ParseWarning(row, original, "Guest unit is empty or invalid after cleaning."))
            continue

        key = normalize_key(unit.display_name)
        existing = by_key.get(key)
        if existing is not None:
            warnings.append(
                ParseWarning(row, original, f'Merged duplicate guest entry for "{unit.display_name}".')
            )
            by_key[key] = replace(existing, count=max(existing.count, unit.count))
            continue

        by_key[key] = Guest(
            id=config.id_factory(),
            name=unit.display_name,
            count=unit.count,
            normalized_key=key,
            individual_names=unit.names,
            sort_key=sort_key(unit.display_name),
        )

    units = list(by_key.values())
    logger.debug("Parsed %d guest units (%d seats), %d warnings",
                 len(units), sum(g.count for g in units), len(warnings))
    return ParseResult(units=units, warnings=warnings)
