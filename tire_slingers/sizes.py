"""
Tire size normalization and parsing.

A tire size is identified by three integers: section width (mm), aspect
ratio (%), and rim diameter (in). The engine keys every aggregate on a
normalized *size key*::

    (205, 55, 16)  ->  "205-55-16"   (size key)
                   ->  "205/55R16"   (display form)

Parsing is lenient: conversions that cannot make sense of their input hand
it back unchanged (``to_size_display``, ``normalize_size_key``) or return
``None`` (``parse_size_key``, ``from_size_display``) rather than raising, so
one malformed row never aborts a recommendation run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

SIZE_KEY_SEPARATOR = "-"

# "205/55R16", "205/55/R16", "205-55-16", "205 / 55 R 16", "P205/55R16",
# "LT245/75R16", "225/45ZR17" (P/LT service prefix, Z/H/V/W/Y speed letter)
_DISPLAY_PATTERN = re.compile(
    r"(?<![A-Z0-9])(?:P|LT)?(\d+)\s*[/\-\s]\s*(\d+)\s*"
    r"(?:[/\-\s]\s*[ZHVWY]?R?|[ZHVWY]?R)\s*(\d+)\b",
    re.IGNORECASE,
)

# Three-digit width, two-digit aspect, two-digit rim in free text.
_QUERY_PATTERN = re.compile(r"(\d{3})[/\-\s](\d{2})[/\-\s]?R?(\d{2})", re.IGNORECASE)

# Plausible passenger/light-truck ranges used when a query has loose numbers.
_WIDTH_RANGE = range(155, 316)
_ASPECT_RANGE = range(30, 86)
_RIM_RANGE = range(14, 25)

_QUANTITY_PATTERN = re.compile(r"(\d+)\s*(tire|tyre)", re.IGNORECASE)
_SET_PATTERN = re.compile(r"\bset\b")


@dataclass(frozen=True)
class SizeParts:
    """The three numeric components of a tire size."""

    width: int
    aspect_ratio: int
    rim_diameter: int

    @property
    def size_key(self) -> str:
        return to_size_key(self.width, self.aspect_ratio, self.rim_diameter)

    @property
    def display(self) -> str:
        return f"{self.width}/{self.aspect_ratio}R{self.rim_diameter}"


def to_size_key(width: int, aspect_ratio: int, rim_diameter: int) -> str:
    """Build a normalized size key, e.g. ``(205, 55, 16) -> "205-55-16"``."""
    return SIZE_KEY_SEPARATOR.join(str(part) for part in (width, aspect_ratio, rim_diameter))


def parse_size_key(size_key: str) -> Optional[SizeParts]:
    """Parse a size key back into its components, or ``None`` if malformed."""
    parts = size_key.split(SIZE_KEY_SEPARATOR)
    if len(parts) != 3:
        return None
    try:
        width, aspect, rim = (int(p) for p in parts)
    except ValueError:
        return None
    return SizeParts(width=width, aspect_ratio=aspect, rim_diameter=rim)


def to_size_display(size_key: str) -> str:
    """Convert a size key to display form; return the input if it is not a key."""
    parsed = parse_size_key(size_key)
    if parsed is None:
        return size_key
    return parsed.display


def from_size_display(display: str) -> Optional[str]:
    """Convert a display-form size (``"205/55R16"``) to a size key, or ``None``."""
    match = _DISPLAY_PATTERN.search(display)
    if match is None:
        return None
    return to_size_key(*(int(g) for g in match.groups()))


def normalize_size_key(raw: str) -> str:
    """Normalize any recognizable size string to key form.

    Strings that do not look like a tire size are returned unchanged.
    """
    return from_size_display(raw) or raw


def extract_size_from_query(query: str) -> Optional[SizeParts]:
    """Try to pull a tire size out of a free-text search query.

    Examples::

        "205/55R16"                 -> SizeParts(205, 55, 16)
        "I need 205 55 16 tires"    -> SizeParts(205, 55, 16)
        "looking for 18 inch tires" -> None

    The standard ``WWW/AARDD`` pattern is tried first. Otherwise the first run
    of three consecutive numbers that fall in plausible width/aspect/rim
    ranges wins.
    """
    match = _QUERY_PATTERN.search(query)
    if match:
        width, aspect, rim = (int(g) for g in match.groups())
        return SizeParts(width=width, aspect_ratio=aspect, rim_diameter=rim)

    numbers = [int(n) for n in re.findall(r"\d+", query)]
    for w, a, r in zip(numbers, numbers[1:], numbers[2:]):
        if w in _WIDTH_RANGE and a in _ASPECT_RANGE and r in _RIM_RANGE:
            return SizeParts(width=w, aspect_ratio=a, rim_diameter=r)

    return None


def extract_quantity_from_query(query: str) -> int:
    """Infer how many tires a search query asks for (default 1).

    ``"set of 4 tires"`` -> 4, ``"pair of 205/55R16"`` -> 2,
    ``"need 2 tires"`` -> 2, anything else -> 1.
    """
    lower = query.lower()

    if "set of 4" in lower or "set of four" in lower:
        return 4

    if "pair" in lower or "set of 2" in lower or "set of two" in lower:
        return 2

    if _SET_PATTERN.search(lower):
        return 4

    match = _QUANTITY_PATTERN.search(lower)
    if match:
        qty = int(match.group(1))
        if 1 <= qty <= 8:
            return qty

    return 1
