"""Byte quantity parsing and formatting."""

from __future__ import annotations

import re

# "15 MB", "1.5KiB", "0 B", "512kb"
QUANTITY_PATTERN = re.compile(r"^\s*(\d+)(?:\.(\d+))?\s*([KMGT]?)(i?)B\s*$", re.IGNORECASE)

MULTIPLIERS = {
    "": 1,
    "K": 1024,
    "M": 1024 ** 2,
    "G": 1024 ** 3,
    "T": 1024 ** 4,
}

# Longer digit runs are corrupt output, not real counters (10^18 bytes is an exabyte)
MAX_DIGITS = 18
# Fraction digits kept; more cannot move a TiB quantity by a whole byte
MAX_FRACTION_DIGITS = 15


def parse_count(text: str) -> int:
    """Parse a non-negative decimal counter; ValueError if malformed or oversized."""
    digits = text.strip()
    if not digits.isdigit() or len(digits) > MAX_DIGITS:
        raise ValueError(f"not a counter: {text[:40]!r}")
    return int(digits)


def parse_bytes(text: str) -> int:
    """Convert a quantity like '2 MB' to a raw byte count (1024-based).

    Integer arithmetic only, fractions rounded half up. Anything
    unparsable or oversized yields 0.
    """
    if not text:
        return 0
    m = QUANTITY_PATTERN.match(text)
    if not m:
        return 0
    whole, fraction, prefix, _iec = m.groups()
    if len(whole) > MAX_DIGITS:
        return 0
    multiplier = MULTIPLIERS[prefix.upper()]
    count = int(whole) * multiplier
    if fraction:
        fraction = fraction[:MAX_FRACTION_DIGITS]
        scale = 10 ** len(fraction)
        count += (int(fraction) * multiplier * 2 + scale) // (2 * scale)
    return count


def format_bytes(count: int) -> str:
    """Render a byte count with IEC units, e.g. 15728640 -> '15.0 MiB'."""
    value = float(count)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(value) < 1024:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"
