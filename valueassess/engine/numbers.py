"""Numeric coercion helpers for LLM-produced monetary figures."""

from __future__ import annotations

import math
import re
from typing import Any, Optional

_MULTIPLIERS = {
    "trillion": 1_000_000_000_000,
    "billion": 1_000_000_000,
    "million": 1_000_000,
    "thousand": 1_000,
    "k": 1_000,
    "m": 1_000_000,
    "bn": 1_000_000_000,
}

_GARBAGE = ("n/a", "na", "not available", "none", "null", "unknown", "-", "")


def coerce_number(value: Any) -> Optional[float]:
    """Best-effort conversion of an LLM value into a finite float.

    Handles:
      - 1140, 1140.5 -> float
      - "$1,140" -> 1140.0
      - "$2.5k", "1.2 million" -> 2500.0, 1_200_000.0
      - True/False, NaN, inf, "N/A" -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.lower() in _GARBAGE:
        return None

    scaled = re.search(
        r"(-?\$?\s*\d[\d,]*\.?\d*)\s*(trillion|billion|million|thousand|bn|k|m)\b",
        text,
        re.IGNORECASE,
    )
    if scaled:
        base = _to_float(scaled.group(1))
        if base is not None:
            return base * _MULTIPLIERS[scaled.group(2).lower()]

    plain = re.search(r"-?\$?\s*\d[\d,]*\.?\d*", text)
    if plain:
        return _to_float(plain.group(0))

    return None


def _to_float(raw: str) -> Optional[float]:
    cleaned = raw.replace("$", "").replace(",", "").replace(" ", "")
    try:
        number = float(cleaned)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def non_negative(value: Optional[float]) -> float:
    """Floor a possibly-missing monetary value at zero."""
    if value is None or not math.isfinite(value):
        return 0.0
    return max(0.0, value)


def money(value: Optional[float]) -> int:
    """Round a monetary value to whole currency units, never negative."""
    return round_half_up(non_negative(value))


def format_currency(value: Optional[float]) -> str:
    return f"${money(value):,}"
