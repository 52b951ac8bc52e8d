"""Named weather condition buckets over Open-Meteo WMO weather codes."""

from __future__ import annotations

from typing import Iterable, Optional


CONDITION_CODES: dict[str, frozenset[int]] = {
    "clear": frozenset({0}),
    "cloudy": frozenset({1, 2, 3}),
    "drizzle": frozenset({51, 52, 53, 54, 55, 56, 57}),
    "rainy": frozenset({61, 62, 63, 64, 65, 66, 67, 80, 81, 82}),
    "snow": frozenset({71, 72, 73, 74, 75, 77, 85, 86}),
}

CONDITION_NAMES = tuple(CONDITION_CODES)


def is_known_condition(name: str) -> bool:
    return (name or "").strip().lower() in CONDITION_CODES


def expand_conditions(names: Iterable[str]) -> frozenset[int]:
    codes: set[int] = set()
    for name in names:
        codes.update(CONDITION_CODES.get((name or "").strip().lower(), ()))
    return frozenset(codes)


def describe_code(code: int) -> Optional[str]:
    for name, codes in CONDITION_CODES.items():
        if code in codes:
            return name
    return None
