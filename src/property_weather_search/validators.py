from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

from .conditions import expand_conditions, is_known_condition
from .errors import InvalidCondition, InvalidRange
from .models import FilterSpec


TEMP_MIN = -20.0
TEMP_MAX = 50.0
HUMIDITY_MIN = 0.0
HUMIDITY_MAX = 100.0


@dataclass(frozen=True)
class Range:
    min: float
    max: float


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    parsed: Any = None


def _present(raw: Optional[str]) -> bool:
    # Empty strings are treated as absent, like an unset query parameter.
    return raw is not None and str(raw).strip() != ""


def _to_number(raw: str) -> Optional[float]:
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def _validate_range(
    min_raw: Optional[str],
    max_raw: Optional[str],
    *,
    lower: float,
    upper: float,
    label: str,
    unit: str,
) -> ValidationResult:
    if not _present(min_raw) and not _present(max_raw):
        return ValidationResult(valid=True)

    low = _to_number(min_raw) if _present(min_raw) else lower
    high = _to_number(max_raw) if _present(max_raw) else upper

    if low is None or high is None:
        return ValidationResult(valid=False, error=f"{label} must be a number")
    if low < lower or high > upper:
        return ValidationResult(
            valid=False,
            error=f"{label} must be between {lower:g}{unit} and {upper:g}{unit}",
        )
    if low > high:
        return ValidationResult(
            valid=False, error=f"Min {label.lower()} cannot exceed max"
        )
    return ValidationResult(valid=True, parsed=Range(min=low, max=high))


def validate_temp_range(
    min_raw: Optional[str] = None, max_raw: Optional[str] = None
) -> ValidationResult:
    return _validate_range(
        min_raw, max_raw, lower=TEMP_MIN, upper=TEMP_MAX, label="Temperature", unit="°C"
    )


def validate_humidity_range(
    min_raw: Optional[str] = None, max_raw: Optional[str] = None
) -> ValidationResult:
    return _validate_range(
        min_raw,
        max_raw,
        lower=HUMIDITY_MIN,
        upper=HUMIDITY_MAX,
        label="Humidity",
        unit="%",
    )


def validate_conditions(
    raw: Union[str, Iterable[str], None] = None,
) -> ValidationResult:
    """Check condition names case-insensitively; parsed keeps the caller's spelling."""

    if raw is None or raw == "":
        return ValidationResult(valid=True)
    names = [raw] if isinstance(raw, str) else [str(c) for c in raw]
    if not names:
        return ValidationResult(valid=True)

    invalid = [name for name in names if not is_known_condition(name)]
    if invalid:
        return ValidationResult(
            valid=False, error=f"Invalid conditions: {', '.join(invalid)}"
        )
    return ValidationResult(valid=True, parsed=names)


def build_filter_spec(
    *,
    temp_min: Optional[str] = None,
    temp_max: Optional[str] = None,
    humidity_min: Optional[str] = None,
    humidity_max: Optional[str] = None,
    conditions: Union[str, Iterable[str], None] = None,
) -> FilterSpec:
    """Validate raw filter inputs, raising on the first failure."""

    temp = validate_temp_range(temp_min, temp_max)
    if not temp.valid:
        raise InvalidRange(temp.error)
    humidity = validate_humidity_range(humidity_min, humidity_max)
    if not humidity.valid:
        raise InvalidRange(humidity.error)
    cond = validate_conditions(conditions)
    if not cond.valid:
        names = [conditions] if isinstance(conditions, str) else list(conditions or [])
        raise InvalidCondition(
            cond.error, invalid=[n for n in names if not is_known_condition(n)]
        )

    return FilterSpec(
        temp_min=temp.parsed.min if temp.parsed else None,
        temp_max=temp.parsed.max if temp.parsed else None,
        humidity_min=humidity.parsed.min if humidity.parsed else None,
        humidity_max=humidity.parsed.max if humidity.parsed else None,
        conditions=expand_conditions(cond.parsed) if cond.parsed else None,
    )


__all__ = [
    "Range",
    "ValidationResult",
    "build_filter_spec",
    "validate_conditions",
    "validate_humidity_range",
    "validate_temp_range",
]
