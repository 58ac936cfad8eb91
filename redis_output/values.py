"""Coerce dynamically-typed metric field values into float samples."""

from __future__ import annotations

import math
from enum import Enum
from typing import Tuple


class FieldKind(str, Enum):
    SIGNED_INT = "signed_int"
    UNSIGNED_INT = "unsigned_int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    NULL = "null"
    OTHER = "other"


def classify_value(value: object) -> FieldKind:
    # bool is a subclass of int and must be matched first.
    if isinstance(value, bool):
        return FieldKind.BOOL
    if isinstance(value, int):
        return FieldKind.UNSIGNED_INT if value >= 0 else FieldKind.SIGNED_INT
    if isinstance(value, float):
        return FieldKind.FLOAT
    if isinstance(value, (str, bytes)):
        return FieldKind.STRING
    if value is None:
        return FieldKind.NULL
    return FieldKind.OTHER


def coerce_value(value: object) -> Tuple[bool, float]:
    """Return ``(emit, value)``; ``emit`` is False for anything that is not a finite number.

    Integers of either sign are converted to float (lossy above 2**53).
    """

    kind = classify_value(value)
    if kind in (FieldKind.UNSIGNED_INT, FieldKind.SIGNED_INT):
        try:
            return True, float(value)  # type: ignore[arg-type]
        except OverflowError:
            return False, 0.0
    if kind == FieldKind.FLOAT:
        # RESP and JSON payloads cannot carry NaN or Inf.
        return math.isfinite(value), float(value)  # type: ignore[arg-type]
    return False, 0.0
