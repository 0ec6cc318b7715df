"""Coercion of JSON cell values into what the Sheets API should receive.

Each cell arrives as the raw JSON text of one value. Numbers are narrowed to
32-bit floats, strings are unwrapped, booleans and ``null`` map to their
Python equivalents, and objects/arrays are forwarded as their original JSON
text. A missing value (``None``) becomes the string ``"NULL"`` so the cell is
never dropped from the row.

Coercion never raises. Failures come back as a :class:`CoercionResult` with
``ok=False`` and a :class:`CoercionError` describing the input.
"""

from __future__ import annotations

import json
import logging
import math
import struct
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

INVALID_INPUT_KIND = "InvalidInputKind"
NULL_PLACEHOLDER = "NULL"


class CoercionError(BaseModel):
    """Why a value could not be coerced."""

    model_config = {"frozen": True}

    kind: str = INVALID_INPUT_KIND
    message: str


class CoercionResult(BaseModel):
    """Either a coerced value (``ok``) or an error, never both."""

    model_config = {"frozen": True}

    ok: bool
    value: Any = None
    error: CoercionError | None = None

    @classmethod
    def success(cls, value: Any) -> CoercionResult:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, message: str) -> CoercionResult:
        return cls(ok=False, error=CoercionError(message=message))


def _reject_constant(name: str) -> Any:
    raise ValueError(f"'{name}' is not a valid JSON value")


def to_float32(number: float) -> float:
    """Round ``number`` to the nearest IEEE 754 single-precision value."""
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except OverflowError:
        return math.copysign(math.inf, number)


def shortest_float32(number: float) -> float:
    """Return the double with the fewest significant digits that narrows to the same float32.

    >>> shortest_float32(to_float32(0.1))
    0.1
    """
    if not math.isfinite(number):
        return number
    single = to_float32(number)
    for digits in range(1, 10):
        candidate = float(f"{single:.{digits}g}")
        if to_float32(candidate) == single:
            return candidate
    return single


def coerce_value(raw: str | bytes | bytearray | None) -> CoercionResult:
    """Coerce the raw JSON text of a single value.

    >>> coerce_value('"abc"').value
    'abc'
    >>> coerce_value('[1,2,3]').value
    '[1,2,3]'
    >>> coerce_value(None).value
    'NULL'
    """
    if raw is None:
        return CoercionResult.success(NULL_PLACEHOLDER)
    if not isinstance(raw, (str, bytes, bytearray)):
        return CoercionResult.failure(
            f"Unsupported input of type '{type(raw).__name__}': expected raw JSON text."
        )

    try:
        text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
        parsed = json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:  # JSONDecodeError and UnicodeDecodeError are ValueErrors
        return CoercionResult.failure(f"Input is not a valid JSON value: {e}")

    if parsed is None:
        return CoercionResult.success(None)
    if isinstance(parsed, bool):
        return CoercionResult.success(parsed)
    if isinstance(parsed, (int, float)):
        # Parse the literal directly; there is no integer path.
        return CoercionResult.success(to_float32(float(text.strip())))
    if isinstance(parsed, str):
        return CoercionResult.success(parsed)
    if isinstance(parsed, (dict, list)):
        return CoercionResult.success(text.strip())

    return CoercionResult.failure(f"Unrecognized JSON value kind: {type(parsed).__name__}")


def raw_json(value: Any) -> str:
    """Serialize an already decoded request value back to compact JSON text."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def coerce_row(values):
    """Coerce every cell of a decoded row.

    Returns ``(row, errors)`` where ``errors`` holds one message per failed
    cell, prefixed with the cell's index. Numbers are given in their
    shortest single-precision decimal form so a request body carries ``0.1``
    rather than the widened ``0.10000000149011612``.
    """
    row, errors = [], []
    for index, value in enumerate(values):
        try:
            result = coerce_value(raw_json(value))
        except (TypeError, ValueError) as e:
            result = CoercionResult.failure(f"Value cannot be serialized as JSON: {e}")
        if result.ok:
            value = result.value
            if isinstance(value, float):
                value = shortest_float32(value)
            row.append(value)
        else:
            logger.debug(f"Coercion failed for cell {index}: {result.error.message}")
            errors.append(f"[{index}] {result.error.message}")
    return row, errors
