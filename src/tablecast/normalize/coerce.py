"""Total value coercion — untrusted cell values → strict types.

Every function here accepts any object and never raises. The extraction
model's output is untrusted; after this layer the rest of the pipeline deals
only in ``float``/``int``/``bool``/``str``.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Union

Value = Union[float, int, bool, str, None]

_TRUE_TOKENS: frozenset[str] = frozenset({"yes", "true", "1"})

# Everything that is not a digit, sign or decimal point.
_NON_NUMERIC_RE = re.compile(r"[^0-9+\-.]")
# Leading numeric prefix, as JavaScript's parseFloat() reads it.
_NUMERIC_PREFIX_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_float_prefix(text: str) -> float | None:
    """Parse the longest leading number in *text* (after leading whitespace).

    Returns None when *text* does not start with a number or the result is
    not finite. ``"12abc"`` → 12.0, ``"1.2.3"`` → 1.2, ``"abc"`` → None.
    """
    match = _NUMERIC_PREFIX_RE.match(text.lstrip())
    if not match:
        return None
    try:
        value = float(match.group(0))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def to_number(raw: Any) -> float:
    """Coerce *raw* to a finite float, defaulting to 0.0.

    Strings that are already a float literal (``"1.5e3"``) parse directly;
    otherwise currency symbols, thousands separators and other noise are
    stripped before parsing (``"₹1,200"`` → 1200.0).
    """
    if isinstance(raw, bool):
        return 1.0 if raw else 0.0
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return 0.0
        return value if math.isfinite(value) else 0.0
    if not isinstance(raw, str):
        return 0.0

    text = raw.strip()
    try:
        value = float(text)
        if math.isfinite(value):
            return value
    except ValueError:
        pass

    value = parse_float_prefix(_NON_NUMERIC_RE.sub("", text))
    return 0.0 if value is None else value


def to_integer(raw: Any) -> int:
    """Coerce *raw* to an int by truncating ``to_number(raw)``."""
    return int(to_number(raw))


def to_boolean(raw: Any) -> bool:
    """Closed decision table: bool passes, 1 is true, yes/true/1 strings are true."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw == 1
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUE_TOKENS
    return False


def to_text(raw: Any, fallback: str = "N/A") -> str:
    """Render *raw* as text; *fallback* when it is absent or blank."""
    if raw is None:
        return fallback
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, float):
        if not math.isfinite(raw):
            return fallback
        return str(int(raw)) if raw.is_integer() else repr(raw)
    if isinstance(raw, (dict, list, tuple)):
        if not raw:
            return fallback
        return _dump_json(raw)
    try:
        text = str(raw)
    except Exception:
        return fallback
    return text if text.strip() else fallback


def to_value(raw: Any) -> Value:
    """Sanitize an arbitrary decoded JSON value into the Value union."""
    if raw is None or isinstance(raw, (bool, int, str)):
        return raw
    if isinstance(raw, float):
        return raw if math.isfinite(raw) else None
    if isinstance(raw, (dict, list, tuple)):
        return _dump_json(raw) if raw else None
    return to_text(raw, fallback="") or None


def is_empty(value: Any) -> bool:
    """True for None, the empty string, and whitespace-only strings."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _dump_json(obj: Any) -> str:
    try:
        return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError, RecursionError):
        return repr(type(obj))
