"""Type coercion rules shared by the typed getters and weakly typed unmarshalling.

Each ``to_*`` function either returns the converted value or raises
:class:`~treeconf.exceptions.CoercionError`.
"""

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, TypeVar

from .exceptions import CoercionError

T = TypeVar("T")

# Zero value returned by the lenient time getter
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}

# Microseconds per duration unit
DURATION_UNITS = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1_000.0,
    "s": 1_000_000.0,
    "m": 60_000_000.0,
    "h": 3_600_000_000.0,
}

_NUMBER = r"(?:\d+(?:\.\d*)?|\.\d+)"
_DURATION_PART = re.compile(rf"({_NUMBER})(ns|us|µs|μs|ms|s|m|h)")
_DURATION = re.compile(rf"(?:{_NUMBER}(?:ns|us|µs|μs|ms|s|m|h))+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_int(value: Any) -> int:
    """Convert a value to ``int``.

    Floats are truncated toward zero. Strings are parsed as base-10 integers,
    falling back to a float parse that is then truncated.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CoercionError(value, "int")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text, 10)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise CoercionError(value, "int") from None
        if not math.isfinite(number):
            raise CoercionError(value, "int")
        return int(number)
    raise CoercionError(value, "int")


def to_float(value: Any) -> float:
    """Convert a value to ``float``."""
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise CoercionError(value, "float") from None
    raise CoercionError(value, "float")


def to_bool(value: Any) -> bool:
    """Convert a value to ``bool``.

    Strings must use the ``1/t/true`` or ``0/f/false`` vocabulary; numbers are
    true when non-zero.
    """
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0
    if isinstance(value, str):
        text = value.strip()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise CoercionError(value, "bool")


def to_str(value: Any) -> str:
    """Convert a scalar value to ``str``. Containers and ``None`` are refused."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            raise CoercionError(value, "str") from None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise CoercionError(value, "str")


def to_bytes(value: Any) -> bytes:
    """Convert a value to ``bytes``. Strings are UTF-8 encoded."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise CoercionError(value, "bytes")


def parse_duration(text: str) -> timedelta:
    """Parse a duration string such as ``"1h30m"``, ``"250ms"`` or ``"-1.5h"``.

    A bare number is read as seconds.

    Args:
        text: Duration string

    Returns:
        Parsed duration

    Raises:
        CoercionError: If the string does not follow the duration grammar
    """
    body = text.strip()
    sign = 1
    if body[:1] in ("-", "+"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]

    if not body:
        raise CoercionError(text, "timedelta")

    if _DURATION.fullmatch(body):
        micros = sum(float(number) * DURATION_UNITS[unit] for number, unit in _DURATION_PART.findall(body))
        return timedelta(microseconds=sign * micros)

    try:
        seconds = float(body)
    except ValueError:
        raise CoercionError(text, "timedelta") from None
    if not math.isfinite(seconds):
        raise CoercionError(text, "timedelta")
    return timedelta(seconds=sign * seconds)


def to_duration(value: Any) -> timedelta:
    """Convert a value to ``timedelta``. Numbers are seconds."""
    if isinstance(value, timedelta):
        return value
    if _is_number(value):
        if not math.isfinite(value):
            raise CoercionError(value, "timedelta")
        try:
            return timedelta(seconds=value)
        except OverflowError:
            raise CoercionError(value, "timedelta") from None
    if isinstance(value, str):
        try:
            return parse_duration(value)
        except OverflowError:
            raise CoercionError(value, "timedelta") from None
    raise CoercionError(value, "timedelta")


def to_time(value: Any, layout: str = "") -> datetime:
    """Convert a value to ``datetime``.

    Args:
        value: Stored value  # (datetime, date, epoch seconds or string)
        layout: ``strptime`` format for strings; ISO-8601 when empty

    Returns:
        Converted datetime  # (epoch seconds become timezone-aware UTC datetimes)
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if _is_number(value):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise CoercionError(value, "datetime") from None
    if isinstance(value, str):
        try:
            if layout:
                return datetime.strptime(value.strip(), layout)
            return datetime.fromisoformat(value.strip())
        except ValueError:
            raise CoercionError(value, "datetime") from None
    raise CoercionError(value, "datetime")


def to_list(value: Any, convert: Callable[[Any], T]) -> List[T]:
    """Convert every element of a list, silently dropping elements that fail.

    Args:
        value: Stored value  # (anything other than a list yields an empty list)
        convert: Element conversion function

    Returns:
        List of converted elements
    """
    if not isinstance(value, (list, tuple)):
        return []

    result = []
    for item in value:
        try:
            result.append(convert(item))
        except CoercionError:
            continue
    return result


def to_map(value: Any, convert: Callable[[Any], T]) -> Dict[str, T]:
    """Convert every value of a map, silently dropping entries that fail."""
    if not isinstance(value, dict):
        return {}

    result = {}
    for key, item in value.items():
        try:
            result[key] = convert(item)
        except CoercionError:
            continue
    return result
