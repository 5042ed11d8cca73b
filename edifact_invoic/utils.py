"""Sanitizing, escaping, numeric and date helpers shared by the validator and generator."""

import datetime
import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict

from .config import EDIFACTConfig
from .errors import EDIFACTGenerationError

CONTROL_CHAR_REGEX = re.compile(r"[\x00-\x1F\x7F]")

DATE_FORMATS: Dict[str, str] = {
    "102": "%Y%m%d",
    "203": "%Y%m%d%H%M",
    "101": "%y%m%d",
}

MAX_DETAIL_LENGTH = 50


def truncate(value: Any, max_length: int = MAX_DETAIL_LENGTH) -> str:
    """Shorten a value for use in log lines and error details"""
    return str(value)[:max_length]


def sanitize_record(value: Any) -> Any:
    """Return a copy of value with control characters removed from every string.

    Mappings and lists are copied recursively; mapping keys are left as they are.
    """
    if isinstance(value, str):
        return CONTROL_CHAR_REGEX.sub("", value)
    if isinstance(value, Mapping):
        return {key: sanitize_record(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_record(item) for item in value]
    return value


def escape_value(value: Any, config: EDIFACTConfig) -> str:
    """Escape EDIFACT special characters in a single data value"""
    if value is None:
        return ""

    release = config.release_character
    reserved = config.reserved_characters
    result = []
    for char in str(value):
        if CONTROL_CHAR_REGEX.match(char):
            continue
        if char == release:
            result.append(release + release)
        elif char in reserved:
            result.append(release + char)
        else:
            result.append(char)
    return "".join(result)


def to_decimal(value: Any) -> Decimal:
    """Coerce a JSON-style number or numeric string to a finite Decimal.

    Raises InvalidOperation, TypeError or ValueError when the value is not numeric.
    """
    if isinstance(value, bool):
        raise TypeError("Boolean is not a numeric value")
    if isinstance(value, Decimal):
        number = value
    else:
        number = Decimal(str(value).strip())
    if not number.is_finite():
        raise InvalidOperation(f"Non-finite numeric value: {value}")
    return number


def quantize(value: Decimal, precision: int) -> Decimal:
    """Round half-up to the given number of decimal places"""
    return value.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)


def format_decimal(value: Any, precision: int = 2, decimal_notation: str = ".") -> str:
    """
    Format a numeric value for an EDIFACT data element.

    The value is rounded to ``precision`` places; a value carrying more precision
    than that (beyond a tolerance of one further place) is rejected rather than
    silently rounded. Trailing zeros and a bare decimal point are dropped, so
    25.50 becomes "25.5" and 10.00 becomes "10".
    """
    try:
        number = to_decimal(value)
        rounded = quantize(number, precision)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise EDIFACTGenerationError(
            f"Invalid numeric value: {truncate(value)}",
            "GEN_003",
            {"value": truncate(value), "error": str(e)}
        ) from e

    if abs(number - rounded) > Decimal(1).scaleb(-(precision + 1)):
        raise EDIFACTGenerationError(
            f"Decimal value {truncate(value)} exceeds configured precision of {precision}",
            "GEN_002",
            {"value": truncate(value), "precision": precision}
        )

    formatted = f"{rounded:.{precision}f}"
    if "." in formatted:
        formatted = formatted.rstrip("0").rstrip(".")
    if formatted == "-0":
        formatted = "0"
    return formatted.replace(".", decimal_notation)


def parse_date(date_str: str, format_code: str = "102") -> datetime.datetime:
    """
    Parse an EDIFACT date/time value under a format code (102, 203 or 101).

    The value must round-trip: formatting the parsed result has to reproduce the
    input exactly, which rejects impossible dates and loosely matching strings.
    Raises ValueError on failure and KeyError for an unknown format code.
    """
    pattern = DATE_FORMATS[format_code]
    if not isinstance(date_str, str):
        raise ValueError(f"Date value must be a string, got {type(date_str).__name__}")
    parsed = datetime.datetime.strptime(date_str, pattern)
    if parsed.strftime(pattern) != date_str:
        raise ValueError(f"Date {truncate(date_str)!r} does not match format {format_code}")
    return parsed


def chunk_text(text: str, size: int) -> list:
    """Split text into consecutive pieces of at most ``size`` characters"""
    return [text[i:i + size] for i in range(0, len(text), size)]
