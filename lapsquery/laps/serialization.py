# LAPS JSON Serialization
#
# Generic JSON round-trip for dataclass records. Each field is written under
# the property name in its "json" metadata entry (the field name otherwise);
# datetimes go through encode_datetime/decode_datetime so both directions
# use the same ISO 8601 text.
import dataclasses
import json
import typing
from datetime import datetime
from typing import Any, Dict, Optional, Type, TypeVar

from ..utils.date_parser import format_iso_date, parse_iso_date
from .exceptions import LAPSParseError

T = TypeVar("T")

_NONE_TYPE = type(None)


# =============================================================================
# Date-time Converter
# =============================================================================


def encode_datetime(value: datetime) -> str:
    """Encode a datetime as ISO 8601 with an explicit UTC offset."""
    return format_iso_date(value)


def decode_datetime(value: Any) -> datetime:
    """
    Decode the text written by encode_datetime.

    Raises:
        LAPSParseError: If value is not an ISO 8601 string
    """
    try:
        return parse_iso_date(value)
    except (ValueError, TypeError) as e:
        raise LAPSParseError(f"Invalid date-time value {value!r}: {e}") from e


# =============================================================================
# Record <-> dict
# =============================================================================


def _json_name(f: dataclasses.Field) -> str:
    return f.metadata.get("json", f.name)


def _is_required(f: dataclasses.Field) -> bool:
    return f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING


def _unwrap_optional(hint: Any) -> typing.Tuple[Any, bool]:
    """Return (inner type, allows None) for Optional[X] hints."""
    if typing.get_origin(hint) is typing.Union:
        args = [a for a in typing.get_args(hint) if a is not _NONE_TYPE]
        if len(args) == 1 and len(typing.get_args(hint)) == 2:
            return args[0], True
    return hint, False


def _decode_value(hint: Any, value: Any, key: str) -> Any:
    inner, nullable = _unwrap_optional(hint)

    if value is None:
        if nullable:
            return None
        raise LAPSParseError(f"Property '{key}' cannot be null")

    if inner is datetime:
        return decode_datetime(value)

    if inner in (str, int, float, bool):
        # bool is an int subclass; keep the two apart
        if isinstance(value, bool) and inner is not bool:
            raise LAPSParseError(f"Property '{key}' must be {inner.__name__}, got bool")
        if not isinstance(value, inner):
            raise LAPSParseError(f"Property '{key}' must be {inner.__name__}, got {type(value).__name__}")

    return value


def to_dict(record: Any) -> Dict[str, Any]:
    """Convert a dataclass record to a JSON-ready dict."""
    data = {}
    for f in dataclasses.fields(record):
        value = getattr(record, f.name)
        if isinstance(value, datetime):
            value = encode_datetime(value)
        data[_json_name(f)] = value
    return data


def from_dict(record_type: Type[T], data: Any) -> T:
    """
    Build a dataclass record from a decoded JSON object.

    Properties are matched by their JSON names (case-sensitive). Unknown
    properties are ignored. Missing properties fall back to the field
    default; a missing required property is an error.

    Raises:
        LAPSParseError: If data is not an object, a required property is
            missing or a property has the wrong type
    """
    if not isinstance(data, dict):
        raise LAPSParseError(f"Expected a JSON object for {record_type.__name__}, got {type(data).__name__}")

    hints = typing.get_type_hints(record_type)
    kwargs = {}
    for f in dataclasses.fields(record_type):
        key = _json_name(f)
        if key not in data:
            if _is_required(f):
                raise LAPSParseError(f"Missing required property '{key}'")
            continue
        kwargs[f.name] = _decode_value(hints[f.name], data[key], key)

    return record_type(**kwargs)


# =============================================================================
# JSON Round Trip
# =============================================================================


def to_json(record: Any, indent: Optional[int] = None) -> str:
    """Serialize a dataclass record to a JSON document."""
    return json.dumps(to_dict(record), indent=indent)


def from_json(record_type: Type[T], json_string: str) -> T:
    """
    Deserialize a JSON document into record_type.

    Raises:
        json.JSONDecodeError: If the document is not valid JSON
        LAPSParseError: If the document does not match the record shape
    """
    return from_dict(record_type, json.loads(json_string))
