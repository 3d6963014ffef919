from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Optional

import isodate

from ..errors import (
    AttributeSyntaxError,
    InvalidBooleanError,
    InvalidDateTimeError,
    InvalidNumberError,
    MissingFieldError,
)
from ..playlist import ByteRange, Resolution

_REQUIRED: Any = object()
_INTEGER = re.compile(r"[0-9]+")
MAX_INTEGER = 2**64 - 1


def parse_attributes(fragment: str, tag: Optional[str] = None) -> dict[str, str]:
    """Split a ``KEY=VALUE,KEY=VALUE`` fragment into a dict.

    Commas inside double quotes belong to the value. A token without ``=``
    is glued onto the previous attribute's value, which recovers unquoted
    lists such as ``CODECS=avc1.42e00a,mp4a.40.2``.
    """
    attrs: dict[str, str] = {}
    last_key: Optional[str] = None

    for token in _split_tokens(fragment):
        if not token.strip():
            continue

        if "=" not in token:
            if last_key is None:
                raise AttributeSyntaxError(
                    f"{tag or 'attribute list'}: expected KEY=VALUE, got {token!r}",
                    tag=tag,
                )
            attrs[last_key] = f"{attrs[last_key]},{_unquote(token.strip())}"
            continue

        name, value = token.split("=", 1)
        name = name.strip()
        if not name:
            raise AttributeSyntaxError(
                f"{tag or 'attribute list'}: empty attribute name in {token!r}",
                tag=tag,
            )
        attrs[name] = _unquote(value.strip())
        last_key = name

    return attrs


def _split_tokens(fragment: str) -> list[str]:
    tokens = []
    current: list[str] = []
    quoted = False

    for ch in fragment:
        if ch == '"':
            quoted = not quoted
        elif ch == "," and not quoted:
            tokens.append("".join(current))
            current = []
            continue
        current.append(ch)

    tokens.append("".join(current))
    return tokens


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def _lookup(attrs: dict[str, str], key: str, tag: str, default: Any):
    if key in attrs:
        return True, attrs[key]
    if default is _REQUIRED:
        raise MissingFieldError(tag, key)
    return False, default


def extract_str(attrs: dict[str, str], key: str, tag: str, default: Any = _REQUIRED):
    _, value = _lookup(attrs, key, tag, default)
    return value


def extract_float(attrs: dict[str, str], key: str, tag: str, default: Any = _REQUIRED):
    found, raw = _lookup(attrs, key, tag, default)
    if not found:
        return raw
    return to_float(raw, tag, key)


def extract_int(attrs: dict[str, str], key: str, tag: str, default: Any = _REQUIRED):
    found, raw = _lookup(attrs, key, tag, default)
    if not found:
        return raw
    return to_int(raw, tag, key)


def extract_bool(attrs: dict[str, str], key: str, tag: str, default: Any = _REQUIRED):
    found, raw = _lookup(attrs, key, tag, default)
    if not found:
        return raw
    return to_bool(raw, tag, key)


def to_float(raw: str, tag: str, key: Optional[str] = None) -> float:
    try:
        value = float(raw)
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        raise InvalidNumberError(
            f"{tag}: {key or 'value'} is not a decimal number: {raw!r}", tag=tag, key=key
        )
    return value


def to_int(raw: str, tag: str, key: Optional[str] = None) -> int:
    if not _INTEGER.fullmatch(raw):
        raise InvalidNumberError(
            f"{tag}: {key or 'value'} is not a decimal integer: {raw!r}", tag=tag, key=key
        )
    # decimal-integer is bounded to 64 bits
    digits = raw.lstrip("0") or "0"
    if len(digits) > 20 or int(digits) > MAX_INTEGER:
        raise InvalidNumberError(
            f"{tag}: {key or 'value'} is out of range: {raw[:24]}...", tag=tag, key=key
        )
    return int(digits)


def to_bool(raw: str, tag: str, key: Optional[str] = None) -> bool:
    if raw == "YES":
        return True
    if raw == "NO":
        return False
    raise InvalidBooleanError(
        f"{tag}: {key or 'value'} must be YES or NO, got {raw!r}", tag=tag, key=key
    )


def parse_byte_range(raw: str, tag: str, key: Optional[str] = None) -> ByteRange:
    length, sep, offset = raw.partition("@")
    return ByteRange(
        length=to_int(length.strip(), tag, key),
        offset=to_int(offset.strip(), tag, key) if sep else None,
    )


def parse_resolution(raw: str, tag: str, key: Optional[str] = None) -> Resolution:
    width, sep, height = raw.partition("x")
    if not sep:
        raise InvalidNumberError(
            f"{tag}: {key or 'value'} must look like WIDTHxHEIGHT, got {raw!r}",
            tag=tag,
            key=key,
        )
    return Resolution(width=to_int(width, tag, key), height=to_int(height, tag, key))


def parse_datetime(raw: str, tag: str, key: Optional[str] = None) -> datetime:
    try:
        return isodate.parse_datetime(raw.strip())
    except (isodate.ISO8601Error, ValueError) as e:
        raise InvalidDateTimeError(
            f"{tag}: {key or 'value'} is not an ISO 8601 date-time: {raw!r}",
            tag=tag,
            key=key,
        ) from e
