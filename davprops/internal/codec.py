"""Typed value <-> XML element codec.

Property types are plain dataclasses registered under an XML name with
:func:`xml_element`. Each field declares how it maps onto the element through
its field metadata (character data, an attribute, a text-valued child, a
nested registered element, a presence flag, or "any other child").
:func:`encode_raw_xml_element` and :func:`decode_value` walk those
declarations; no property type carries its own tree-walking code.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from enum import Enum
from typing import Any, TypeVar

from dateutil import parser as date_parser

from .internal import DecodeError, FormatError, XMLNameError
from .xml_utils import RawXMLValue, XMLName, new_raw_xml_element

T = TypeVar("T")

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_XML = "davprops.xml"

_NAMES: dict[type, XMLName] = {}
_TYPES: dict[XMLName, type] = {}


@dataclass(frozen=True)
class TextCodec:
    """Conversion between a Python value and element text."""

    name: str
    parse: Callable[[str], Any]
    format: Callable[[Any], str]


_INT_RE = re.compile(r"[+-]?[0-9]+")


def _parse_int64(s: str) -> int:
    text = s.strip()
    if not _INT_RE.fullmatch(text):
        raise DecodeError(f"webdav: invalid integer {s!r}")
    value = int(text)
    if not INT64_MIN <= value <= INT64_MAX:
        raise DecodeError(f"webdav: integer {text} out of 64-bit range")
    return value


def _format_int64(value: int) -> str:
    if not INT64_MIN <= value <= INT64_MAX:
        raise FormatError(f"webdav: integer {value} out of 64-bit range")
    return str(int(value))


_RFC1123_RE = re.compile(
    r"[A-Z][a-z]{2}, [0-9]{1,2} [A-Z][a-z]{2} [0-9]{4} "
    r"[0-9]{2}:[0-9]{2}:[0-9]{2} (?:GMT|UTC|[+-][0-9]{4})"
)
_RFC850_RE = re.compile(
    r"[A-Z][a-z]+, [0-9]{2}-[A-Z][a-z]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2} (?:GMT|UTC)"
)
_ASCTIME_RE = re.compile(
    r"[A-Z][a-z]{2} [A-Z][a-z]{2} [ 0-9][0-9] [0-9]{2}:[0-9]{2}:[0-9]{2} [0-9]{4}"
)


def parse_http_date(s: str) -> datetime:
    """Parse an HTTP date (RFC 1123, RFC 850 or asctime).

    Only those three layouts are accepted. Values without a zone are taken
    as UTC.

    Raises:
        FormatError: If the text is not a date in one of the layouts
    """
    text = s.strip()
    if _RFC1123_RE.fullmatch(text):
        parse: Callable[[str], datetime] = parsedate_to_datetime
    elif _RFC850_RE.fullmatch(text) or _ASCTIME_RE.fullmatch(text):
        parse = date_parser.parse
    else:
        raise FormatError(f"webdav: invalid HTTP date {s!r}")

    try:
        dt = parse(text)
    except (TypeError, ValueError, OverflowError) as e:
        # layout matched but a field is out of range
        raise FormatError(f"webdav: invalid HTTP date {s!r}") from e

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_http_date(dt: datetime) -> str:
    """Format a datetime as RFC 1123 with a numeric zone offset."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return format_datetime(dt)


def _parse_etag(s: str) -> str:
    text = s.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def _format_etag(etag: str) -> str:
    # ETags are quoted on the wire
    return etag if etag.startswith('"') else f'"{etag}"'


STRING = TextCodec("string", str, str)
INT64 = TextCodec("int64", _parse_int64, _format_int64)
HTTP_DATE = TextCodec("http-date", parse_http_date, format_http_date)
ETAG = TextCodec("etag", _parse_etag, _format_etag)


class _Kind(Enum):
    CHARDATA = "chardata"
    ATTR = "attr"
    CHILD = "child"
    ELEMENT = "element"
    ELEMENTS = "elements"
    FLAG = "flag"
    ANY = "any"


@dataclass(frozen=True)
class _FieldSpec:
    kind: _Kind
    name: XMLName | None = None
    codec: TextCodec = STRING
    cls: type | None = None

    def xml_name(self) -> XMLName | None:
        if self.kind in (_Kind.ELEMENT, _Kind.ELEMENTS):
            assert self.cls is not None
            return value_xml_name(self.cls)
        return self.name


def _field(spec: _FieldSpec, default: Any, default_factory: Any) -> Any:
    return dataclasses.field(
        default=default, default_factory=default_factory, metadata={_XML: spec}
    )


def chardata(
    codec: TextCodec = STRING,
    *,
    default: Any = dataclasses.MISSING,
    default_factory: Any = dataclasses.MISSING,
) -> Any:
    """Field holding the element's own character data."""
    return _field(_FieldSpec(_Kind.CHARDATA, codec=codec), default, default_factory)


def attr(
    local: str,
    space: str = "",
    codec: TextCodec = STRING,
    *,
    default: Any = dataclasses.MISSING,
) -> Any:
    """Field holding an attribute value."""
    spec = _FieldSpec(_Kind.ATTR, name=XMLName(space, local), codec=codec)
    return _field(spec, default, dataclasses.MISSING)


def child(
    space: str,
    local: str,
    codec: TextCodec = STRING,
    *,
    default: Any = dataclasses.MISSING,
) -> Any:
    """Field holding the text of a child element."""
    spec = _FieldSpec(_Kind.CHILD, name=XMLName(space, local), codec=codec)
    return _field(spec, default, dataclasses.MISSING)


def element(cls: type, *, default: Any = dataclasses.MISSING) -> Any:
    """Field holding a nested registered element."""
    return _field(_FieldSpec(_Kind.ELEMENT, cls=cls), default, dataclasses.MISSING)


def elements(cls: type) -> Any:
    """Field holding every child element of a registered type."""
    return _field(_FieldSpec(_Kind.ELEMENTS, cls=cls), dataclasses.MISSING, list)


def flag(space: str, local: str) -> Any:
    """Boolean field set when an (empty) child element is present."""
    spec = _FieldSpec(_Kind.FLAG, name=XMLName(space, local))
    return _field(spec, False, dataclasses.MISSING)


def any_children() -> Any:
    """Field collecting all child elements not claimed by another field."""
    return _field(_FieldSpec(_Kind.ANY), dataclasses.MISSING, list)


def xml_element(space: str, local: str) -> Callable[[type[T]], type[T]]:
    """Class decorator declaring the XML name a dataclass is encoded as."""
    name = XMLName(space, local)

    def register(cls: type[T]) -> type[T]:
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"webdav: {cls.__name__} must be a dataclass")
        for f in dataclasses.fields(cls):
            if f.init and _XML not in f.metadata:
                raise TypeError(f"webdav: field {cls.__name__}.{f.name} has no XML mapping")
        _NAMES[cls] = name
        _TYPES.setdefault(name, cls)
        return cls

    return register


def value_xml_name(obj: Any) -> XMLName:
    """Get the XML name of a registered type, a value of one, or a raw element.

    Raises:
        XMLNameError: If no XML name is declared
    """
    if isinstance(obj, RawXMLValue):
        if obj.name is None:
            raise XMLNameError("webdav: character data has no XML name")
        return obj.name

    cls = obj if isinstance(obj, type) else type(obj)
    for klass in cls.__mro__:
        name = _NAMES.get(klass)
        if name is not None:
            return name
    raise XMLNameError(f"webdav: {cls.__name__} has no XML name")


def lookup_type(name: XMLName) -> type | None:
    """Registered type for an XML name, if any."""
    return _TYPES.get(name)


def _specs(cls: type) -> list[tuple[dataclasses.Field[Any], _FieldSpec]]:
    return [(f, f.metadata[_XML]) for f in dataclasses.fields(cls) if _XML in f.metadata]


def _required(f: dataclasses.Field[Any]) -> bool:
    return f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING


def encode_raw_xml_element(obj: Any) -> RawXMLValue:
    """Encode a registered Python object to a raw XML element.

    Args:
        obj: Object to encode; a RawXMLValue element is copied

    Returns:
        RawXMLValue holding the element
    """
    if isinstance(obj, RawXMLValue):
        if obj.name is None:
            raise XMLNameError("webdav: character data has no XML name")
        return obj.copy()

    name = value_xml_name(obj)
    attrs: dict[XMLName, str] = {}
    children: list[RawXMLValue] = []

    for f, spec in _specs(type(obj)):
        value = getattr(obj, f.name)
        if spec.kind is _Kind.CHARDATA:
            text = spec.codec.format(value) if value is not None else ""
            if text:
                children.append(RawXMLValue.chardata(text))
        elif spec.kind is _Kind.ATTR:
            if value is not None:
                assert spec.name is not None
                attrs[spec.name] = spec.codec.format(value)
        elif spec.kind is _Kind.CHILD:
            if value is not None:
                assert spec.name is not None
                text = spec.codec.format(value)
                inner = [RawXMLValue.chardata(text)] if text else []
                children.append(new_raw_xml_element(spec.name, children=inner))
        elif spec.kind is _Kind.ELEMENT:
            if value is not None:
                children.append(encode_raw_xml_element(value))
        elif spec.kind is _Kind.ELEMENTS:
            children.extend(encode_raw_xml_element(v) for v in value)
        elif spec.kind is _Kind.FLAG:
            if value:
                assert spec.name is not None
                children.append(new_raw_xml_element(spec.name))
        elif spec.kind is _Kind.ANY:
            children.extend(v.copy() for v in value)

    return new_raw_xml_element(name, attrs, children)


def decode_value(raw: RawXMLValue, obj_type: type[T]) -> T:
    """Decode a raw XML element into a registered type.

    Children the type does not declare are ignored. When a single-valued
    child occurs more than once, the first one in document order is used.
    The raw value is never modified.

    Raises:
        XMLNameError: If ``obj_type`` has no XML name
        DecodeError: If the element does not have the shape of ``obj_type``
    """
    if obj_type is RawXMLValue:
        return raw.copy()  # type: ignore[return-value]

    name = value_xml_name(obj_type)
    if raw.name != name:
        got = str(raw.name) if raw.name is not None else "character data"
        raise DecodeError(f"webdav: expected element {name}, got {got}")

    specs = _specs(obj_type)
    claimed = {
        spec.xml_name() for _, spec in specs if spec.kind not in (_Kind.CHARDATA, _Kind.ATTR)
    }
    kwargs: dict[str, Any] = {}

    for f, spec in specs:
        if not f.init:
            continue
        if spec.kind is _Kind.CHARDATA:
            text = raw.chardata_text()
            if text.strip() or _required(f):
                kwargs[f.name] = spec.codec.parse(text)
        elif spec.kind is _Kind.ATTR:
            assert spec.name is not None
            value = raw.attrs.get(spec.name)
            if value is not None:
                kwargs[f.name] = spec.codec.parse(value)
            elif _required(f):
                raise DecodeError(f"webdav: {name}: missing attribute {spec.name}")
        elif spec.kind in (_Kind.CHILD, _Kind.ELEMENT):
            child_name = spec.xml_name()
            assert child_name is not None
            found = raw.find(child_name)
            if found is None:
                if _required(f):
                    raise DecodeError(f"webdav: {name}: missing child element {child_name}")
            elif spec.kind is _Kind.CHILD:
                kwargs[f.name] = spec.codec.parse(found.chardata_text())
            else:
                assert spec.cls is not None
                kwargs[f.name] = decode_value(found, spec.cls)
        elif spec.kind is _Kind.ELEMENTS:
            assert spec.cls is not None
            child_name = spec.xml_name()
            kwargs[f.name] = [decode_value(c, spec.cls) for c in raw.children if c.name == child_name]
        elif spec.kind is _Kind.FLAG:
            assert spec.name is not None
            kwargs[f.name] = raw.find(spec.name) is not None
        elif spec.kind is _Kind.ANY:
            kwargs[f.name] = [c.copy() for c in raw.elements() if c.name not in claimed]

    return obj_type(**kwargs)
