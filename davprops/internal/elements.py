"""WebDAV XML elements."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from http import HTTPStatus
from typing import TypeVar

from lxml import etree

from .codec import (
    ETAG,
    HTTP_DATE,
    INT64,
    any_children,
    chardata,
    child,
    encode_raw_xml_element,
    flag,
    value_xml_name,
    xml_element,
)
from .internal import (
    DEFAULT_STATUS_TEXT,
    CardinalityError,
    DecodeError,
    FormatError,
    NotFoundError,
    StatusError,
    StatusText,
    WebDAVError,
)
from .xml_utils import (
    RawXMLValue,
    XMLName,
    new_raw_xml_element,
    parse_document,
    serialize_document,
)

T = TypeVar("T")

# WebDAV namespace
NAMESPACE = "DAV:"
NS = {"D": NAMESPACE}

# Common XML names
RESOURCE_TYPE = XMLName(NAMESPACE, "resourcetype")
DISPLAY_NAME = XMLName(NAMESPACE, "displayname")
GET_CONTENT_LENGTH = XMLName(NAMESPACE, "getcontentlength")
GET_CONTENT_TYPE = XMLName(NAMESPACE, "getcontenttype")
GET_LAST_MODIFIED = XMLName(NAMESPACE, "getlastmodified")
GET_ETAG = XMLName(NAMESPACE, "getetag")
COLLECTION = XMLName(NAMESPACE, "collection")
PRINCIPAL = XMLName(NAMESPACE, "principal")
CURRENT_USER_PRINCIPAL = XMLName(NAMESPACE, "current-user-principal")


def _new_element(local: str, parent: etree._Element | None) -> etree._Element:
    tag = f"{{{NAMESPACE}}}{local}"
    if parent is None:
        return etree.Element(tag, nsmap=NS)
    return etree.SubElement(parent, tag)


def _child_text(element: etree._Element, local: str) -> str:
    el = element.find(f"{{{NAMESPACE}}}{local}")
    if el is None or el.text is None:
        return ""
    return el.text


def _check_tag(element: etree._Element, local: str) -> None:
    if element.tag != f"{{{NAMESPACE}}}{local}":
        raise DecodeError(f"webdav: expected element {{{NAMESPACE}}}{local}, got {element.tag}")


_CODE_RE = re.compile(r"[1-9][0-9]{2}")


class Outcome(Enum):
    """Classification of a status."""

    OK = "ok"
    FAILED = "failed"


@dataclass
class Status:
    """HTTP status for WebDAV responses."""

    code: int
    text: str = ""

    def to_string(self, status_text: StatusText = DEFAULT_STATUS_TEXT) -> str:
        """Marshal status to text."""
        text = self.text if self.text else status_text.phrase(self.code)
        return f"{status_text.protocol} {self.code} {text}"

    @staticmethod
    def from_string(s: str) -> Status:
        """Unmarshal status from text.

        The text is stripped first, so ``"HTTP/1.1 200 "`` (an empty reason)
        reads as ``"HTTP/1.1 200"``; both give a status with an empty text.

        Raises:
            FormatError: If the text is not ``<protocol> <code> [<reason>]``
        """
        parts = s.strip().split(" ", 2)
        if len(parts) == 2:
            parts.append("")
        if len(parts) != 3:
            raise FormatError(f"webdav: invalid HTTP status {s!r}: expected protocol and code")

        if not _CODE_RE.fullmatch(parts[1]):
            raise FormatError(f"webdav: invalid HTTP status {s!r}: code is not 3 digits")

        return Status(code=int(parts[1]), text=parts[2])

    def err(self, status_text: StatusText = DEFAULT_STATUS_TEXT) -> StatusError | None:
        """Convert status to error if not OK."""
        return status_err(self, status_text)


def classify(status: Status | None) -> Outcome:
    """Classify a status; a missing status counts as OK.

    Only 200 is a success. Other 2xx codes and redirects are failures.
    """
    if status is None or status.code == HTTPStatus.OK:
        return Outcome.OK
    return Outcome.FAILED


def status_err(
    status: Status | None, status_text: StatusText = DEFAULT_STATUS_TEXT
) -> StatusError | None:
    if classify(status) is Outcome.OK:
        return None
    assert status is not None
    return StatusError(status.code, status.text, status_text=status_text)


@xml_element(NAMESPACE, "error")
@dataclass
class Error:
    """WebDAV error element."""

    raw: list[RawXMLValue] = any_children()

    def __str__(self) -> str:
        if self.raw:
            return etree.tostring(self.raw[0].to_element(), encoding="unicode")
        return "webdav error"


@xml_element(NAMESPACE, "location")
@dataclass
class Location:
    """WebDAV location element."""

    href: str = child(NAMESPACE, "href")


@dataclass
class Prop:
    """WebDAV prop element."""

    raw: list[RawXMLValue] = field(default_factory=list)

    def to_xml(self, parent: etree._Element | None = None) -> etree._Element:
        """Convert to XML element."""
        prop = _new_element("prop", parent)
        last: etree._Element | None = None
        for value in self.raw:
            if value.is_element():
                last = value.to_element(prop)
            elif last is None:
                prop.text = (prop.text or "") + (value.text or "")
            else:
                last.tail = (last.tail or "") + (value.text or "")
        return prop

    @staticmethod
    def from_xml(element: etree._Element) -> Prop:
        """Parse from XML element."""
        _check_tag(element, "prop")
        return Prop(raw=RawXMLValue.from_element(element).children)

    def get(self, name: XMLName) -> RawXMLValue | None:
        """Get the first property with the given name."""
        for value in self.raw:
            if value.name == name:
                return value
        return None

    def xml_names(self) -> list[XMLName]:
        """Names of the properties, in document order."""
        return [value.name for value in self.raw if value.name is not None]


def encode_prop(*values: object) -> Prop:
    """Build a prop from typed values, keeping their order."""
    return Prop(raw=[encode_raw_xml_element(v) for v in values])


@dataclass
class PropStat:
    """WebDAV propstat element."""

    prop: Prop
    status: Status
    response_description: str = ""
    error: Error | None = None

    def err(
        self, prop: XMLName | None = None, status_text: StatusText = DEFAULT_STATUS_TEXT
    ) -> StatusError | None:
        """Error for this group if its status is not OK."""
        if classify(self.status) is Outcome.OK:
            return None
        detail = None
        if self.error is not None:
            detail = WebDAVError(str(self.error))
        return StatusError(
            self.status.code, self.status.text, detail, prop=prop, status_text=status_text
        )

    def to_xml(
        self,
        parent: etree._Element | None = None,
        status_text: StatusText = DEFAULT_STATUS_TEXT,
    ) -> etree._Element:
        """Convert to XML element."""
        propstat = _new_element("propstat", parent)
        self.prop.to_xml(propstat)

        status_el = etree.SubElement(propstat, f"{{{NAMESPACE}}}status")
        status_el.text = self.status.to_string(status_text)

        if self.error is not None:
            encode_raw_xml_element(self.error).to_element(propstat)

        if self.response_description:
            desc = etree.SubElement(propstat, f"{{{NAMESPACE}}}responsedescription")
            desc.text = self.response_description

        return propstat

    @staticmethod
    def from_xml(element: etree._Element) -> PropStat:
        """Parse from XML element."""
        prop_el = element.find(f"{{{NAMESPACE}}}prop")
        prop = Prop.from_xml(prop_el) if prop_el is not None else Prop()

        status_el = element.find(f"{{{NAMESPACE}}}status")
        if status_el is None:
            raise DecodeError("webdav: propstat without status")
        status = Status.from_string(status_el.text or "")

        error_el = element.find(f"{{{NAMESPACE}}}error")
        error = RawXMLValue.from_element(error_el).decode(Error) if error_el is not None else None

        return PropStat(
            prop=prop,
            status=status,
            response_description=_child_text(element, "responsedescription"),
            error=error,
        )


@dataclass
class Response:
    """WebDAV response element.

    A response carries either a top-level status for the whole resource or
    a list of propstat groups; decoders accept both.
    """

    hrefs: list[str] = field(default_factory=list)
    propstats: list[PropStat] = field(default_factory=list)
    response_description: str = ""
    status: Status | None = None
    error: Error | None = None
    location: Location | None = None

    def to_xml(
        self,
        parent: etree._Element | None = None,
        status_text: StatusText = DEFAULT_STATUS_TEXT,
    ) -> etree._Element:
        """Convert to XML element."""
        resp = _new_element("response", parent)

        for href in self.hrefs:
            href_el = etree.SubElement(resp, f"{{{NAMESPACE}}}href")
            href_el.text = href

        if self.status is not None:
            status_el = etree.SubElement(resp, f"{{{NAMESPACE}}}status")
            status_el.text = self.status.to_string(status_text)

        for propstat in self.propstats:
            propstat.to_xml(resp, status_text)

        if self.error is not None:
            encode_raw_xml_element(self.error).to_element(resp)

        if self.response_description:
            desc = etree.SubElement(resp, f"{{{NAMESPACE}}}responsedescription")
            desc.text = self.response_description

        if self.location is not None:
            encode_raw_xml_element(self.location).to_element(resp)

        return resp

    @staticmethod
    def from_xml(element: etree._Element) -> Response:
        """Parse from XML element."""
        _check_tag(element, "response")

        hrefs = []
        for href_el in element.findall(f"{{{NAMESPACE}}}href"):
            if href_el.text and href_el.text.strip():
                hrefs.append(href_el.text.strip())

        propstats = []
        for ps_el in element.findall(f"{{{NAMESPACE}}}propstat"):
            propstats.append(PropStat.from_xml(ps_el))

        status_el = element.find(f"{{{NAMESPACE}}}status")
        status = None
        if status_el is not None and status_el.text and status_el.text.strip():
            status = Status.from_string(status_el.text)

        error_el = element.find(f"{{{NAMESPACE}}}error")
        error = RawXMLValue.from_element(error_el).decode(Error) if error_el is not None else None

        location_el = element.find(f"{{{NAMESPACE}}}location")
        location = None
        if location_el is not None:
            location = RawXMLValue.from_element(location_el).decode(Location)

        return Response(
            hrefs=hrefs,
            propstats=propstats,
            response_description=_child_text(element, "responsedescription"),
            status=status,
            error=error,
            location=location,
        )

    def err(self, status_text: StatusText = DEFAULT_STATUS_TEXT) -> StatusError | None:
        """Get error from response if any."""
        if classify(self.status) is Outcome.OK:
            return None
        assert self.status is not None

        err: Exception | None = None
        if self.error:
            err = WebDAVError(str(self.error))
        if self.response_description:
            if err:
                err = WebDAVError(f"{self.response_description} ({err})")
            else:
                err = WebDAVError(self.response_description)

        return StatusError(self.status.code, self.status.text, err, status_text=status_text)

    def href(self, status_text: StatusText = DEFAULT_STATUS_TEXT) -> str:
        """Get the single href this response is about.

        Raises:
            StatusError: If the response status is not OK
            CardinalityError: If there is not exactly one href
        """
        err = self.err(status_text)
        if err is not None:
            raise err
        if len(self.hrefs) != 1:
            raise CardinalityError(
                "webdav: malformed response: expected exactly one href element, "
                f"got {len(self.hrefs)}"
            )
        return self.hrefs[0]

    def decode_prop(
        self, obj_type: type[T], status_text: StatusText = DEFAULT_STATUS_TEXT
    ) -> T:
        """Decode a property from this response.

        The response status is checked first, then the status of the
        propstat group holding the property.

        Raises:
            XMLNameError: If ``obj_type`` has no XML name
            StatusError: If the response or the property's group failed
            NotFoundError: If no propstat holds the property
            DecodeError: If the property does not have the expected shape
        """
        name = value_xml_name(obj_type)
        err = self.err(status_text)
        if err is not None:
            raise err

        for propstat in self.propstats:
            raw = propstat.prop.get(name)
            if raw is None:
                continue
            err = propstat.err(prop=name, status_text=status_text)
            if err is not None:
                raise err
            return raw.decode(obj_type)

        hrefs = ", ".join(self.hrefs) or "<no href>"
        raise NotFoundError(f"webdav: missing prop {name} in response for {hrefs}")

    def encode_prop(self, code: int, value: object) -> None:
        """Add a property to the propstat group with the given status code."""
        raw = encode_raw_xml_element(value)

        for propstat in self.propstats:
            if propstat.status.code == code:
                propstat.prop.raw.append(raw)
                return

        self.propstats.append(PropStat(prop=Prop(raw=[raw]), status=Status(code=code)))


def new_ok_response(href: str) -> Response:
    """Create a new OK response."""
    return Response(hrefs=[href], status=Status(code=200))


def new_error_response(href: str, err: Exception, error: Error | None = None) -> Response:
    """Create a new error response."""
    code = 500
    text = ""
    if isinstance(err, StatusError):
        code = err.code
        text = err.text

    return Response(
        hrefs=[href],
        status=Status(code=code, text=text),
        response_description=str(err),
        error=error,
    )


@dataclass
class MultiStatus:
    """WebDAV multistatus response."""

    responses: list[Response] = field(default_factory=list)
    response_description: str = ""

    def get(self, href: str) -> Response:
        """Get the first response naming ``href``.

        The returned response is the stored object, not a copy.

        Raises:
            NotFoundError: If no response names ``href``
        """
        for resp in self.responses:
            if href in resp.hrefs:
                return resp
        raise NotFoundError(f"webdav: missing response for href {href!r}")

    def to_xml(self, status_text: StatusText = DEFAULT_STATUS_TEXT) -> etree._Element:
        """Convert to XML element."""
        root = _new_element("multistatus", None)
        for resp in self.responses:
            resp.to_xml(root, status_text)
        if self.response_description:
            desc = etree.SubElement(root, f"{{{NAMESPACE}}}responsedescription")
            desc.text = self.response_description
        return root

    @staticmethod
    def from_xml(element: etree._Element) -> MultiStatus:
        """Parse from XML element."""
        _check_tag(element, "multistatus")

        responses = []
        for resp_el in element.findall(f"{{{NAMESPACE}}}response"):
            responses.append(Response.from_xml(resp_el))

        return MultiStatus(
            responses=responses,
            response_description=_child_text(element, "responsedescription"),
        )

    @staticmethod
    def from_bytes(data: bytes | str) -> MultiStatus:
        """Parse a multistatus document."""
        return MultiStatus.from_xml(parse_document(data))

    def to_bytes(
        self, status_text: StatusText = DEFAULT_STATUS_TEXT, pretty_print: bool = False
    ) -> bytes:
        """Serialize to a multistatus document."""
        return serialize_document(self.to_xml(status_text), pretty_print=pretty_print)


def new_multistatus(*responses: Response) -> MultiStatus:
    return MultiStatus(responses=list(responses))


def _xml_names_to_raw(names: tuple[XMLName, ...] | list[XMLName]) -> list[RawXMLValue]:
    return [new_raw_xml_element(name) for name in names]


@xml_element(NAMESPACE, "include")
@dataclass
class Include:
    """WebDAV include element."""

    raw: list[RawXMLValue] = any_children()

    def xml_names(self) -> list[XMLName]:
        return [value.name for value in self.raw if value.name is not None]


class PropFindMode(Enum):
    """What a PROPFIND request asks for."""

    PROP = "prop"
    ALLPROP = "allprop"
    PROPNAME = "propname"


@dataclass
class PropFind:
    """WebDAV PROPFIND request.

    Only one of ``prop``, ``allprop`` and ``propname`` should be set. When
    several are, ``prop`` wins over ``allprop``, which wins over
    ``propname``. ``include`` only applies together with ``allprop``.
    """

    prop: Prop | None = None
    allprop: bool = False
    include: list[XMLName] = field(default_factory=list)
    propname: bool = False

    @property
    def mode(self) -> PropFindMode:
        if self.prop is not None:
            return PropFindMode.PROP
        if self.allprop:
            return PropFindMode.ALLPROP
        if self.propname:
            return PropFindMode.PROPNAME
        # An empty propfind is treated as allprop
        return PropFindMode.ALLPROP

    @staticmethod
    def from_xml(element: etree._Element) -> PropFind:
        """Parse from XML element."""
        _check_tag(element, "propfind")

        prop_el = element.find(f"{{{NAMESPACE}}}prop")
        prop = Prop.from_xml(prop_el) if prop_el is not None else None

        allprop = element.find(f"{{{NAMESPACE}}}allprop") is not None
        propname = element.find(f"{{{NAMESPACE}}}propname") is not None

        include: list[XMLName] = []
        include_el = element.find(f"{{{NAMESPACE}}}include")
        if include_el is not None:
            include = RawXMLValue.from_element(include_el).decode(Include).xml_names()

        return PropFind(prop=prop, allprop=allprop, include=include, propname=propname)

    def to_xml(self) -> etree._Element:
        """Convert to XML element."""
        pf = _new_element("propfind", None)

        mode = self.mode
        if mode is PropFindMode.PROP:
            assert self.prop is not None
            self.prop.to_xml(pf)
        elif mode is PropFindMode.ALLPROP:
            etree.SubElement(pf, f"{{{NAMESPACE}}}allprop")
            if self.include:
                include = Include(raw=_xml_names_to_raw(self.include))
                encode_raw_xml_element(include).to_element(pf)
        else:
            etree.SubElement(pf, f"{{{NAMESPACE}}}propname")

        return pf


def new_prop_name_propfind(*names: XMLName) -> PropFind:
    """Create a PROPFIND request for the named properties."""
    return PropFind(prop=Prop(raw=_xml_names_to_raw(names)))


@xml_element(NAMESPACE, "resourcetype")
@dataclass
class ResourceType:
    """WebDAV resourcetype property."""

    raw: list[RawXMLValue] = any_children()

    def is_type(self, name: XMLName) -> bool:
        """Check if resource has a specific type."""
        return any(value.name == name for value in self.raw)


def new_resource_type(*names: XMLName) -> ResourceType:
    return ResourceType(raw=_xml_names_to_raw(names))


@xml_element(NAMESPACE, "displayname")
@dataclass
class DisplayName:
    """WebDAV displayname property."""

    name: str = chardata()


@xml_element(NAMESPACE, "getcontentlength")
@dataclass
class GetContentLength:
    """WebDAV getcontentlength property."""

    length: int = chardata(INT64)


@xml_element(NAMESPACE, "getcontenttype")
@dataclass
class GetContentType:
    """WebDAV getcontenttype property."""

    content_type: str = chardata()


@xml_element(NAMESPACE, "getlastmodified")
@dataclass
class GetLastModified:
    """WebDAV getlastmodified property."""

    last_modified: datetime = chardata(HTTP_DATE)


@xml_element(NAMESPACE, "getetag")
@dataclass
class GetETag:
    """WebDAV getetag property, stored without quotes."""

    etag: str = chardata(ETAG)


@xml_element(NAMESPACE, "current-user-principal")
@dataclass
class CurrentUserPrincipal:
    """WebDAV current-user-principal property (RFC 5397)."""

    href: str | None = child(NAMESPACE, "href", default=None)
    unauthenticated: bool = flag(NAMESPACE, "unauthenticated")
