"""Tests for the typed element codec."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest

from davprops.internal.codec import (
    INT64,
    attr,
    chardata,
    child,
    decode_value,
    element,
    elements,
    encode_raw_xml_element,
    lookup_type,
    parse_http_date,
    value_xml_name,
    xml_element,
)
from davprops.internal.elements import (
    COLLECTION,
    GET_CONTENT_LENGTH,
    NAMESPACE,
    PRINCIPAL,
    CurrentUserPrincipal,
    GetContentLength,
    GetContentType,
    GetETag,
    GetLastModified,
    Location,
    ResourceType,
    new_resource_type,
)
from davprops.internal.internal import DecodeError, FormatError, XMLNameError
from davprops.internal.xml_utils import RawXMLValue, XMLName, parse_document

EXAMPLE_NS = "urn:example:quota"


@xml_element(EXAMPLE_NS, "quota")
@dataclass
class Quota:
    used: int = child(EXAMPLE_NS, "used", INT64)
    unit: str = attr("unit", default="bytes")


@xml_element(EXAMPLE_NS, "group")
@dataclass
class QuotaGroup:
    members: list[Quota] = elements(Quota)
    primary: Quota | None = element(Quota, default=None)


def _raw(xml: str) -> RawXMLValue:
    return RawXMLValue.from_element(parse_document(xml))


@pytest.mark.parametrize(
    "value",
    [
        GetContentLength(length=4525),
        GetContentLength(length=-(2**63)),
        GetContentType(content_type="text/html; charset=utf-8"),
        GetLastModified(last_modified=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
        new_resource_type(COLLECTION, PRINCIPAL),
    ],
)
def test_decode_encoded_value(value):
    """Property types survive encoding."""
    assert decode_value(encode_raw_xml_element(value), type(value)) == value


def test_encode_content_length():
    raw = encode_raw_xml_element(GetContentLength(length=4525))

    assert raw.name == GET_CONTENT_LENGTH
    assert raw.chardata_text() == "4525"


@pytest.mark.parametrize("text", ["abc", "", "1.5", "9223372036854775808", "1_000"])
def test_decode_content_length_invalid(text):
    with pytest.raises(DecodeError):
        _raw(f'<D:getcontentlength xmlns:D="DAV:">{text}</D:getcontentlength>').decode(
            GetContentLength
        )


def test_encode_content_length_out_of_range():
    with pytest.raises(FormatError, match="out of 64-bit range"):
        encode_raw_xml_element(GetContentLength(length=2**63))


def test_decode_content_length_whitespace():
    raw = _raw('<D:getcontentlength xmlns:D="DAV:">\n  12\n</D:getcontentlength>')

    assert raw.decode(GetContentLength).length == 12


def test_encode_last_modified_offset():
    """Timestamps are written as RFC 1123 with a numeric offset."""
    tz = timezone(timedelta(hours=2))
    value = GetLastModified(last_modified=datetime(1994, 11, 6, 10, 49, 37, tzinfo=tz))

    raw = encode_raw_xml_element(value)

    assert raw.chardata_text() == "Sun, 06 Nov 1994 10:49:37 +0200"
    assert raw.decode(GetLastModified) == value


@pytest.mark.parametrize(
    "text",
    [
        "Sun, 06 Nov 1994 08:49:37 GMT",
        "Sun, 06 Nov 1994 08:49:37 +0000",
        "Sunday, 06-Nov-94 08:49:37 GMT",
        "Sun Nov  6 08:49:37 1994",
    ],
)
def test_parse_http_date_formats(text):
    expected = datetime(1994, 11, 6, 8, 49, 37, tzinfo=timezone.utc)

    assert parse_http_date(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "12",
        "2024",
        "10:30",
        "Monday",
        "2024-01-02T03:04:05Z",
        "Sun, 06 Nov 1994",
        "Sun, 32 Nov 1994 08:49:37 GMT",
        "Sunday, 06-Nov-94 08:49:37",
        "Sun Nov  6 08:49:37",
    ],
)
def test_parse_http_date_rejects_other_layouts(text):
    """Partial dates are not completed from the current time."""
    with pytest.raises(FormatError, match="invalid HTTP date"):
        parse_http_date(text)


def test_decode_last_modified_bare_number():
    raw = _raw('<D:getlastmodified xmlns:D="DAV:">7</D:getlastmodified>')

    with pytest.raises(FormatError):
        raw.decode(GetLastModified)


def test_decode_last_modified_invalid():
    raw = _raw('<D:getlastmodified xmlns:D="DAV:">garbage</D:getlastmodified>')

    with pytest.raises(FormatError, match="invalid HTTP date"):
        raw.decode(GetLastModified)


def test_etag_quoting():
    raw = encode_raw_xml_element(GetETag(etag="abc"))
    assert raw.chardata_text() == '"abc"'

    decoded = _raw('<D:getetag xmlns:D="DAV:">"xyz"</D:getetag>').decode(GetETag)
    assert decoded == GetETag(etag="xyz")


def test_resource_type_is_type():
    rt = _raw(
        '<D:resourcetype xmlns:D="DAV:" xmlns:C="urn:ietf:params:xml:ns:caldav">'
        "<D:collection/><C:calendar/></D:resourcetype>"
    ).decode(ResourceType)

    assert rt.is_type(COLLECTION)
    assert rt.is_type(XMLName("urn:ietf:params:xml:ns:caldav", "calendar"))
    assert not rt.is_type(PRINCIPAL)


def test_current_user_principal():
    value = _raw(
        '<D:current-user-principal xmlns:D="DAV:"><D:href>/p/me/</D:href>'
        "</D:current-user-principal>"
    ).decode(CurrentUserPrincipal)
    assert value == CurrentUserPrincipal(href="/p/me/", unauthenticated=False)

    value = _raw(
        '<D:current-user-principal xmlns:D="DAV:"><D:unauthenticated/>'
        "</D:current-user-principal>"
    ).decode(CurrentUserPrincipal)
    assert value == CurrentUserPrincipal(href=None, unauthenticated=True)


def test_decode_name_mismatch():
    raw = encode_raw_xml_element(GetContentType(content_type="text/plain"))

    with pytest.raises(DecodeError, match="expected element"):
        raw.decode(GetContentLength)


def test_decode_tolerates_unknown_children():
    raw = _raw(
        '<D:location xmlns:D="DAV:" xmlns:X="urn:x"><X:extra>1</X:extra>'
        "<D:href>/a</D:href></D:location>"
    )

    assert raw.decode(Location) == Location(href="/a")


def test_decode_missing_required_child():
    with pytest.raises(DecodeError, match="missing child element"):
        _raw('<D:location xmlns:D="DAV:"/>').decode(Location)


def test_decode_first_duplicate_wins():
    """The first duplicate decodes; later ones stay in the tree."""
    raw = _raw(
        '<D:location xmlns:D="DAV:"><D:href>/a</D:href><D:href>/b</D:href></D:location>'
    )
    before = raw.copy()

    assert raw.decode(Location).href == "/a"
    assert raw == before
    assert len(raw.elements()) == 2


def test_decode_does_not_share_children():
    """Mutating a decoded value leaves the tree alone."""
    raw = encode_raw_xml_element(new_resource_type(COLLECTION))

    rt = raw.decode(ResourceType)
    rt.raw.clear()

    assert raw.decode(ResourceType).is_type(COLLECTION)


def test_attribute_and_child_fields():
    value = Quota(used=10, unit="kB")
    raw = encode_raw_xml_element(value)

    assert raw.attrs == {XMLName("", "unit"): "kB"}
    assert raw.find(XMLName(EXAMPLE_NS, "used")).chardata_text() == "10"
    assert raw.decode(Quota) == value


def test_attribute_default():
    raw = _raw(f'<q:quota xmlns:q="{EXAMPLE_NS}"><q:used>3</q:used></q:quota>')

    assert raw.decode(Quota) == Quota(used=3, unit="bytes")


def test_nested_elements():
    value = QuotaGroup(members=[Quota(used=1), Quota(used=2, unit="kB")], primary=Quota(used=7))

    raw = encode_raw_xml_element(value)

    assert [c.name.local for c in raw.elements()] == ["quota", "quota", "quota"]
    decoded = raw.decode(QuotaGroup)
    # the primary slot takes the first quota child
    assert decoded.primary == Quota(used=1)
    assert len(decoded.members) == 3


def test_nested_element_errors_propagate():
    raw = _raw(f'<q:group xmlns:q="{EXAMPLE_NS}"><q:quota/></q:group>')

    with pytest.raises(DecodeError, match="missing child element"):
        raw.decode(QuotaGroup)


def test_value_xml_name():
    assert value_xml_name(GetContentLength) == GET_CONTENT_LENGTH
    assert value_xml_name(GetContentLength(length=1)) == GET_CONTENT_LENGTH
    assert value_xml_name(Quota) == XMLName(EXAMPLE_NS, "quota")

    with pytest.raises(XMLNameError):
        value_xml_name(int)
    with pytest.raises(XMLNameError):
        value_xml_name(RawXMLValue.chardata("text"))
    with pytest.raises(XMLNameError):
        encode_raw_xml_element(RawXMLValue.chardata("text"))


def test_value_xml_name_subclass():
    class LongerLength(GetContentLength):
        pass

    assert value_xml_name(LongerLength) == GET_CONTENT_LENGTH


def test_lookup_type():
    assert lookup_type(GET_CONTENT_LENGTH) is GetContentLength
    assert lookup_type(XMLName(NAMESPACE, "no-such-property")) is None


def test_decode_raw_type_copies():
    raw = encode_raw_xml_element(GetContentLength(length=1))

    decoded = decode_value(raw, RawXMLValue)

    assert decoded == raw
    assert decoded is not raw


def test_xml_element_requires_dataclass():
    with pytest.raises(TypeError, match="must be a dataclass"):

        @xml_element(EXAMPLE_NS, "plain")
        class Plain:
            pass


def test_xml_element_requires_field_mapping():
    with pytest.raises(TypeError, match="has no XML mapping"):

        @xml_element(EXAMPLE_NS, "unmapped")
        @dataclass
        class Unmapped:
            value: str = chardata()
            other: str = ""
