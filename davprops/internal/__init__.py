"""WebDAV element layer: generic element codec and multistatus protocol."""

from .codec import (
    ETAG,
    HTTP_DATE,
    INT64,
    STRING,
    TextCodec,
    any_children,
    attr,
    chardata,
    child,
    decode_value,
    element,
    elements,
    encode_raw_xml_element,
    flag,
    format_http_date,
    lookup_type,
    parse_http_date,
    value_xml_name,
    xml_element,
)
from .elements import (
    COLLECTION,
    CURRENT_USER_PRINCIPAL,
    DISPLAY_NAME,
    GET_CONTENT_LENGTH,
    GET_CONTENT_TYPE,
    GET_ETAG,
    GET_LAST_MODIFIED,
    NAMESPACE,
    NS,
    PRINCIPAL,
    RESOURCE_TYPE,
    CurrentUserPrincipal,
    DisplayName,
    Error,
    GetContentLength,
    GetContentType,
    GetETag,
    GetLastModified,
    Include,
    Location,
    MultiStatus,
    Outcome,
    Prop,
    PropFind,
    PropFindMode,
    PropStat,
    ResourceType,
    Response,
    Status,
    classify,
    encode_prop,
    new_error_response,
    new_multistatus,
    new_ok_response,
    new_prop_name_propfind,
    new_resource_type,
    status_err,
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
    XMLNameError,
    is_not_found,
)
from .xml_utils import (
    RawXMLValue,
    XMLName,
    new_raw_xml_element,
    parse_document,
    serialize_document,
)
