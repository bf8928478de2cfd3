"""A Python library for WebDAV properties and multistatus responses."""

from .internal import (
    COLLECTION,
    NAMESPACE,
    CardinalityError,
    CurrentUserPrincipal,
    DecodeError,
    DisplayName,
    Error,
    FormatError,
    GetContentLength,
    GetContentType,
    GetETag,
    GetLastModified,
    Include,
    Location,
    MultiStatus,
    NotFoundError,
    Outcome,
    Prop,
    PropFind,
    PropFindMode,
    PropStat,
    RawXMLValue,
    ResourceType,
    Response,
    Status,
    StatusError,
    StatusText,
    WebDAVError,
    XMLName,
    XMLNameError,
    classify,
    encode_prop,
    new_error_response,
    new_multistatus,
    new_ok_response,
    new_prop_name_propfind,
    new_resource_type,
    xml_element,
)

__version__ = "0.1.0"

__all__ = [
    "COLLECTION",
    "NAMESPACE",
    "CardinalityError",
    "CurrentUserPrincipal",
    "DecodeError",
    "DisplayName",
    "Error",
    "FormatError",
    "GetContentLength",
    "GetContentType",
    "GetETag",
    "GetLastModified",
    "Include",
    "Location",
    "MultiStatus",
    "NotFoundError",
    "Outcome",
    "Prop",
    "PropFind",
    "PropFindMode",
    "PropStat",
    "RawXMLValue",
    "ResourceType",
    "Response",
    "Status",
    "StatusError",
    "StatusText",
    "WebDAVError",
    "XMLName",
    "XMLNameError",
    "classify",
    "encode_prop",
    "new_error_response",
    "new_multistatus",
    "new_ok_response",
    "new_prop_name_propfind",
    "new_resource_type",
    "xml_element",
]
