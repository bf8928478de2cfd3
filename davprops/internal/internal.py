"""Errors and status line configuration for the WebDAV element layer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .xml_utils import XMLName


def _default_reason_phrases() -> Mapping[int, str]:
    return MappingProxyType({s.value: s.phrase for s in HTTPStatus})


@dataclass(frozen=True)
class StatusText:
    """Protocol version and reason phrase table used to write status lines."""

    protocol: str = "HTTP/1.1"
    reason_phrases: Mapping[int, str] = field(default_factory=_default_reason_phrases)

    def __post_init__(self) -> None:
        if not isinstance(self.reason_phrases, MappingProxyType):
            object.__setattr__(self, "reason_phrases", MappingProxyType(dict(self.reason_phrases)))

    def phrase(self, code: int) -> str:
        return self.reason_phrases.get(code, "Unknown")


DEFAULT_STATUS_TEXT = StatusText()


class WebDAVError(Exception):
    """Base class for all errors raised by davprops."""


class FormatError(WebDAVError, ValueError):
    """Malformed status line or timestamp, or a value with no valid text form."""


class DecodeError(WebDAVError, ValueError):
    """XML element does not have the shape of the requested type."""


class XMLNameError(WebDAVError, TypeError):
    """Type or value has no declared XML name."""


class NotFoundError(WebDAVError, LookupError):
    """Missing property or href."""


class CardinalityError(WebDAVError, ValueError):
    """Response does not name exactly one resource."""


class StatusError(WebDAVError):
    """Operation blocked by a non-success status.

    Raised either for a whole response (``prop`` is None) or for a single
    propstat group, in which case ``prop`` names the property that was
    requested. An empty ``text`` is looked up in ``status_text``.
    """

    def __init__(
        self,
        code: int,
        text: str = "",
        err: Exception | None = None,
        prop: XMLName | None = None,
        status_text: StatusText = DEFAULT_STATUS_TEXT,
    ):
        self.code = code
        self.text = text
        self.err = err
        self.prop = prop
        self.status_text = status_text
        super().__init__(str(self))

    def __str__(self) -> str:
        text = self.text if self.text else self.status_text.phrase(self.code)

        s = f"webdav: HTTP error: {self.code} {text}"
        if self.prop is not None:
            s = f"{s} (prop {self.prop})"
        if self.err:
            return f"{s}: {self.err}"
        return s


def is_not_found(err: Exception | None) -> bool:
    """Check if an error means the resource or property does not exist."""
    if isinstance(err, NotFoundError):
        return True
    if isinstance(err, StatusError):
        return err.code == 404
    return False
