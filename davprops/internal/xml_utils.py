"""XML utilities for WebDAV."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NamedTuple, TypeVar

from lxml import etree

from .internal import DecodeError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

T = TypeVar("T")


class XMLName(NamedTuple):
    """Qualified XML name: namespace plus local name."""

    space: str
    local: str

    def __str__(self) -> str:
        if self.space:
            return f"{{{self.space}}}{self.local}"
        return self.local

    @staticmethod
    def from_clark(tag: str) -> XMLName:
        """Parse a name in ``{namespace}local`` notation."""
        if tag.startswith("{"):
            space, sep, local = tag[1:].partition("}")
            if not sep or not local:
                raise DecodeError(f"webdav: invalid XML name {tag!r}")
            return XMLName(space, local)
        return XMLName("", tag)


class RawXMLValue:
    """Raw XML token: either an element or a run of character data.

    Elements keep their attributes and the ordered list of child tokens, so
    anything that is not understood by a typed decoder survives a round
    trip unchanged.
    """

    def __init__(
        self,
        name: XMLName | None = None,
        attrs: Mapping[XMLName, str] | None = None,
        children: Iterable[RawXMLValue] | None = None,
        text: str | None = None,
    ) -> None:
        """Initialize raw XML value.

        Args:
            name: Element name, None for character data
            attrs: Element attributes
            children: Child tokens in document order
            text: Character data (only when name is None)
        """
        if name is None and text is None:
            raise ValueError("webdav: raw XML value needs a name or text")
        if name is not None and text is not None:
            raise ValueError("webdav: raw XML element cannot carry text directly")
        self.name = name
        self.attrs: dict[XMLName, str] = dict(attrs or {})
        self.children: list[RawXMLValue] = list(children or [])
        self.text = text

    @classmethod
    def chardata(cls, text: str) -> RawXMLValue:
        """Create a character data token."""
        return cls(text=text)

    def is_element(self) -> bool:
        return self.name is not None

    def xml_name(self) -> XMLName | None:
        """Get XML name if this is an element."""
        return self.name

    def elements(self) -> list[RawXMLValue]:
        """Child elements, skipping character data."""
        return [c for c in self.children if c.name is not None]

    def find(self, name: XMLName) -> RawXMLValue | None:
        """First child element with the given name."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def chardata_text(self) -> str:
        """Concatenated character data directly under this element."""
        if self.name is None:
            return self.text or ""
        return "".join(c.text or "" for c in self.children if c.name is None)

    def decode(self, obj_type: type[T]) -> T:
        """Decode the XML value into a registered Python type.

        Args:
            obj_type: Type to decode into

        Returns:
            Decoded object
        """
        from .codec import decode_value

        return decode_value(self, obj_type)

    @classmethod
    def from_element(cls, element: etree._Element) -> RawXMLValue:
        """Convert an lxml element, dropping comments and processing instructions."""
        children: list[RawXMLValue] = []
        if element.text:
            children.append(cls.chardata(element.text))
        for child in element:
            if isinstance(child.tag, str):
                children.append(cls.from_element(child))
            if child.tail:
                if children and children[-1].name is None:
                    # Merge text split by a dropped comment
                    children[-1].text = (children[-1].text or "") + child.tail
                else:
                    children.append(cls.chardata(child.tail))

        attrs = {XMLName.from_clark(k): v for k, v in element.attrib.items()}
        return cls(name=XMLName.from_clark(element.tag), attrs=attrs, children=children)

    def to_element(
        self,
        parent: etree._Element | None = None,
        nsmap: dict[str | None, str] | None = None,
    ) -> etree._Element:
        """Convert to an lxml element, appended to ``parent`` when given."""
        if self.name is None:
            raise ValueError("webdav: character data cannot be converted to an element")

        attrib = {str(k): v for k, v in self.attrs.items()}
        if parent is None:
            elem = etree.Element(str(self.name), attrib, nsmap=nsmap)
        else:
            elem = etree.SubElement(parent, str(self.name), attrib)

        last: etree._Element | None = None
        for child in self.children:
            if child.name is None:
                if last is None:
                    elem.text = (elem.text or "") + (child.text or "")
                else:
                    last.tail = (last.tail or "") + (child.text or "")
            else:
                last = child.to_element(elem)
        return elem

    def copy(self) -> RawXMLValue:
        """Deep copy of this token."""
        if self.name is None:
            return RawXMLValue.chardata(self.text or "")
        return RawXMLValue(
            name=self.name,
            attrs=self.attrs,
            children=[c.copy() for c in self.children],
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, RawXMLValue):
            return NotImplemented
        return (
            self.name == other.name
            and self.text == other.text
            and self.attrs == other.attrs
            and self.children == other.children
        )

    def __repr__(self) -> str:
        if self.name is None:
            return f"RawXMLValue(text={self.text!r})"
        return f"RawXMLValue(name={str(self.name)!r}, children={len(self.children)})"


def new_raw_xml_element(
    name: XMLName,
    attrs: Mapping[XMLName, str] | None = None,
    children: Iterable[RawXMLValue] | None = None,
) -> RawXMLValue:
    """Create a new raw XML element.

    Args:
        name: XML name
        attrs: Element attributes
        children: Child tokens

    Returns:
        RawXMLValue holding the element
    """
    return RawXMLValue(name=name, attrs=attrs, children=children)


def parse_document(data: bytes | str) -> etree._Element:
    """Parse an XML document into an lxml element tree.

    Raises:
        DecodeError: If the document is not well-formed XML
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    try:
        return etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise DecodeError(f"webdav: malformed XML document: {e}") from e


def serialize_document(element: etree._Element, pretty_print: bool = False) -> bytes:
    """Serialize an element tree with an XML declaration."""
    return etree.tostring(
        element, encoding="utf-8", xml_declaration=True, pretty_print=pretty_print
    )
