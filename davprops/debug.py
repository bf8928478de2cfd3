"""Debug logging utilities for multistatus documents."""

from __future__ import annotations

import logging

from lxml import etree

from .internal import MultiStatus, Status

logger = logging.getLogger("davprops")


def format_xml(xml_bytes: bytes | str) -> str:
    """Format XML with proper indentation.

    Args:
        xml_bytes: XML content as bytes or string

    Returns:
        Pretty-formatted XML string
    """
    if isinstance(xml_bytes, str):
        xml_bytes = xml_bytes.encode("utf-8")

    try:
        # Parse and pretty-print XML
        parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)
        root = etree.fromstring(xml_bytes, parser)
    except etree.XMLSyntaxError:
        # If parsing fails, return as-is
        return xml_bytes.decode("utf-8", errors="replace")
    return etree.tostring(root, pretty_print=True, encoding="unicode")


def _status_str(status: Status | None) -> str:
    if status is None:
        return "-"
    return f"{status.code} {status.text}".strip()


def log_multistatus(ms: MultiStatus) -> None:
    """Log a summary of a multistatus: one line per response and propstat."""
    logger.info("=" * 80)
    logger.info(f"MULTISTATUS: {len(ms.responses)} response(s)")
    if ms.response_description:
        logger.info(f"  description: {ms.response_description}")
    logger.info("-" * 80)

    for resp in ms.responses:
        hrefs = " ".join(resp.hrefs) or "<no href>"
        logger.info(f"{hrefs} [{_status_str(resp.status)}]")
        for propstat in resp.propstats:
            names = ", ".join(str(name) for name in propstat.prop.xml_names())
            logger.info(f"  {_status_str(propstat.status)}: {names}")
        if resp.location is not None:
            logger.info(f"  location: {resp.location.href}")

    logger.info("=" * 80)


def setup_debug_logging() -> None:
    """Configure debug logging for davprops."""
    # Configure logger
    logger.setLevel(logging.DEBUG)

    # Create console handler with custom formatter
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)

    # Simple format - just the message (since we format the logs ourselves)
    formatter = logging.Formatter("%(message)s")
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Prevent propagation to avoid duplicate logs
    logger.propagate = False
