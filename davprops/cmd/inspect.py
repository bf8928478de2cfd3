"""Multistatus inspection command-line tool."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from davprops.internal import (
    MultiStatus,
    Response,
    WebDAVError,
    XMLName,
    lookup_type,
)


def _prop_names(resp: Response, wanted: list[XMLName]) -> list[XMLName]:
    if wanted:
        return wanted
    names: list[XMLName] = []
    for propstat in resp.propstats:
        for name in propstat.prop.xml_names():
            if name not in names:
                names.append(name)
    return names


def describe_response(resp: Response, wanted: list[XMLName]) -> list[str]:
    """Render one response as text lines."""
    hrefs = " ".join(resp.hrefs) or "<no href>"
    status = resp.status.to_string() if resp.status is not None else "propstat"
    lines = [f"{hrefs} [{status}]"]

    err = resp.err()
    if err is not None:
        lines.append(f"  error: {err}")
        return lines

    for name in _prop_names(resp, wanted):
        obj_type = lookup_type(name)
        if obj_type is None:
            lines.append(f"  {name}: no decoder registered")
            continue
        try:
            value = resp.decode_prop(obj_type)
        except WebDAVError as e:
            lines.append(f"  {name}: {e}")
        else:
            lines.append(f"  {name} = {value!r}")
    return lines


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the inspector."""
    parser = argparse.ArgumentParser(
        description="Decode the properties in a WebDAV multistatus document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show every known property of every response
  davprops-inspect propfind-response.xml

  # Only some properties, read from stdin
  curl ... | davprops-inspect --prop {DAV:}getetag --prop {DAV:}getcontentlength -
        """,
    )
    parser.add_argument(
        "--prop",
        action="append",
        default=[],
        metavar="NAME",
        help="property to decode, in {namespace}local notation (repeatable)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging (logs the formatted document and a summary)",
    )
    parser.add_argument(
        "file",
        help="multistatus document to read, or - for stdin",
    )

    args = parser.parse_args(argv)

    if args.file == "-":
        data = sys.stdin.buffer.read()
    else:
        path = Path(args.file)
        if not path.is_file():
            print(f"Error: file does not exist: {path}", file=sys.stderr)
            sys.exit(1)
        data = path.read_bytes()

    try:
        wanted = [XMLName.from_clark(name) for name in args.prop]
        ms = MultiStatus.from_bytes(data)
    except WebDAVError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.debug:
        from davprops.debug import format_xml, log_multistatus, logger, setup_debug_logging

        setup_debug_logging()
        logger.debug(format_xml(data))
        log_multistatus(ms)

    if ms.response_description:
        print(ms.response_description)
    for resp in ms.responses:
        for line in describe_response(resp, wanted):
            print(line)


if __name__ == "__main__":
    main()
