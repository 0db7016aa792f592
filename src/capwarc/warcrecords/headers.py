"""Header line codec shared by WARC header blocks and HTTP messages.

Both a WARC record's named fields and an HTTP message's header fields are
written one per line as ``name: value``. The caller splits the raw bytes into
lines; this module turns those lines into an ordered mapping.
"""

import logging
import re

from capwarc.errors import MalformedHeaderLine

logger = logging.getLogger(__name__)

CRLF = b"\r\n"

# token is a run of non-colon, non-whitespace characters; a bare "Name:" is
# accepted with an empty value
header_rx = re.compile(r"^(?P<name>[^:\s]+):(?: (?P<value>.*))?$")


def decode_line(line):
    """Return ``line`` as trimmed text, replacing undecodable UTF-8 bytes."""
    if isinstance(line, (bytes, bytearray)):
        line = bytes(line).decode("utf-8", errors="replace")
    return line.strip()


def parse_header_lines(lines, on_error=None):
    """Parse header lines into an ordered mapping.

    A line that does not match the header grammar is left out of the mapping
    and reported, never raised: parsing always continues with the next line.

    Args:
        lines: Iterable of bytes or str, one header line each
        on_error: Optional callable invoked with a MalformedHeaderLine for
            each unparsed line

    Returns:
        tuple: (headers, errors) where headers is a dict of name to value in
        the order first seen and errors is a list of error tuples

    Example:
        >>> parse_header_lines([b"Host: example.com", b"junk"])
        ({'Host': 'example.com'}, [('malformed header line', 'junk')])
    """
    headers = {}
    errors = []
    for raw in lines:
        line = decode_line(raw)
        if not line:
            continue
        match = header_rx.match(line)
        if match:
            headers[match.group("name")] = (match.group("value") or "").strip()
        else:
            logger.debug("dropping malformed header line %r", line)
            errors.append(("malformed header line", line))
            if on_error is not None:
                on_error(MalformedHeaderLine(line))
    return headers, errors


def find_header(headers, name):
    """Return the first key of ``headers`` matching ``name`` case insensitively."""
    name = name.lower()
    for key in headers:
        if key.lower() == name:
            return key
    return None


def parse_content_length(headers, errors):
    """Convert a Content-Length value in ``headers`` to an int, in place.

    A value that is not a non-negative integer is removed from the mapping and
    reported in ``errors``.
    """
    key = find_header(headers, "Content-Length")
    if key is None:
        return headers
    value = headers[key]
    if isinstance(value, int):
        return headers
    try:
        length = int(value)
        if length < 0:
            raise ValueError(value)
        headers[key] = length
    except ValueError:
        del headers[key]
        errors.append(("invalid content-length", value))
    return headers


def serialize_warc_fields(fields):
    """Serialize a mapping as ``application/warc-fields`` bytes.

    Fields with an empty value are left out.
    """
    out = []
    for name, value in fields.items():
        if value is None or value == "":
            continue
        out.append(f"{name}: {value}".encode("utf-8"))
        out.append(CRLF)
    return b"".join(out)
