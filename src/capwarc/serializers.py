"""Turn captured request/response data back into HTTP message text."""

from urllib.parse import urlsplit

CRLF = "\r\n"


def header_items(headers):
    """Return ``headers`` as a list of (name, value) pairs in capture order.

    Accepts a mapping or a sequence of pairs; None gives an empty list.
    """
    if headers is None:
        return []
    if hasattr(headers, "items"):
        return [(str(k), str(v)) for k, v in headers.items()]
    return [(str(k), str(v)) for k, v in headers]


def _header_lines(pairs):
    # browsers report repeated headers joined by newlines
    lines = []
    for name, value in pairs:
        for part in value.split("\n"):
            lines.append(f"{name}: {part}{CRLF}")
    return "".join(lines)


def stringify_headers(headers):
    """Serialize headers as ``name: value`` CRLF lines."""
    return _header_lines(header_items(headers))


def stringify_request_headers(headers, host=None):
    """Serialize request headers, putting a Host header first if none was captured."""
    pairs = header_items(headers)
    if host and not any(name.lower() == "host" for name, _ in pairs):
        pairs.insert(0, ("Host", host))
    return _header_lines(pairs)


def http_request_path(url):
    """Return the request-target for ``url``: path plus query, as captured.

    Percent-encoding is kept as is and the fragment is dropped.

    Example:
        >>> http_request_path("https://example.com/a%20b?q=1#top")
        '/a%20b?q=1'
    """
    parts = urlsplit(url)
    path = parts.path or "/"
    if parts.query:
        path += "?" + parts.query
    return path
