"""HTTP request and response heads carried inside request/response records.

Parsing is tolerant: a start line that cannot be split leaves the affected
fields as None and records an error, so the header fields can still be
inspected.
"""

from capwarc.errors import MalformedStartLine
from capwarc.warcrecords.headers import (
    CRLF,
    decode_line,
    parse_content_length,
    parse_header_lines,
)


class HttpHead:
    """Start line plus header fields of an HTTP message."""

    def __init__(self, headers=None, http_version=None, errors=None):
        self.headers = headers if headers is not None else {}
        self.http_version = http_version
        self.errors = errors if errors is not None else []

    def error(self, *args):
        self.errors.append(args)

    @property
    def start_line(self):
        raise NotImplementedError

    @property
    def payload(self):
        raise NotImplementedError

    def to_bytes(self):
        """Serialize back to message bytes: start line, headers, blank line, payload."""
        out = [(self.start_line or "").encode("utf-8"), CRLF]
        for name, value in self.headers.items():
            out.append(f"{name}: {value}".encode("utf-8"))
            out.append(CRLF)
        out.append(CRLF)
        out.append(self.payload or b"")
        return b"".join(out)


class RequestHead(HttpHead):
    def __init__(
        self,
        method=None,
        path=None,
        http_version=None,
        headers=None,
        post_data=None,
        request_line=None,
        errors=None,
    ):
        HttpHead.__init__(self, headers, http_version, errors)
        self.method = method
        self.path = path
        self.post_data = post_data
        self.request_line = request_line

    @property
    def start_line(self):
        return self.request_line

    @property
    def payload(self):
        return self.post_data

    def __repr__(self):
        return f"<RequestHead {self.method} {self.path} {self.http_version}>"


class ResponseHead(HttpHead):
    def __init__(
        self,
        http_version=None,
        status_code=None,
        status_reason=None,
        headers=None,
        body=b"",
        status_line=None,
        errors=None,
    ):
        HttpHead.__init__(self, headers, http_version, errors)
        self.status_code = status_code
        self.status_reason = status_reason
        self.body = body
        self.status_line = status_line

    @property
    def start_line(self):
        return self.status_line

    @property
    def payload(self):
        return self.body

    def __repr__(self):
        return f"<ResponseHead {self.http_version} {self.status_code} {self.status_reason}>"


def _split_start(lines):
    lines = list(lines)
    if not lines:
        return None, []
    return decode_line(lines[0]), lines[1:]


def _start_line_error(head, message, line, on_error):
    head.error(message, line)
    if on_error is not None:
        on_error(MalformedStartLine(line))


def parse_request_head(lines, post_data=None, on_error=None):
    """Parse ``METHOD PATH VERSION`` plus header lines into a RequestHead.

    The method is kept in the case it was captured in. If the request line
    does not have exactly three tokens, the tokens present are assigned in
    order and the rest stay None. ``on_error`` is called with a
    MalformedStartLine or MalformedHeaderLine for each problem found.
    """
    request_line, header_lines = _split_start(lines)
    head = RequestHead(request_line=request_line, post_data=post_data)

    tokens = request_line.split(" ") if request_line else []
    if len(tokens) != 3:
        _start_line_error(head, "malformed request line", request_line, on_error)
    tokens = tokens[:3] + [None] * (3 - len(tokens[:3]))
    head.method, head.path, head.http_version = tokens

    head.headers, errors = parse_header_lines(header_lines, on_error)
    head.errors.extend(errors)
    return head


def parse_response_head(lines, body=b"", on_error=None):
    """Parse ``VERSION STATUS REASON`` plus header lines into a ResponseHead.

    The reason phrase is everything after the second space and may itself
    contain spaces. Content-Length is converted to an int; all other header
    values remain strings. ``on_error`` is used as in parse_request_head.
    """
    status_line, header_lines = _split_start(lines)
    head = ResponseHead(status_line=status_line, body=body)

    if status_line:
        parts = status_line.split(" ", 2)
    else:
        parts = []
    if len(parts) >= 1:
        head.http_version = parts[0]
    if len(parts) >= 2:
        try:
            head.status_code = int(parts[1])
        except ValueError:
            _start_line_error(head, "malformed status line", status_line, on_error)
        else:
            head.status_reason = parts[2] if len(parts) == 3 else ""
    else:
        _start_line_error(head, "malformed status line", status_line, on_error)

    headers, errors = parse_header_lines(header_lines, on_error)
    head.headers = parse_content_length(headers, errors)
    head.errors.extend(errors)
    return head
