"""The WARC record model.

A record is one framed unit of a WARC file: a version line, named fields, a
blank line, the content block and a CRLF CRLF trailer. This module models the
four record types written for a browser capture (warcinfo, metadata, request,
response) as a single class whose ``content`` depends on the type.

WARC Format Specification References:
- WARC 1.1 Annotated (primary): https://iipc.github.io/warc-specifications/specifications/warc-format/warc-1.1-annotated/
- File and record model: https://iipc.github.io/warc-specifications/specifications/warc-format/warc-1.1-annotated/#file-and-record-model
"""

import re
import uuid
from datetime import datetime, timezone

from capwarc.warcrecords.headers import (
    CRLF,
    decode_line,
    parse_content_length,
    parse_header_lines,
)
from capwarc.warcrecords.httpheads import parse_request_head, parse_response_head

strip = re.compile(rb"[^\w\t \|\\\/]")
version_rx = re.compile(r"^WARC/(?P<number>\S+)$")


def add_headers(**kwargs):
    """Decorator helper for defining header name constants on a record class.

    Sets a class attribute for each header name and keeps the list of
    constant names in ``_HEADERS``.

    Example:
        @add_headers(
            TYPE="WARC-Type",
            DATE="WARC-Date",
        )
        class WarcRecord:
            pass
    """

    def _add_headers(cls):
        for k, v in kwargs.items():
            setattr(cls, k, v)
        cls._HEADERS = list(kwargs.keys())
        return cls

    return _add_headers


def frame_record(version, headers, block):
    """Return the exact bytes of one record.

    ``headers`` is an iterable of (name, value) pairs, written in order as
    ``name: value`` lines. ``block`` is written verbatim.

    See WARC 1.1 Section 4:
    version CRLF *named-field CRLF block CRLF CRLF
    """
    out = [version.encode("ascii"), CRLF]
    for name, value in headers:
        out.append(f"{name}: {value}".encode("utf-8"))
        out.append(CRLF)
    out.append(CRLF)  # end of header blank nl
    out.append(block)
    out.append(WarcRecord.TRAILER)
    return b"".join(out)


def _join(buffer_lists):
    return b"".join(b"".join(buffers) for buffers in buffer_lists)


@add_headers(
    TYPE="WARC-Type",
    ID="WARC-Record-ID",
    DATE="WARC-Date",
    CONTENT_TYPE="Content-Type",
    CONTENT_LENGTH="Content-Length",
    URL="WARC-Target-URI",
    CONCURRENT_TO="WARC-Concurrent-To",
    FILENAME="WARC-Filename",
)
class WarcRecord:
    """A parsed WARC record.

    ``warc_header`` maps field names, case preserved, to string values except
    Content-Length, which is an int. ``content`` depends on ``type``:

    - warcinfo, metadata: dict of the ``key: value`` fields in the block
    - request: a RequestHead; its post_data is set only for POST requests
    - response: a ResponseHead owning the body bytes

    ``block`` is the content block exactly as supplied. ``errors`` collects
    problems found while parsing; none of them are raised.
    """

    # pylint: disable-msg=E1101

    VERSION = "WARC/1.0"

    WARCINFO = "warcinfo"
    METADATA = "metadata"
    REQUEST = "request"
    RESPONSE = "response"
    RECORD_TYPES = (WARCINFO, METADATA, REQUEST, RESPONSE)

    WARC_FIELDS_TYPE = "application/warc-fields"
    HTTP_REQUEST_TYPE = "application/http; msgtype=request"
    HTTP_RESPONSE_TYPE = "application/http; msgtype=response"

    TRAILER = b"\r\n\r\n"

    def __init__(self, record_type, header_buffers, *content_buffers):
        """Build a record from raw header lines and content buffer lists.

        Args:
            record_type: One of RECORD_TYPES
            header_buffers: WARC header lines, optionally starting with the
                version line
            *content_buffers: Lists of content buffers. warcinfo and metadata
                take one list; request takes HTTP head lines then post data
                buffers; response takes HTTP head lines then body buffers.

        Raises:
            ValueError: if record_type is unknown or disagrees with the
                WARC-Type field of the header
        """
        if record_type not in self.RECORD_TYPES:
            raise ValueError(f"unknown record type {record_type!r}")
        self.type = record_type
        self.errors = []
        self.version = self.VERSION

        header_lines = list(header_buffers)
        if header_lines:
            match = version_rx.match(decode_line(header_lines[0]))
            if match:
                self.version = match.group(0)
                header_lines = header_lines[1:]
        warc_header, errors = parse_header_lines(header_lines)
        self.warc_header = parse_content_length(warc_header, errors)
        self.errors.extend(errors)

        declared = self.warc_header.get(self.TYPE)
        if declared is None:
            self.error("missing mandatory field", self.TYPE)
        elif declared != record_type:
            raise ValueError(f"{self.TYPE} {declared!r} does not match record type {record_type!r}")

        self.block = _join(content_buffers)
        self.content = self._parse_content(content_buffers)

    def _parse_content(self, content_buffers):
        if self.type == self.REQUEST:
            http_buffers, payload = self._split_http(content_buffers)
            head = parse_request_head(http_buffers)
            if head.method is not None and head.method.lower() == "post":
                head.post_data = payload
            self.errors.extend(head.errors)
            return head
        elif self.type == self.RESPONSE:
            http_buffers, payload = self._split_http(content_buffers)
            head = parse_response_head(http_buffers, body=payload)
            self.errors.extend(head.errors)
            return head
        else:
            fields, errors = parse_header_lines(self.block.splitlines())
            self.errors.extend(errors)
            return fields

    @staticmethod
    def _split_http(content_buffers):
        http_buffers = list(content_buffers[0]) if content_buffers else []
        return http_buffers, _join(content_buffers[1:])

    @classmethod
    def warcinfo(cls, header_buffers, content_buffers):
        return cls(cls.WARCINFO, header_buffers, content_buffers)

    @classmethod
    def metadata(cls, header_buffers, content_buffers):
        return cls(cls.METADATA, header_buffers, content_buffers)

    @classmethod
    def request(cls, header_buffers, http_buffers, post_buffers=()):
        return cls(cls.REQUEST, header_buffers, http_buffers, post_buffers)

    @classmethod
    def response(cls, header_buffers, http_buffers, body_buffers=()):
        return cls(cls.RESPONSE, header_buffers, http_buffers, body_buffers)

    def error(self, *args):
        self.errors.append(args)

    def get_header(self, name):
        return self.warc_header.get(name)

    @property
    def warc_type(self):
        return self.get_header(self.TYPE)

    @property
    def record_id(self):
        return self.get_header(self.ID)

    @property
    def warc_date(self):
        return self.get_header(self.DATE)

    @property
    def warc_content_type(self):
        return self.get_header(self.CONTENT_TYPE)

    @property
    def warc_content_length(self):
        return self.get_header(self.CONTENT_LENGTH)

    @property
    def warc_filename(self):
        return self.get_header(self.FILENAME)

    @property
    def target_uri(self):
        return self.get_header(self.URL)

    @property
    def concurrent_to(self):
        return self.get_header(self.CONCURRENT_TO)

    def to_bytes(self):
        """Reframe the record from its header mapping and block."""
        return frame_record(self.version, self.warc_header.items(), self.block)

    def write_to(self, out):
        out.write(self.to_bytes())

    def dump(self, content=True):
        print("Headers:")
        for h, v in self.warc_header.items():
            print(f"\t{h}:{v}")
        if content and self.block:
            print("Content Headers:")
            if self.type in (self.REQUEST, self.RESPONSE):
                print("\t" + (self.content.start_line or ""))
                for h, v in self.content.headers.items():
                    print(f"\t{h}:{v}")
            else:
                for h, v in self.content.items():
                    print(f"\t{h}:{v}")
            print("Content:")
            ln = min(1024, len(self.block))
            abbr_strp_content = strip.sub(
                lambda x: (f"\\x{ord(x.group()):0X}").encode("ascii"),
                self.block[:ln],
            )
            print("\t" + abbr_strp_content.decode("ascii"))
            print("\t...")
            print()
        else:
            print("Content: none")
            print()
            print()
        if self.errors:
            print("Errors:")
            for e in self.errors:
                print("\t" + repr(e))

    def __repr__(self):
        return f"<WarcRecord {self.type} {self.record_id}>"

    @staticmethod
    def random_warc_uuid():
        """Generate a random WARC-Record-ID of the form ``<urn:uuid:...>``.

        See WARC 1.1 Section 5.2:
        https://iipc.github.io/warc-specifications/specifications/warc-format/warc-1.1-annotated/#warc-record-id
        """
        return f"<urn:uuid:{uuid.uuid4()}>"


def warc_datetime_str(d=None):
    """Format a datetime as a WARC-Date string, ``YYYY-MM-DDThh:mm:ssZ``.

    Naive datetimes are taken to be UTC; ``None`` means now.

    See WARC 1.1 Section 5.3: https://iipc.github.io/warc-specifications/specifications/warc-format/warc-1.1-annotated/#warc-date
    """
    if d is None:
        d = datetime.now(timezone.utc)
    elif d.tzinfo is not None:
        d = d.astimezone(timezone.utc)
    return d.strftime("%Y-%m-%dT%H:%M:%SZ")
