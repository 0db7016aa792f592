"""WARC record model, reader and writer.

WARC Format Specification References:
- WARC 1.1 Annotated (primary): https://iipc.github.io/warc-specifications/specifications/warc-format/warc-1.1-annotated/
"""

from . import headers, httpheads, record, stream, writer
from .headers import parse_header_lines
from .httpheads import RequestHead, ResponseHead, parse_request_head, parse_response_head
from .record import WarcRecord, warc_datetime_str
from .stream import RecordStream, open_record_stream
from .writer import HttpMessage, WarcFileOptions, WarcInfo, WarcWriter

__all__ = [
    "WarcRecord",
    "WarcWriter",
    "WarcFileOptions",
    "WarcInfo",
    "HttpMessage",
    "RecordStream",
    "RequestHead",
    "ResponseHead",
    "open_record_stream",
    "parse_header_lines",
    "parse_request_head",
    "parse_response_head",
    "warc_datetime_str",
    "headers",
    "httpheads",
    "record",
    "stream",
    "writer",
]
