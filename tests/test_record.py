"""Tests for the WARC record model."""

import re
from datetime import datetime, timedelta, timezone

import pytest

from capwarc.warcrecords import WarcRecord, warc_datetime_str


def warc_header(record_type, *extra, length=0):
    return [
        b"WARC/1.0\r\n",
        f"WARC-Type: {record_type}\r\n".encode(),
        b"WARC-Record-ID: <urn:uuid:00000000-0000-0000-0000-000000000001>\r\n",
        b"WARC-Date: 2024-05-01T12:00:00Z\r\n",
        *extra,
        f"Content-Length: {length}\r\n".encode(),
    ]


def test_response_record():
    http = [b"HTTP/1.1 200 OK\r\n", b"Content-Type: text/plain\r\n", b"Content-Length: 5\r\n", b"\r\n"]
    body = [b"hel", b"lo"]
    length = len(b"".join(http + body))
    record = WarcRecord.response(
        warc_header(
            "response",
            b"WARC-Target-URI: http://example.com/\r\n",
            b"WARC-Concurrent-To: <urn:uuid:00000000-0000-0000-0000-000000000000>\r\n",
            b"Content-Type: application/http; msgtype=response\r\n",
            length=length,
        ),
        http,
        body,
    )
    assert record.type == WarcRecord.RESPONSE
    assert record.warc_type == "response"
    assert record.record_id == "<urn:uuid:00000000-0000-0000-0000-000000000001>"
    assert record.warc_date == "2024-05-01T12:00:00Z"
    assert record.target_uri == "http://example.com/"
    assert record.concurrent_to == "<urn:uuid:00000000-0000-0000-0000-000000000000>"
    assert record.warc_content_type == "application/http; msgtype=response"
    assert record.warc_content_length == length
    assert record.content.status_code == 200
    assert record.content.headers["Content-Length"] == 5
    assert record.content.body == b"hello"
    assert record.block == b"".join(http + body)
    assert record.errors == []


def test_post_request_keeps_post_data():
    http = [b"POST /form HTTP/1.1\r\n", b"Host: example.com\r\n", b"\r\n"]
    record = WarcRecord.request(warc_header("request"), http, [b"a=1", b"&b=2"])
    assert record.content.method == "POST"
    assert record.content.path == "/form"
    assert record.content.post_data == b"a=1&b=2"


def test_lowercase_post_method_keeps_post_data():
    http = [b"post /form HTTP/1.1\r\n", b"\r\n"]
    record = WarcRecord.request(warc_header("request"), http, [b"x"])
    assert record.content.post_data == b"x"


def test_get_request_has_no_post_data():
    http = [b"GET / HTTP/1.1\r\n", b"Host: example.com\r\n", b"\r\n"]
    record = WarcRecord.request(warc_header("request"), http, [b"ignored"])
    assert record.content.method == "GET"
    assert record.content.post_data is None


def test_warcinfo_record_parses_fields():
    content = [b"software: capwarc/0.1.0\r\n", b"format: WARC File Format 1.0\r\n"]
    record = WarcRecord.warcinfo(
        warc_header("warcinfo", b"WARC-Filename: crawl.warc\r\n"),
        content,
    )
    assert record.warc_filename == "crawl.warc"
    assert record.content == {"software": "capwarc/0.1.0", "format": "WARC File Format 1.0"}


def test_metadata_record_concurrent_to():
    record = WarcRecord.metadata(
        warc_header("metadata", b"WARC-Concurrent-To: <urn:uuid:abc>\r\n"),
        [b"operator: alice\r\n"],
    )
    assert record.concurrent_to == "<urn:uuid:abc>"
    assert record.content == {"operator": "alice"}


def test_record_type_must_match_header():
    with pytest.raises(ValueError):
        WarcRecord("request", warc_header("response"), [], [])


def test_unknown_record_type():
    with pytest.raises(ValueError):
        WarcRecord("resource", warc_header("resource"), [])


def test_missing_warc_type_is_reported():
    record = WarcRecord.metadata([b"WARC-Record-ID: <urn:uuid:x>\r\n", b"Content-Length: 0\r\n"], [])
    assert record.warc_type is None
    assert record.version == WarcRecord.VERSION
    assert ("missing mandatory field", "WARC-Type") in record.errors


def test_malformed_warc_header_line_is_dropped():
    header = warc_header("metadata", b"garbage line\r\n")
    record = WarcRecord.metadata(header, [])
    assert record.record_id == "<urn:uuid:00000000-0000-0000-0000-000000000001>"
    assert ("malformed header line", "garbage line") in record.errors


def test_to_bytes_reframes_record():
    header = warc_header("metadata", b"Content-Type: application/warc-fields\r\n", length=17)
    record = WarcRecord.metadata(header, [b"operator: alice\r\n"])
    assert record.to_bytes() == b"".join(header) + b"\r\noperator: alice\r\n\r\n\r\n"


def test_random_warc_uuid():
    first = WarcRecord.random_warc_uuid()
    assert re.match(r"^<urn:uuid:[0-9a-f-]{36}>$", first)
    assert first != WarcRecord.random_warc_uuid()


def test_warc_datetime_str():
    assert warc_datetime_str(datetime(2024, 1, 2, 3, 4, 5, 678)) == "2024-01-02T03:04:05Z"
    plus_two = timezone(timedelta(hours=2))
    assert warc_datetime_str(datetime(2024, 1, 2, 5, 4, 5, tzinfo=plus_two)) == "2024-01-02T03:04:05Z"
    assert re.match(r"^\d{4}-\d\d-\d\dT\d\d:\d\d:\d\dZ$", warc_datetime_str())
