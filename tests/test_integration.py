"""Integration tests for capwarc - capture, write, index and read back."""

import asyncio

import pytest
from click.testing import CliRunner

from capwarc import warcindex
from capwarc.capture import CapturedRequest, CapturedResponse, static_body
from capwarc.generator import GenerationOptions, WarcGenerator, WarcMetadata
from capwarc.har import HarCapture
from capwarc.warcrecords import WarcFileOptions, WarcInfo, WarcRecord, WarcWriter, open_record_stream


@pytest.fixture
def sample_warc_file(temp_dir):
    """Create a sample WARC file with multiple record types."""
    warc_file = temp_dir / "test.warc"
    capture = [
        CapturedRequest(
            "http://example.com/page1",
            "GET",
            {"Accept": "text/html"},
            response=CapturedResponse(
                200,
                {"Content-Type": "text/html", "Content-Encoding": "br"},
                static_body(b"<html>Hello World</html>"),
            ),
        ),
        CapturedRequest(
            "http://example.com/page2",
            "POST",
            {"Content-Type": "application/json"},
            post_data='{"key": "value"}',
            response=CapturedResponse(201, {"Content-Type": "application/json"}, static_body(b"{}")),
        ),
    ]
    options = GenerationOptions(
        WarcFileOptions(warc_file, write_info=True),
        winfo=WarcInfo(description="integration"),
        metadata=WarcMetadata("urn:capwarc:test", {"run": "1"}),
    )
    asyncio.run(WarcGenerator().generate_warc(capture, options))
    return warc_file


def test_sample_archive_contents(sample_warc_file):
    with open_record_stream(str(sample_warc_file)) as fh:
        records = list(fh)

    assert [r.type for r in records] == [
        WarcRecord.WARCINFO,
        WarcRecord.METADATA,
        WarcRecord.REQUEST,
        WarcRecord.RESPONSE,
        WarcRecord.REQUEST,
        WarcRecord.RESPONSE,
    ]
    page1 = records[3].content
    assert page1.status_code == 200
    assert page1.status_reason == "OK"
    assert page1.body == b"<html>Hello World</html>"
    assert page1.headers == {"Content-Type": "text/html", "Content-Length": 24}

    post = records[4].content
    assert post.method == "POST"
    assert post.path == "/page2"
    assert post.headers["Host"] == "example.com"
    assert post.post_data == b'{"key": "value"}'
    assert records[5].content.status_reason == "Created"


def test_index_offsets_seek_to_records(sample_warc_file):
    result = CliRunner().invoke(warcindex.main, [str(sample_warc_file)])
    assert result.exit_code == 0

    for line in result.output.splitlines()[1:]:
        name, offset, warc_type, target_uri, record_id = line.split(" ")[:5]
        with open_record_stream(name, offset=int(offset)) as fh:
            [(_, record, errors)] = list(fh.read_records(limit=1))
        assert errors == []
        assert record.type == warc_type
        assert record.record_id == record_id
        assert (record.target_uri or "-") == target_uri


def test_har_to_warc(har_file, temp_dir):
    warc_file = temp_dir / "har.warc"
    writer = WarcWriter()
    report = asyncio.run(
        WarcGenerator(writer).generate_warc(HarCapture(har_file), GenerationOptions(warc_file))
    )

    assert report.archived == 2
    assert report.skipped == 1
    assert writer.finished
    with open_record_stream(str(warc_file)) as fh:
        records = list(fh)
    assert [r.target_uri for r in records] == [
        "https://example.com/index.html?lang=en",
        "https://example.com/index.html?lang=en",
        "https://example.com/api/log",
    ]
    request = records[0].content
    assert request.path == "/index.html?lang=en"
    assert list(request.headers) == ["Host", "Accept"]
