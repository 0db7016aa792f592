"""Shared fixtures for capwarc tests."""

import base64
import json
import tempfile
from pathlib import Path

import pytest


class FailingStream:
    """A writable stream whose writes fail, like a full disk."""

    def __init__(self):
        self.flushed = False

    def tell(self):
        return 0

    def write(self, data):
        raise OSError(28, "No space left on device")

    def flush(self):
        self.flushed = True


class FlushFailingStream:
    """A writable stream that accepts writes but cannot flush them."""

    def __init__(self):
        self.written = []
        self.closed = False

    def tell(self):
        return 0

    def write(self, data):
        self.written.append(data)

    def flush(self):
        raise OSError(5, "Input/output error")

    def close(self):
        self.closed = True


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def har_document():
    """A small HAR capture: one page, a gzip'd HTML response, a POST without response."""
    html = b"<html><body>" + b"x" * 200 + b"</body></html>"
    return {
        "log": {
            "version": "1.2",
            "pages": [
                {
                    "id": "page_1",
                    "title": "Example",
                    "startedDateTime": "2024-05-01T12:00:00.000Z",
                }
            ],
            "entries": [
                {
                    "pageref": "page_1",
                    "request": {
                        "method": "GET",
                        "url": "https://example.com/index.html?lang=en",
                        "headers": [
                            {"name": ":authority", "value": "example.com"},
                            {"name": "Accept", "value": "text/html"},
                        ],
                    },
                    "response": {
                        "status": 200,
                        "statusText": "OK",
                        "headers": [
                            {"name": "Content-Type", "value": "text/html"},
                            {"name": "Content-Encoding", "value": "gzip"},
                            {"name": "Content-Length", "value": "57"},
                        ],
                        "content": {
                            "mimeType": "text/html",
                            "text": base64.b64encode(html).decode("ascii"),
                            "encoding": "base64",
                        },
                    },
                },
                {
                    "pageref": "page_1",
                    "request": {
                        "method": "POST",
                        "url": "https://example.com/api/log",
                        "headers": [{"name": "Content-Type", "value": "application/json"}],
                        "postData": {"mimeType": "application/json", "text": '{"event": "view"}'},
                    },
                    "response": {"status": 0, "headers": [], "content": {}},
                },
                {
                    "pageref": "page_1",
                    "request": {
                        "method": "GET",
                        "url": "data:image/png;base64,iVBORw0KGgo=",
                        "headers": [],
                    },
                    "response": {"status": 200, "headers": [], "content": {"text": ""}},
                },
            ],
        }
    }


@pytest.fixture
def har_file(temp_dir, har_document):
    path = temp_dir / "capture.har"
    path.write_text(json.dumps(har_document), encoding="utf-8")
    return path


@pytest.fixture
def failing_stream():
    return FailingStream()


@pytest.fixture
def flush_failing_stream():
    return FlushFailingStream()
