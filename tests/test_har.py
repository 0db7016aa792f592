"""Tests for the HAR capture source."""

import asyncio

from capwarc.har import HarCapture


def test_requests_from_har(har_file):
    capture = HarCapture(har_file)
    requests = list(capture.iter_requests())

    assert [r.url for r in requests] == [
        "https://example.com/index.html?lang=en",
        "https://example.com/api/log",
        "data:image/png;base64,iVBORw0KGgo=",
    ]
    page = requests[0]
    assert page.method == "GET"
    assert page.headers == [("Accept", "text/html")]
    assert page.response.status == 200
    assert page.response.status_text == "OK"
    body = asyncio.run(page.response.body())
    assert body.startswith(b"<html><body>xxx")


def test_status_zero_means_no_response(har_document):
    requests = list(HarCapture(har_document))
    beacon = requests[1]
    assert beacon.method == "POST"
    assert beacon.post_data == '{"event": "view"}'
    assert beacon.response is None


def test_pages(har_document):
    pages = HarCapture(har_document).pages()
    assert pages == [
        {
            "title": "Example",
            "url": "https://example.com/index.html?lang=en",
            "timestamp": "2024-05-01T12:00:00.000Z",
        }
    ]


def test_empty_har():
    capture = HarCapture({"log": {}})
    assert list(capture) == []
    assert capture.pages() == []
