"""Read captured transactions from a HAR 1.2 file.

HAR (HTTP Archive) is what browsers export from their network panel, so it
serves as a capture source when no browser is driven directly. Entries whose
response status is 0 never got a response and are archived as requests only.
"""

import base64
import json
import logging
from pathlib import Path

from capwarc.capture import CapturedRequest, CapturedResponse, static_body

logger = logging.getLogger(__name__)


def _pairs(headers):
    # HTTP/2 pseudo-headers (":authority" etc.) have no HTTP/1.1 form
    return [
        (h.get("name", ""), h.get("value", ""))
        for h in headers or []
        if not h.get("name", "").startswith(":")
    ]


def _decode_content(content):
    text = content.get("text")
    if text is None:
        return b""
    if content.get("encoding") == "base64":
        return base64.b64decode(text)
    return text.encode("utf-8")


class HarCapture:
    """A capture source backed by a HAR document.

    Args:
        har: Path to a HAR file, or an already loaded HAR dict
    """

    def __init__(self, har):
        if isinstance(har, (str, Path)):
            with open(har, encoding="utf-8") as f:
                har = json.load(f)
        self.log = har.get("log", {})

    @property
    def entries(self):
        return self.log.get("entries", [])

    def iter_requests(self):
        for entry in self.entries:
            yield self._request(entry)

    def __iter__(self):
        return self.iter_requests()

    def _request(self, entry):
        req = entry.get("request", {})
        post = req.get("postData") or {}
        request = CapturedRequest(
            url=req.get("url", ""),
            method=req.get("method", "GET"),
            headers=_pairs(req.get("headers")),
            post_data=post.get("text"),
        )
        res = entry.get("response") or {}
        if res.get("status"):
            request.response = CapturedResponse(
                status=res["status"],
                headers=_pairs(res.get("headers")),
                body=static_body(_decode_content(res.get("content") or {})),
                status_text=res.get("statusText") or None,
            )
        return request

    def pages(self):
        """Return the HAR pages as Webrecorder bookmark dicts.

        A page's URL is that of the first entry referring to it, falling back
        to the page title.
        """
        first_urls = {}
        for entry in self.entries:
            ref = entry.get("pageref")
            if ref and ref not in first_urls:
                first_urls[ref] = entry.get("request", {}).get("url")
        pages = []
        for page in self.log.get("pages", []):
            title = page.get("title", "")
            pages.append(
                {
                    "title": title,
                    "url": first_urls.get(page.get("id")) or title,
                    "timestamp": page.get("startedDateTime"),
                }
            )
        logger.debug("found %d pages", len(pages))
        return pages
