"""Generate a WARC file from a capture source.

Transactions are archived one at a time in capture order. Each one gives a
request record, or a request record and a response record linked by
WARC-Concurrent-To. Problems with a single transaction are logged and the
transaction is skipped; a failure of the output stream ends the run.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from http import HTTPStatus
from typing import Optional
from urllib.parse import urlsplit

from capwarc.errors import (
    ArchiveStreamError,
    BodyRetrievalFailure,
    BodyRetrievalTimeout,
    ClosedArchiveError,
    TransactionProcessingError,
)
from capwarc.serializers import (
    CRLF,
    header_items,
    http_request_path,
    stringify_headers,
    stringify_request_headers,
)
from capwarc.warcrecords.writer import HttpMessage, WarcFileOptions, WarcWriter

logger = logging.getLogger(__name__)

DEFAULT_BODY_TIMEOUT = 1.0

COMPRESSED_CODINGS = {"gzip", "x-gzip", "deflate", "br", "compress", "x-compress", "zstd"}


class WarcMetadata:
    """A metadata record to write at the start of the archive."""

    def __init__(self, target_uri, content):
        self.target_uri = target_uri
        self.content = content


class GenerationOptions:
    """What to write besides the captured transactions.

    Args:
        warc_opts: WarcFileOptions for the output file
        winfo: Optional WarcInfo (or mapping) for a leading warcinfo record
        metadata: Optional WarcMetadata
        pages: Optional list of page dicts for a Webrecorder bookmarks record
    """

    def __init__(self, warc_opts, winfo=None, metadata=None, pages=None):
        if not isinstance(warc_opts, WarcFileOptions):
            warc_opts = WarcFileOptions(warc_opts)
        self.warc_opts = warc_opts
        self.winfo = winfo
        self.metadata = metadata
        self.pages = pages


@dataclass
class GenerationReport:
    archived: int = 0
    skipped: int = 0
    records: int = 0
    cancelled: bool = False
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def summary(self) -> str:
        text = f"archived {self.archived}, skipped {self.skipped}"
        if self.cancelled:
            text += " (stopped early)"
        if self.error is not None:
            text += f"; archive failed: {self.error}"
        return text


def status_text(code):
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


def is_data_uri(url):
    return url[:5].lower() == "data:"


def _is_compressed(value):
    codings = {coding.strip().lower() for coding in value.split(",")}
    return bool(codings & COMPRESSED_CODINGS)


def normalize_response_headers(headers, body):
    """Make response headers describe the body as it is stored.

    The capture source hands over decoded bodies, so a Content-Encoding naming
    a compression coding is dropped and Content-Length is replaced with the
    length of ``body``.

    Example:
        >>> normalize_response_headers({"content-encoding": "gzip", "content-length": "523"}, b"x" * 1200)
        [('Content-Length', '1200')]
    """
    pairs = []
    for name, value in header_items(headers):
        lname = name.lower()
        if lname == "content-length":
            continue
        if lname == "content-encoding" and _is_compressed(value):
            continue
        pairs.append((name, value))
    pairs.append(("Content-Length", str(len(body))))
    return pairs


def _stopped(stop_event, report):
    if stop_event is not None and stop_event.is_set():
        logger.info("stop requested, finishing archive early")
        report.cancelled = True
        return True
    return False


async def _iterate(capture):
    if hasattr(capture, "iter_requests"):
        capture = capture.iter_requests()
    if hasattr(capture, "__aiter__"):
        async for request in capture:
            yield request
    else:
        for request in capture:
            yield request


class WarcGenerator:
    """Write the transactions of a capture source to a WARC file.

    Args:
        writer: WarcWriter to use, a new one by default
        body_timeout: Seconds to wait for each response body; None waits
            indefinitely. A body that does not arrive in time is stored empty.
    """

    def __init__(self, writer=None, body_timeout=DEFAULT_BODY_TIMEOUT):
        self.writer = writer if writer is not None else WarcWriter()
        self.body_timeout = body_timeout
        self.report = None

    async def generate_warc(self, capture, options, stop_event=None):
        """Archive every transaction of ``capture`` and finish the file.

        Args:
            capture: Iterable or async iterable of captured requests, or an
                object with iter_requests()
            options: GenerationOptions
            stop_event: Optional object with is_set(); once set, no further
                transactions are read and the archive is finished as it is

        Returns:
            GenerationReport: counts of archived and skipped transactions

        Raises:
            StreamOpenFailure: if the output file cannot be opened
            StreamWriteFailure: if the output stream fails; the file is
                closed and the partial report is left in self.report
        """
        warc_opts = options.warc_opts
        self.writer.init_warc(warc_opts.warc_path, warc_opts)
        report = self.report = GenerationReport()
        try:
            self._write_preamble(options)
            if not _stopped(stop_event, report):
                async for request in _iterate(capture):
                    self._count(report, await self._archive(request))
                    # checked before pulling the next transaction from the source
                    if _stopped(stop_event, report):
                        break
            await self._finish()
        except ArchiveStreamError as e:
            report.error = e
            logger.error(f"archive {warc_opts.warc_path} failed: {e}")
            self.writer.end()
            raise
        except BaseException:
            self.writer.end()
            raise
        logger.info(report.summary())
        return report

    def _write_preamble(self, options):
        if options.winfo is not None:
            self.writer.write_warc_info_record(options.winfo)
        if options.pages:
            self.writer.write_webrecorder_bookmarks_info_record(options.pages)
        if options.metadata is not None:
            self.writer.write_warc_metadata(options.metadata.target_uri, options.metadata.content)

    async def _archive(self, request):
        try:
            return await self.generate_warc_entry(request)
        except (ArchiveStreamError, ClosedArchiveError):
            raise
        except Exception as e:
            error = TransactionProcessingError(getattr(request, "url", None), e)
            logger.warning(str(error), exc_info=True)
            return None

    @staticmethod
    def _count(report, written):
        if written:
            report.archived += 1
            report.records += written
        else:
            report.skipped += 1

    async def _finish(self):
        done = asyncio.Event()
        self.writer.on_finished(done.set)
        self.writer.end()
        await done.wait()

    async def generate_warc_entry(self, request):
        """Write the records for one captured request.

        Returns:
            int: number of records written; 0 for data URIs, which are not
            archived
        """
        url = request.url
        if is_data_uri(url):
            logger.debug("skipping data URI")
            return 0
        request_head = self.request_head(request)
        response = request.response
        if response is None:
            self.writer.write_request_record(url, request_head, request.post_data)
            return 1

        body = await self.fetch_body(response, url)
        self.writer.write_request_response_records(
            url,
            HttpMessage(request_head, request.post_data),
            HttpMessage(self.response_head(response, body), body),
        )
        return 2

    def request_head(self, request):
        host = urlsplit(request.url).netloc.rpartition("@")[2]
        return (
            f"{request.method} {http_request_path(request.url)} HTTP/1.1{CRLF}"
            f"{stringify_request_headers(request.headers, host)}"
        )

    def response_head(self, response, body):
        reason = response.status_text or status_text(response.status)
        headers = normalize_response_headers(response.headers, body)
        return f"HTTP/1.1 {response.status} {reason}{CRLF}{stringify_headers(headers)}"

    async def fetch_body(self, response, url=None):
        """Retrieve a response body, waiting at most ``body_timeout`` seconds.

        A timeout or failure is logged and gives an empty body.
        """
        if response.body is None:
            return b""
        try:
            body = response.body()
            if inspect.isawaitable(body):
                body = await asyncio.wait_for(body, self.body_timeout)
        except asyncio.TimeoutError:
            error = BodyRetrievalTimeout(f"no body for {url} after {self.body_timeout}s")
            logger.warning(f"{error}, storing an empty body")
            return b""
        except Exception as e:
            error = BodyRetrievalFailure(f"could not retrieve body for {url}: {e}")
            logger.warning(f"{error}, storing an empty body")
            return b""
        if body is None:
            return b""
        if isinstance(body, str):
            return body.encode("utf-8")
        return bytes(body)
