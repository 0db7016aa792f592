"""Frame records and append them to a WARC file.

A WarcWriter owns exactly one output stream and moves through the states
``unopened -> open -> finalizing -> closed``. Records are appended in the order
the write methods are called, each assembled in full and handed to the stream
in a single write.

WARC Format Specification References:
- WARC 1.1 Annotated (primary): https://iipc.github.io/warc-specifications/specifications/warc-format/warc-1.1-annotated/
"""

import json
import logging
from pathlib import Path

from capwarc import __version__
from capwarc.errors import (
    ClosedArchiveError,
    StreamOpenFailure,
    StreamWriteFailure,
    WarcError,
)
from capwarc.warcrecords.headers import CRLF, serialize_warc_fields
from capwarc.warcrecords.record import WarcRecord, frame_record, warc_datetime_str

logger = logging.getLogger(__name__)


class WarcFileOptions:
    """Options for the file a WarcWriter appends to.

    Args:
        warc_path: Path of the WARC file
        write_info: Write a warcinfo record before any other record
        warc_filename: Value of WARC-Filename in warcinfo records, defaults to
            the name of warc_path
    """

    def __init__(self, warc_path, write_info=False, warc_filename=None):
        self.warc_path = warc_path
        self.write_info = write_info
        self.warc_filename = warc_filename


class WarcInfo:
    """Content of a warcinfo record."""

    FORMAT = "WARC File Format 1.0"
    CONFORMS_TO = "http://iipc.github.io/warc-specifications/specifications/warc-format/warc-1.0/"

    def __init__(self, is_part_of=None, description=None, user_agent=None, extra=None):
        self.is_part_of = is_part_of
        self.description = description
        self.user_agent = user_agent
        self.extra = extra or {}

    def fields(self):
        return {
            "isPartOf": self.is_part_of,
            "description": self.description,
            "robots": "ignore",
            "http-header-user-agent": self.user_agent,
            "format": self.FORMAT,
            "conformsTo": self.CONFORMS_TO,
            "software": f"capwarc/{__version__}",
            **self.extra,
        }


class HttpMessage:
    """Serialized HTTP head text plus the bytes that follow it."""

    def __init__(self, head, data=None):
        self.head = head
        self.data = data


def _to_bytes(data):
    if data is None:
        return b""
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def http_block(head, data=None):
    """Content block of a request/response record: head, blank line, data."""
    head = _to_bytes(head)
    if head and not head.endswith(CRLF):
        head += CRLF
    return head + CRLF + _to_bytes(data)


class WarcWriter:
    """Appends framed records to one WARC file.

    Call init_warc() to open the file, any of the write methods to append
    records, and end() once no more records are coming.
    """

    UNOPENED = "unopened"
    OPEN = "open"
    FINALIZING = "finalizing"
    CLOSED = "closed"
    FAILED = "failed"

    def __init__(self):
        self.state = self.UNOPENED
        self.options = None
        self.warc_path = None
        self.offset = 0
        self.offsets = []
        self.warcinfo_id = None
        self._fh = None
        self._owns_handle = False
        self._finished = False
        self._listeners = []

    def init_warc(self, warc_path, options=None, file_handle=None):
        """Open the archive for appending.

        Args:
            warc_path: Path of the WARC file, created along with its parent
                directories if missing
            options: WarcFileOptions, defaults to WarcFileOptions(warc_path)
            file_handle: Optional writable binary file object to use instead of
                opening warc_path. It is flushed, not closed, by end().

        Raises:
            StreamOpenFailure: if the file cannot be opened
            WarcError: if the writer has already been opened
        """
        if self.state != self.UNOPENED:
            raise WarcError(f"archive is already {self.state}")
        self.options = options or WarcFileOptions(warc_path)
        self.warc_path = Path(warc_path)
        if file_handle is None:
            try:
                self.warc_path.parent.mkdir(parents=True, exist_ok=True)
                file_handle = open(self.warc_path, "ab")
            except OSError as e:
                raise StreamOpenFailure(f"cannot open {self.warc_path} for writing: {e}") from e
            self._owns_handle = True
        self._fh = file_handle
        self.offset = file_handle.tell()
        self.state = self.OPEN
        logger.info(f'Writing WARC: "{self.warc_path}"')

    @property
    def finished(self):
        return self._finished

    def on_finished(self, callback):
        """Call ``callback()`` once the archive is closed and safe to read."""
        if self._finished:
            callback()
        else:
            self._listeners.append(callback)

    def write_record(
        self,
        warc_type,
        content=b"",
        content_type=None,
        target_uri=None,
        extra_headers=None,
        record_id=None,
    ):
        """Frame one record and append it to the archive.

        WARC-Record-ID, WARC-Date and WARC-Type are generated here, and
        Content-Length is always the length of ``content`` as written.

        Returns:
            str: the WARC-Record-ID of the record

        Raises:
            ClosedArchiveError: if the archive is not open
            StreamWriteFailure: if the stream failed; the archive is unusable
        """
        self._check_open()
        if warc_type != WarcRecord.WARCINFO:
            self._ensure_info()

        content = _to_bytes(content)
        record_id = record_id or WarcRecord.random_warc_uuid()
        headers = [(WarcRecord.TYPE, warc_type)]
        if target_uri:
            headers.append((WarcRecord.URL, target_uri))
        headers.append((WarcRecord.DATE, warc_datetime_str()))
        headers.extend(extra_headers or [])
        headers.append((WarcRecord.ID, record_id))
        if content_type:
            headers.append((WarcRecord.CONTENT_TYPE, content_type))
        headers.append((WarcRecord.CONTENT_LENGTH, len(content)))

        self._append(frame_record(WarcRecord.VERSION, headers, content), record_id)
        logger.debug("wrote %s record %s for %s", warc_type, record_id, target_uri)
        return record_id

    def write_warc_info_record(self, info=None):
        """Write a warcinfo record describing the archive.

        ``info`` is a WarcInfo or a plain mapping of fields.
        """
        info = info if info is not None else WarcInfo()
        fields = info.fields() if isinstance(info, WarcInfo) else dict(info)
        self.warcinfo_id = self.write_record(
            WarcRecord.WARCINFO,
            serialize_warc_fields(fields),
            content_type=WarcRecord.WARC_FIELDS_TYPE,
            extra_headers=[(WarcRecord.FILENAME, self._filename())],
        )
        return self.warcinfo_id

    def write_webrecorder_bookmarks_info_record(self, pages):
        """Write the page list as a warcinfo ``json-metadata`` field.

        This is the form Webrecorder Player reads its bookmark list from.
        Each page is a mapping such as ``{"title": ..., "url": ..., "timestamp": ...}``.
        """
        metadata = json.dumps({"type": "recording", "pages": list(pages)})
        return self.write_record(
            WarcRecord.WARCINFO,
            f"json-metadata: {metadata}\r\n",
            content_type=WarcRecord.WARC_FIELDS_TYPE,
            extra_headers=[(WarcRecord.FILENAME, self._filename())],
        )

    def write_warc_metadata(self, target_uri, content):
        """Write a metadata record; mapping content is serialized as warc-fields."""
        self._check_open()
        self._ensure_info()
        if isinstance(content, dict):
            content = serialize_warc_fields(content)
        extra_headers = []
        if self.warcinfo_id:
            extra_headers.append((WarcRecord.CONCURRENT_TO, self.warcinfo_id))
        return self.write_record(
            WarcRecord.METADATA,
            content,
            content_type=WarcRecord.WARC_FIELDS_TYPE,
            target_uri=target_uri,
            extra_headers=extra_headers,
        )

    def write_request_record(self, target_uri, http_head, post_data=None):
        return self.write_record(
            WarcRecord.REQUEST,
            http_block(http_head, post_data),
            content_type=WarcRecord.HTTP_REQUEST_TYPE,
            target_uri=target_uri,
        )

    def write_request_response_records(self, target_uri, request, response):
        """Write a request record and its response, linked by WARC-Concurrent-To.

        Args:
            target_uri: URI both records were captured for
            request: HttpMessage with the request head and post data
            response: HttpMessage with the response head and body

        Returns:
            tuple: (request_id, response_id)
        """
        request_id = self.write_request_record(target_uri, request.head, request.data)
        response_id = self.write_record(
            WarcRecord.RESPONSE,
            http_block(response.head, response.data),
            content_type=WarcRecord.HTTP_RESPONSE_TYPE,
            target_uri=target_uri,
            extra_headers=[(WarcRecord.CONCURRENT_TO, request_id)],
        )
        return request_id, response_id

    def end(self):
        """Finish the archive: flush, close the stream and signal completion.

        Completion is signalled exactly once. After a stream failure the
        handle is closed but completion is not signalled.

        Raises:
            StreamWriteFailure: if flushing or closing the stream fails
        """
        if self.state == self.CLOSED:
            return
        if self.state == self.FAILED:
            self.state = self.CLOSED
            self._release(ignore_errors=True)
            return
        if self.state == self.OPEN:
            self.state = self.FINALIZING
            try:
                self._release()
            except (OSError, ValueError) as e:
                self.state = self.CLOSED
                raise StreamWriteFailure(f"failed closing {self.warc_path}: {e}") from e
            logger.info(f'Finished WARC: "{self.warc_path}" ({self.offset} bytes)')
        self.state = self.CLOSED
        self._finished = True
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            callback()

    def _release(self, ignore_errors=False):
        fh, self._fh = self._fh, None
        try:
            try:
                fh.flush()
            finally:
                if self._owns_handle:
                    fh.close()
        except (OSError, ValueError) as e:
            if not ignore_errors:
                raise
            logger.warning(f"error closing failed archive {self.warc_path}: {e}")

    def _ensure_info(self):
        # a file opened with write_info starts with a warcinfo record
        if self.options.write_info and not self.offsets:
            self.write_warc_info_record()

    def _check_open(self):
        if self.state != self.OPEN:
            raise ClosedArchiveError(f"cannot write to an archive that is {self.state}")

    def _filename(self):
        return self.options.warc_filename or self.warc_path.name

    def _append(self, data, record_id):
        try:
            self._fh.write(data)
        except (OSError, ValueError) as e:
            self.state = self.FAILED
            raise StreamWriteFailure(f"failed writing record {record_id} to {self.warc_path}: {e}") from e
        self.offsets.append((self.offset, len(data), record_id))
        self.offset += len(data)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.end()
