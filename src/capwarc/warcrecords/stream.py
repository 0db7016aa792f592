"""Read records back from an uncompressed WARC file.

Records are located using only their framing: the header block ends at the
first blank line, the content block is exactly Content-Length bytes, and the
record ends with CRLF CRLF.
"""

import logging
import re

from capwarc.warcrecords.headers import find_header, parse_content_length, parse_header_lines
from capwarc.warcrecords.record import WarcRecord, version_rx

logger = logging.getLogger(__name__)

blank_rx = re.compile(rb"^[\r\n]+$")


def open_record_stream(filename=None, file_handle=None, mode="rb", offset=None):
    """Open a WARC file and return a RecordStream for reading records.

    Args:
        filename: Path to the archive file
        file_handle: Optional file-like object (takes precedence over filename)
        mode: File open mode (default: "rb")
        offset: Optional byte offset of a record to start reading at

    Example:
        >>> stream = open_record_stream("archive.warc")
        >>> for record in stream:
        ...     print(record.type)
    """
    if file_handle is None:
        file_handle = open(filename, mode=mode)
    stream = RecordStream(file_handle)
    if offset is not None:
        stream.seek(offset)
    return stream


class RecordStream:
    """A readable stream of WARC records. Can be iterated over, or
    read_records can give more control and offset information.
    """

    def __init__(self, file_handle):
        self.fh = file_handle
        self.offset = 0

    def seek(self, offset, pos=0):
        """Same as a seek on a file"""
        self.offset = self.fh.seek(offset, pos)

    def read_records(self, limit=None):
        """Yield a tuple of (offset, record, errors).

        Record is an object and errors is an empty list, or record is None and
        errors is a list. Reading stops after the first record that could not
        be framed, and at the end of the file (record None, errors empty).
        """
        nrecords = 0
        while limit is None or nrecords < limit:
            offset, record, errors = self._read_record()
            nrecords += 1
            yield (offset, record, errors)
            if not record:
                break

    def __iter__(self):
        while True:
            _, record, errors = self._read_record()
            if record:
                yield record
            elif errors:
                error_str = ",".join(str(error) for error in errors)
                raise Exception(f"Errors while decoding {error_str}")
            else:
                break

    def close(self):
        self.fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def _readline(self):
        line = self.fh.readline()
        self.offset += len(line)
        return line

    def _read(self, count):
        buf = self.fh.read(count)
        self.offset += len(buf)
        return buf

    def _read_record(self):
        while True:
            offset, record_type, header_buffers, block, errors = self._read_frame()
            if errors or header_buffers is None:
                return offset, None, errors
            if record_type in WarcRecord.RECORD_TYPES:
                break
            logger.warning("skipping record of unsupported type %r at offset %d", record_type, offset)

        if record_type in (WarcRecord.REQUEST, WarcRecord.RESPONSE):
            end = block.find(b"\r\n\r\n")
            if end < 0:
                http_buffers, payload = block.splitlines(keepends=True), b""
            else:
                http_buffers, payload = block[: end + 4].splitlines(keepends=True), block[end + 4 :]
            record = WarcRecord(record_type, header_buffers, http_buffers, [payload])
        else:
            record = WarcRecord(record_type, header_buffers, [block])
        return offset, record, []

    def _read_frame(self):
        # skip any stray line breaks between records
        while True:
            offset = self.offset
            line = self._readline()
            if not line:
                return offset, None, None, None, []
            if not blank_rx.match(line):
                break

        errors = []
        if not version_rx.match(line.strip().decode("ascii", errors="replace")):
            errors.append(("missing version line", line))
            return offset, None, None, None, errors

        header_buffers = [line]
        while True:
            line = self._readline()
            if not line:
                errors.append(("truncated header block",))
                return offset, None, None, None, errors
            if line in (b"\r\n", b"\n"):
                break
            header_buffers.append(line)

        warc_header, header_errors = parse_header_lines(header_buffers[1:])
        parse_content_length(warc_header, header_errors)
        length_key = find_header(warc_header, WarcRecord.CONTENT_LENGTH)
        if length_key is None:
            errors.append(("missing mandatory field", WarcRecord.CONTENT_LENGTH))
            return offset, None, None, None, errors
        record_type = warc_header.get(WarcRecord.TYPE)
        if record_type is None:
            errors.append(("missing mandatory field", WarcRecord.TYPE))
            return offset, None, None, None, errors

        length = warc_header[length_key]
        block = self._read(length)
        if len(block) < length:
            errors.append(("truncated content block", length, len(block)))
            return offset, None, None, None, errors
        trailer = self._read(len(WarcRecord.TRAILER))
        if trailer != WarcRecord.TRAILER:
            errors.append(("missing record trailer", trailer))
            return offset, None, None, None, errors

        return offset, record_type, header_buffers, block, errors
