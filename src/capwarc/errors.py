"""Exceptions raised while capturing and writing WARC archives.

Anything scoped to a single header line or a single captured transaction is
recoverable and only ever reported. Anything scoped to the output stream is
fatal for the archive, since a partially written record breaks the framing of
every record after it.
"""


class WarcError(Exception):
    """Base class for capwarc errors."""


class MalformedHeaderLine(WarcError):
    """A header line did not match ``<token>: <value>``."""

    def __init__(self, line):
        super().__init__(f"malformed header line: {line!r}")
        self.line = line


class MalformedStartLine(WarcError):
    """A request or status line could not be split into its tokens."""

    def __init__(self, line):
        super().__init__(f"malformed start line: {line!r}")
        self.line = line


class BodyRetrievalFailure(WarcError):
    """The capture source failed to produce a response body."""


class BodyRetrievalTimeout(BodyRetrievalFailure):
    """The response body did not arrive within the allowed wait."""


class TransactionProcessingError(WarcError):
    """A single captured transaction could not be archived."""

    def __init__(self, url, cause):
        super().__init__(f"failed to archive {url}: {cause}")
        self.url = url
        self.cause = cause


class ArchiveStreamError(WarcError):
    """The output stream failed; the archive cannot be continued."""


class StreamOpenFailure(ArchiveStreamError):
    pass


class StreamWriteFailure(ArchiveStreamError):
    pass


class ClosedArchiveError(WarcError):
    """A record was written to an archive that is not open."""
