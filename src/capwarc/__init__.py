"""capwarc - write browser captures as WARC files."""

__version__ = "0.1.0"
