#!/usr/bin/env python
"""warcindex - dump warc index

Outputs one line per record with its byte offset, for random access to the
records of a WARC file.
"""

import sys

import click

from .warcrecords import open_record_stream


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("warc_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
def main(warc_files: tuple[str, ...]) -> None:
    """Dump WARC index."""
    out = sys.stdout

    out.write("#WARC filename offset warc-type warc-target-uri warc-record-id content-type content-length\n")
    for name in warc_files:
        with open_record_stream(name) as fh:
            for offset, record, _errors in fh.read_records(limit=None):
                if record:
                    fields = [
                        name,
                        str(offset),
                        record.warc_type or "-",
                        record.target_uri or "-",
                        record.record_id or "-",
                        (record.warc_content_type or "-").replace(" ", ""),
                        str(record.warc_content_length),
                    ]
                    out.write(" ".join(fields) + "\n")
                # ignore errors and tail


def run() -> None:
    """Entry point for the command-line interface."""
    main()


if __name__ == "__main__":
    run()
