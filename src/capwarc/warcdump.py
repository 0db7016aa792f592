#!/usr/bin/env python
"""warcdump - dump warcs in a slightly more humane format"""

import logging
import sys

import click

from .warcrecords import RecordStream, open_record_stream


def dump_archive(fh, name: str) -> bool:
    """Dump archive records to stdout, returning False if framing failed."""
    for offset, record, errors in fh.read_records(limit=None):
        if record:
            print(f"archive record at {name}:{offset}")
            record.dump(content=True)
        elif errors:
            print(f"warc errors at {name}:{offset if offset else 0}")
            for e in errors:
                print("\t", e)
            return False
        else:
            print()
            print("note: no errors encountered in tail of file")
    return True


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-L",
    "--log-level",
    "log_level",
    help="Log level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="warning",
)
@click.argument("warc_files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
def main(log_level: str, warc_files: tuple[str, ...]) -> None:
    """Dump WARC files in a human-readable format."""
    logging.basicConfig(level=getattr(logging, log_level.upper()))
    correct = True
    if len(warc_files) < 1:
        correct = dump_archive(RecordStream(sys.stdin.buffer), name="-")
    else:
        for name in warc_files:
            with open_record_stream(name) as fh:
                correct = dump_archive(fh, name) and correct
    if not correct:
        sys.exit(1)


def run() -> None:
    """Entry point for the command-line interface."""
    main()


if __name__ == "__main__":
    run()
