#!/usr/bin/env python
"""warcgen - write the transactions of a HAR capture to a WARC file"""

import asyncio
import logging
import sys

import click

from .errors import ArchiveStreamError
from .generator import DEFAULT_BODY_TIMEOUT, GenerationOptions, WarcGenerator, WarcMetadata
from .har import HarCapture
from .warcrecords import WarcFileOptions, WarcInfo


def parse_metadata(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn KEY=VALUE arguments into a dict."""
    fields = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint="--metadata")
        fields[key] = value
    return fields


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-o",
    "--output",
    "output",
    help="output warc file, appended to if it exists",
    type=click.Path(dir_okay=False),
    required=True,
)
@click.option(
    "--filename",
    "warc_filename",
    help="WARC-Filename for the warcinfo record (default: name of the output file)",
    default=None,
)
@click.option(
    "--no-warcinfo",
    "no_warcinfo",
    is_flag=True,
    help="do not start the archive with a warcinfo record",
    default=False,
)
@click.option("--is-part-of", "is_part_of", help="warcinfo isPartOf field", default=None)
@click.option("--description", "description", help="warcinfo description field", default=None)
@click.option("--user-agent", "user_agent", help="warcinfo http-header-user-agent field", default=None)
@click.option(
    "-m",
    "--metadata",
    "metadata",
    multiple=True,
    help="KEY=VALUE field for a metadata record, may be repeated",
)
@click.option(
    "--metadata-uri",
    "metadata_uri",
    help="WARC-Target-URI of the metadata record",
    default=None,
)
@click.option(
    "--pages",
    "pages",
    is_flag=True,
    help="write the HAR pages as a Webrecorder bookmarks record",
    default=False,
)
@click.option(
    "-t",
    "--body-timeout",
    "body_timeout",
    type=float,
    help="seconds to wait for each response body before storing it empty",
    default=DEFAULT_BODY_TIMEOUT,
    show_default=True,
)
@click.option(
    "-L",
    "--log-level",
    "log_level",
    help="Log level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
)
@click.argument("har_file", type=click.Path(exists=True, dir_okay=False))
def main(
    output: str,
    warc_filename: str | None,
    no_warcinfo: bool,
    is_part_of: str | None,
    description: str | None,
    user_agent: str | None,
    metadata: tuple[str, ...],
    metadata_uri: str | None,
    pages: bool,
    body_timeout: float,
    log_level: str,
    har_file: str,
) -> None:
    """Write the transactions of a HAR capture to a WARC file."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    fields = parse_metadata(metadata)
    capture = HarCapture(har_file)

    options = GenerationOptions(
        WarcFileOptions(output, write_info=not no_warcinfo, warc_filename=warc_filename),
        winfo=None if no_warcinfo else WarcInfo(is_part_of, description, user_agent),
        metadata=WarcMetadata(metadata_uri or har_file, fields) if fields else None,
        pages=capture.pages() if pages else None,
    )
    generator = WarcGenerator(body_timeout=body_timeout)
    try:
        report = asyncio.run(generator.generate_warc(capture, options))
    except ArchiveStreamError as e:
        if generator.report is not None:
            click.echo(generator.report.summary(), err=True)
        else:
            click.echo(f"error: {e}", err=True)
        sys.exit(1)

    click.echo(report.summary())


def run() -> None:
    """Entry point for the command-line interface."""
    main()


if __name__ == "__main__":
    run()
