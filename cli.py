#!/usr/bin/env python3
"""
MediaSight Command Line Interface

Main CLI entry point for MediaSight product image discoverability tooling.
Provides commands for compliance audits, metadata synthesis, structured data
and engagement analytics.
"""

from typing import Optional

import click

from mediasight import __version__
from mediasight.config import load_config
from mediasight.cli.analytics_commands import analytics_group
from mediasight.cli.catalog_commands import audit, inspect, metadata, schema
from mediasight.utils.logging import PLAIN_FORMAT, setup_console_logging


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.version_option(__version__, prog_name='mediasight')
@click.pass_context
def main(ctx, config: Optional[str] = None, verbose: bool = False, quiet: bool = False):
    """
    MediaSight - Product image discoverability and engagement analytics

    Audits catalog images against visual-search and social platform
    requirements, synthesizes SEO metadata and JSON-LD, and turns recorded
    engagement events into per-image reports.
    """

    if ctx.obj is None:
        ctx.obj = {}

    ctx.obj['config'] = load_config(config)

    logging_config = ctx.obj['config'].get('logging', {})
    if verbose:
        level = 'DEBUG'
    elif quiet:
        level = 'ERROR'
    else:
        level = logging_config.get('level', 'INFO')
    setup_console_logging(level, log_format=logging_config.get('format', PLAIN_FORMAT))

    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet


main.add_command(audit)
main.add_command(metadata)
main.add_command(schema)
main.add_command(inspect)
main.add_command(analytics_group)


if __name__ == '__main__':
    main()
