"""
MediaSight analytics CLI commands.
Exports and summarizes persisted engagement event logs.
"""

import json
from typing import Optional

import click
from tabulate import tabulate

from mediasight.analytics import JsonFileEventStore, MetricsAggregator, ReportGenerator
from mediasight.errors import MediaSightError


def _load_events(path: str):
    try:
        return JsonFileEventStore(path).load()
    except MediaSightError as e:
        raise click.ClickException(str(e))


def _load_json(path: str):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Cannot read {path}: {e}")


@click.group(name='analytics')
def analytics_group():
    """Engagement analytics commands."""
    pass


@analytics_group.command('export')
@click.argument('events', type=click.Path(exists=True, dir_okay=False))
@click.option('--image-id', help='Only export events for this image')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write CSV to a file instead of stdout')
def export_events(events: str, image_id: Optional[str] = None, output: Optional[str] = None):
    """
    Export a persisted event log as CSV.

    EVENTS: JSON event log written by the recorder
    """
    loaded = _load_events(events)
    if image_id:
        loaded = [event for event in loaded if event.image_id == image_id]

    csv_text = ReportGenerator.export_csv(loaded)
    if output:
        with open(output, 'w', encoding='utf-8', newline='') as f:
            f.write(csv_text)
        click.echo(f"✅ Exported {len(loaded)} event(s) to {output}", err=True)
    else:
        click.echo(csv_text, nl=False)


@analytics_group.command('report')
@click.argument('events', type=click.Path(exists=True, dir_okay=False))
@click.option('--image-id', required=True, help='Image to report on')
@click.option('--sample', type=click.Path(exists=True, dir_okay=False),
              help='JSON performance sample for the image')
@click.option('--search', type=click.Path(exists=True, dir_okay=False),
              help='JSON search-visibility metrics for the image')
@click.pass_context
def report(ctx, events: str, image_id: str, sample: Optional[str] = None,
           search: Optional[str] = None):
    """
    Print a JSON report for one image.

    EVENTS: JSON event log written by the recorder
    """
    config = ctx.obj.get('config', {}) if ctx.obj else {}
    aggregator = MetricsAggregator.from_config(config)

    try:
        metrics = aggregator.compute_performance(_load_json(sample)) if sample else None
        seo = aggregator.compute_seo_impact(_load_json(search)) if search else None
    except MediaSightError as e:
        raise click.ClickException(str(e))

    generator = ReportGenerator()
    result = generator.generate_report(image_id, _load_events(events), metrics, seo)
    click.echo(generator.export_json(result))


@analytics_group.command('top')
@click.argument('events', type=click.Path(exists=True, dir_okay=False))
@click.option('--limit', '-n', default=5, show_default=True, help='Number of images to list')
def top(events: str, limit: int = 5):
    """
    List the most engaging images in an event log.

    EVENTS: JSON event log written by the recorder
    """
    ranked = ReportGenerator.top_images(_load_events(events), limit=limit)
    if not ranked:
        click.echo("No events recorded")
        return
    click.echo(tabulate(ranked, headers=['Image', 'Total engagement'], tablefmt='simple'))
