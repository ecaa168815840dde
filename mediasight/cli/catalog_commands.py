"""
MediaSight catalog CLI commands.
Audits catalog images against platform specs and produces metadata and structured data.
"""

import json
from pathlib import Path
from typing import List, Optional, Tuple

import click
from tabulate import tabulate
from tqdm import tqdm

from mediasight.compliance import ComplianceValidator
from mediasight.errors import MediaSightError
from mediasight.io import descriptor_from_file, load_catalog
from mediasight.metadata import MetadataSynthesizer
from mediasight.structured_data import StructuredDataEmitter
from mediasight.utils.logging import AuditStats
from mediasight.utils.xmp_sidecar import XMPSidecar, metadata_to_xmp


def _load_entries(catalog: str):
    try:
        return load_catalog(catalog)
    except (MediaSightError, OSError) as e:
        raise click.ClickException(f"Cannot load catalog: {e}")


def _platform_keys(validator: ComplianceValidator, platforms: Tuple[str, ...]) -> List[str]:
    keys = list(platforms) or validator.registry.keys()
    unknown = [key for key in keys if key not in validator.registry]
    if unknown:
        raise click.BadParameter(f"unknown platform(s): {', '.join(unknown)}. "
                                 f"Available: {', '.join(validator.registry.keys())}",
                                 param_hint='--platform')
    return keys


@click.command('audit')
@click.argument('catalog', type=click.Path(exists=True, dir_okay=False))
@click.option('--platform', '-p', 'platforms', multiple=True,
              help='Platform key to audit against (repeatable, default: all)')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write full results as JSON')
@click.option('--strict', is_flag=True, help='Also exit non-zero when any image needs improvement')
@click.pass_context
def audit(ctx, catalog: str, platforms: Tuple[str, ...], output: Optional[str] = None,
          strict: bool = False):
    """
    Score every catalog image against discovery platform requirements.

    CATALOG: YAML or JSON product catalog
    """
    config = ctx.obj.get('config', {})
    quiet = ctx.obj.get('quiet', False)

    validator = ComplianceValidator.from_config(config)
    keys = _platform_keys(validator, platforms)
    entries = _load_entries(catalog)

    stats = AuditStats()
    stats.set_total(len(entries))
    results = []
    rows = []

    for entry in tqdm(entries, desc="Auditing", unit="image", disable=quiet):
        try:
            descriptor = entry.descriptor()
            reports = {key: validator.validate(descriptor, key) for key in keys}
        except MediaSightError as e:
            stats.add_error(entry.key, str(e))
            results.append({'key': entry.key, 'error': str(e)})
            continue

        for key, report in reports.items():
            stats.add_result(report.passed, report.status.value, report.score)
            rows.append([entry.key, key, report.score, report.status.value,
                         len(report.recommendations)])
        results.append({
            'key': entry.key,
            'reports': {key: report.to_dict() for key, report in reports.items()},
        })

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            json.dump({'results': results, 'summary': stats.get_summary()}, f, indent=2, default=str)
        if not quiet:
            click.echo(f"Wrote audit results to {output}")

    if not quiet:
        if rows:
            click.echo(tabulate(rows, headers=['Image', 'Platform', 'Score', 'Status', 'Recommendations'],
                                tablefmt='simple'))
        stats.print_summary()

    if stats.errors or (strict and stats.has_failures):
        ctx.exit(1)


@click.command('metadata')
@click.argument('catalog', type=click.Path(exists=True, dir_okay=False))
@click.option('--output-dir', '-o', required=True, type=click.Path(file_okay=False),
              help='Directory for metadata JSON files')
@click.option('--xmp', is_flag=True, help='Also write XMP sidecars')
@click.pass_context
def metadata(ctx, catalog: str, output_dir: str, xmp: bool = False):
    """
    Synthesize filenames, metadata and copyright records for a catalog.

    Writes one JSON file per image plus a metadata.csv inventory.

    CATALOG: YAML or JSON product catalog
    """
    config = ctx.obj.get('config', {})
    quiet = ctx.obj.get('quiet', False)

    synthesizer = MetadataSynthesizer.from_config(config)
    entries = _load_entries(catalog)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    results = []
    failures = 0
    for entry in tqdm(entries, desc="Synthesizing", unit="image", disable=quiet):
        try:
            result = synthesizer.synthesize(entry.descriptor(), entry.context())
        except MediaSightError as e:
            failures += 1
            click.echo(f"❌ {entry.key}: {e}", err=True)
            continue

        results.append(result)
        target = out / f"{result.metadata.id}.json"
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
        if xmp:
            sidecar = XMPSidecar(str(out / result.filenames.id_based))
            if not sidecar.write(metadata_to_xmp(result)):
                failures += 1

    with open(out / 'metadata.csv', 'w', encoding='utf-8', newline='') as f:
        f.write(synthesizer.export_csv(results))

    if not quiet:
        click.echo(f"✅ Wrote metadata for {len(results)} image(s) to {out}")
    if failures:
        ctx.exit(1)


@click.command('schema')
@click.argument('catalog', type=click.Path(exists=True, dir_okay=False))
@click.option('--platform', '-p', help='Include compliance results for this platform')
@click.option('--indent', default=2, show_default=True, help='JSON indentation')
@click.pass_context
def schema(ctx, catalog: str, platform: Optional[str] = None, indent: int = 2):
    """
    Print the JSON-LD graph for every catalog image.

    CATALOG: YAML or JSON product catalog
    """
    config = ctx.obj.get('config', {})

    synthesizer = MetadataSynthesizer.from_config(config)
    emitter = StructuredDataEmitter.from_config(config)
    validator = ComplianceValidator.from_config(config)
    if platform:
        _platform_keys(validator, (platform,))
    entries = _load_entries(catalog)

    documents = []
    failed = False
    for entry in entries:
        try:
            result = synthesizer.synthesize(entry.descriptor(), entry.context())
            report = validator.validate(result.descriptor, platform) if platform else None
        except MediaSightError as e:
            failed = True
            click.echo(f"❌ {entry.key}: {e}", err=True)
            continue
        documents.extend(emitter.emit_for_image(result, report))

    click.echo(json.dumps(emitter.graph(documents), indent=indent, ensure_ascii=False))
    if failed:
        ctx.exit(1)


@click.command('inspect')
@click.argument('image', type=click.Path(exists=True, dir_okay=False))
@click.option('--product-id', required=True, help='Catalog product ID')
@click.option('--view', required=True, help='View name (front, back, detail, ...)')
@click.option('--alt-text', default='', help='Alt text to validate')
@click.option('--platform', '-p', 'platforms', multiple=True,
              help='Platform key (repeatable, default: all)')
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
@click.pass_context
def inspect(ctx, image: str, product_id: str, view: str, alt_text: str = '',
            platforms: Tuple[str, ...] = (), as_json: bool = False):
    """
    Validate a local image file against platform requirements.

    IMAGE: Path to the image file
    """
    config = ctx.obj.get('config', {})

    validator = ComplianceValidator.from_config(config)
    keys = _platform_keys(validator, platforms)
    try:
        descriptor = descriptor_from_file(image, product_id, view, alt_text=alt_text)
    except MediaSightError as e:
        raise click.ClickException(str(e))

    reports = [validator.validate(descriptor, key) for key in keys]

    if as_json:
        click.echo(json.dumps({r.platform: r.to_dict() for r in reports}, indent=2))
        return

    click.echo(f"📷 {Path(image).name}: {descriptor.width}x{descriptor.height} {descriptor.format}")
    for report in reports:
        click.echo(f"\n{report.platform}: {report.score}/100 ({report.status.value})")
        for recommendation in report.recommendations:
            click.echo(f"   - {recommendation}")
