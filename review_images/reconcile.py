"""Out-of-band reconciliation between stored objects and image records.

Uploads store the object before writing its record, so a failed record write
leaves an object nobody references. This command lists such objects (and
records whose object is gone) and can remove the orphaned objects.
Records are never modified here.
"""
import logging

import click

from .core.errors import FileStorageError
from .dependencies import get_pipeline

logger = logging.getLogger(__name__)


@click.command()
@click.option("--delete", "delete_objects", is_flag=True, help="Delete stored objects that no record references.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(delete_objects, verbose):
    """Report (and optionally remove) orphaned review images."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)
    pipeline = get_pipeline()
    report = pipeline.find_orphans()

    if report.clean:
        click.echo("No orphans found.")
        return

    for filename in report.objects:
        click.echo(f"orphaned object: {filename}")
    for image_id in report.records:
        click.echo(f"record without object: {image_id}")

    if delete_objects:
        removed = 0
        for filename in report.objects:
            try:
                pipeline.backend.delete(filename)
                removed += 1
            except FileStorageError as e:
                logger.warning("Could not delete %s: %s", filename, e)
        click.echo(f"Deleted {removed} of {len(report.objects)} orphaned objects.")


if __name__ == "__main__":
    main()
