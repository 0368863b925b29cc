"""Media library maintenance commands."""

import json

import click
from flask.cli import with_appcontext
from sqlalchemy import select

from farmcms.extensions import db
from farmcms.models import MediaItem
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.media_library import sync_from_storage
from farmcms.services.reconciliation import reconcile_deletion


@click.group('media')
def media_commands():
    """Media library commands."""
    pass


@media_commands.command('sync')
@with_appcontext
def sync_media():
    """Add media rows for stored objects the library does not know about."""
    try:
        result = sync_from_storage()
    except BlobStoreUnavailable as e:
        click.echo(click.style(f'Error: storage unavailable: {e}', fg='red'))
        raise SystemExit(1)
    click.echo(click.style('Storage sync complete.', fg='green'))
    click.echo(f"  Added: {result['added']}")
    click.echo(f"  Corrected: {result['corrected']}")


@media_commands.command('reconcile')
@click.option('--url', required=True, help='Public URL whose references should be removed')
@with_appcontext
def reconcile_url(url):
    """Remove every content reference to URL. Nothing is deleted from storage or the library."""
    media = db.session.execute(select(MediaItem).where(MediaItem.url == url).limit(1)).scalar_one_or_none()
    if media is None:
        media = MediaItem(url=url, filename=url.rsplit('/', 1)[-1], original_name='')
    report = reconcile_deletion(media)
    click.echo(json.dumps(report.to_dict(), indent=2))
    if not report.ok:
        raise SystemExit(1)
