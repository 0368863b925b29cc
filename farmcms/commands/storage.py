"""Object storage setup commands."""

import click
from botocore.exceptions import BotoCoreError, ClientError
from flask.cli import with_appcontext

from farmcms.services.storage import get_blob_store


@click.group('storage')
def storage_commands():
    """Object storage commands."""
    pass


@storage_commands.command('create-bucket')
@click.option('--private', is_flag=True, help='Skip the public-read bucket policy')
@with_appcontext
def create_bucket(private):
    """Create the configured bucket with a public-read policy."""
    store = get_blob_store()
    try:
        store.create_bucket(public_read=not private)
    except (BotoCoreError, ClientError) as e:
        click.echo(click.style(f'Error: could not set up bucket "{store.bucket}": {e}', fg='red'))
        raise SystemExit(1)
    click.echo(click.style(f'Bucket "{store.bucket}" is ready.', fg='green'))
    if not private:
        click.echo('  Objects are publicly readable.')
