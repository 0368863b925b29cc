"""Admin account CLI commands."""

import secrets

import click
from flask.cli import with_appcontext
from sqlalchemy import select

from farmcms.extensions import db
from farmcms.models import User, UserRole


@click.group('admin')
def admin_commands():
    """Admin account commands."""
    pass


@admin_commands.command('create')
@click.option('--email', required=True, help='Admin email')
@click.option('--password', required=True, help='Admin password')
@click.option('--role', type=click.Choice([r.value for r in UserRole]), default=UserRole.ADMIN.value, show_default=True)
@with_appcontext
def create_admin(email, password, role):
    """Create a user, or reset the password and role of an existing one."""
    email = email.strip().lower()
    user = db.session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    created = user is None
    if created:
        user = User(email=email)
        db.session.add(user)
    user.role = UserRole(role)
    user.set_password(password)
    db.session.commit()

    if created:
        click.echo(click.style('User created successfully!', fg='green'))
    else:
        click.echo(click.style('Existing user updated.', fg='yellow'))
    click.echo(f'  Email: {email}')
    click.echo(f'  Role: {role}')


@admin_commands.command('generate-secret')
@click.option('--bytes', 'num_bytes', default=64, show_default=True, help='Random bytes in the secret')
def generate_secret(num_bytes):
    """Print a random value suitable for JWT_SECRET."""
    click.echo(secrets.token_hex(num_bytes))
