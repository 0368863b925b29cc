"""CLI commands for the farm CMS."""

from .admin import admin_commands
from .media import media_commands
from .storage import storage_commands


def register_commands(app):
    """Register all CLI command groups with the Flask app."""
    app.cli.add_command(admin_commands)
    app.cli.add_command(media_commands)
    app.cli.add_command(storage_commands)
