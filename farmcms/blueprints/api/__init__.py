"""JSON API blueprint for the admin dashboard and the public site."""

from flask import Blueprint

api_bp = Blueprint('api', __name__)

# Route modules register themselves on api_bp
from farmcms.blueprints.api import (  # noqa: E402,F401
    auth,
    media,
    accommodation,
    animals,
    team,
    blog,
    vision,
    gallery,
    experiences,
    retreat,
)

__all__ = ['api_bp']
