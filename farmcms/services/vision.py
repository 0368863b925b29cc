"""The vision page: a single content record with zone cards."""

from __future__ import annotations

import json
import re
import secrets
import time
from typing import Any

from werkzeug.datastructures import FileStorage

from farmcms.extensions import db
from farmcms.models import VisionContent
from farmcms.services.crud import clean_text, isoformat
from farmcms.services.media_library import create_media_item
from farmcms.services.reconciliation import current_vision_content
from farmcms.services.uploads import store_upload

DEFAULT_BUTTON_TEXT = 'Explore Our World Map'

DEFAULT_VISION_CONTENT = {
    'id': None,
    'title': 'Building Our Own World',
    'description': (
        "Not an all-inclusive resort -but an ecosystem for growth, creation, and connection, "
        "A world we're building for ourselves and for anyone ready to live fully – in rhythm with nature."
    ),
    'buttonText': DEFAULT_BUTTON_TEXT,
    'introText1': (
        'Mayu.Farm becomes part of something larger — a self-sustaining, living world '
        'built in rhythm with nature.'
    ),
    'introText2': "It's a world made up of three interconnected zones:",
    'zones': [
        {
            'name': 'dao-home',
            'title': 'DAO HOME — Our Heart & Home',
            'description': [
                'Where it all began — a handful of huts, a turtle pond, and an idea: '
                'to live simply, grow slowly, and share what we learn.',
                'Here, volunteers and travelers live together, tending the land, sharing meals, '
                'and dreaming under the same roof.',
            ],
            'tags': ['#FarmStay', '#Community', '#Animals', '#SimpleLiving'],
            'imageUrl': '',
        },
        {
            'name': 'lilac',
            'title': 'LILAC — Move, Breathe, Build Strength',
            'description': [
                'Our gym and accommodation zone — built from bamboo and mountain air.',
                'This is where movement meets mindfulness: ice baths, mobility practice, community workouts.',
                'A place for body transformation and quiet reflection.',
            ],
            'tags': ['#Strength', '#Wellness', '#Recovery', '#Discipline'],
            'imageUrl': '',
        },
        {
            'name': 'mayu',
            'title': 'MAYU — The Learning Center',
            'description': [
                'The heart of our knowledge ecosystem — where retreats, coffee roasting, '
                'and workshops happen.',
                'Here we study soil, structure, and soul, and share everything we discover.',
            ],
            'tags': ['#Learning', '#Workshops', '#Retreats', '#CoffeeCulture'],
            'imageUrl': '',
        },
    ],
    'ecosystemImageUrl': '',
    'ecosystemText1': (
        'Together, these spaces form a living ecosystem — a world meant to evolve, '
        'to welcome dreamers, makers, and wanderers alike.'
    ),
    'ecosystemText2': (
        'We call it Maayu.Farm — not an all-inclusive resort, but a world in rhythm with nature, '
        'a Stardew-Valley-inspired reality where growth, connection, and creativity take root.'
    ),
}

_FIELDS = {
    'title': 'title',
    'description': 'description',
    'buttonText': 'button_text',
    'introText1': 'intro_text1',
    'introText2': 'intro_text2',
    'ecosystemImageUrl': 'ecosystem_image_url',
    'ecosystemText1': 'ecosystem_text1',
    'ecosystemText2': 'ecosystem_text2',
}


def parse_zones(value: Any) -> list:
    """Accept zones as a list or a JSON-encoded list."""
    if value in (None, ''):
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            raise ValueError('Zones must be a JSON array')
    if not isinstance(value, list):
        raise ValueError('Zones must be a JSON array')
    return value


def get_vision_content() -> dict:
    """The current record, or the built-in defaults when nothing has been saved yet."""
    content = current_vision_content()
    if content is None:
        return json.loads(json.dumps(DEFAULT_VISION_CONTENT))
    return serialize_vision(content)


def save_vision_content(payload: dict[str, Any]) -> VisionContent:
    """
    Replace the current vision record with ``payload``, creating it if needed.

    Raises:
        ValueError: if zones are not a JSON array
    """
    zones = parse_zones(payload.get('zones'))

    content = None
    if payload.get('id'):
        content = db.session.get(VisionContent, payload['id'])
    if content is None:
        content = current_vision_content()
    if content is None:
        content = VisionContent()
        db.session.add(content)

    for key, attr in _FIELDS.items():
        setattr(content, attr, clean_text(payload.get(key)))
    content.button_text = content.button_text or DEFAULT_BUTTON_TEXT
    content.zones = zones
    db.session.commit()
    return content


def upload_vision_image(file: FileStorage, zone_name: str | None, uploaded_by: str | None = None):
    """Store a zone or ecosystem image under ``vision/`` with the zone name as filename prefix."""
    safe_zone = re.sub(r'[^a-z0-9-]', '_', (zone_name or 'vision'), flags=re.IGNORECASE).lower()
    extension = file.filename.rsplit('.', 1)[-1].lower() if file and file.filename and '.' in file.filename else 'jpg'
    filename = f'{safe_zone}-{int(time.time() * 1000)}-{secrets.token_hex(4)}.{extension}'
    stored = store_upload(file, 'vision', images_only=True, filename=filename)
    return create_media_item(
        stored=stored,
        category='vision',
        folder='vision',
        uploaded_by=uploaded_by,
        vision_zone_name=safe_zone,
    )


def serialize_vision(content: VisionContent) -> dict:
    zones = content.zones
    if isinstance(zones, str):
        try:
            zones = json.loads(zones)
        except json.JSONDecodeError:
            zones = []
    return {
        'id': content.id,
        'title': content.title,
        'description': content.description,
        'buttonText': content.button_text,
        'introText1': content.intro_text1,
        'introText2': content.intro_text2,
        'zones': zones or [],
        'ecosystemImageUrl': content.ecosystem_image_url,
        'ecosystemText1': content.ecosystem_text1,
        'ecosystemText2': content.ecosystem_text2,
        'createdAt': isoformat(content.created_at),
        'updatedAt': isoformat(content.updated_at),
    }


__all__ = [
    'DEFAULT_VISION_CONTENT',
    'parse_zones',
    'get_vision_content',
    'save_vision_content',
    'upload_vision_image',
    'serialize_vision',
]
