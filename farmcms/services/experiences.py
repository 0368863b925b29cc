"""Bookable farm experiences."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select

from farmcms.extensions import db
from farmcms.models import Experience
from farmcms.services.crud import CRUDService, clean_text, isoformat, to_bool, to_int, to_list
from farmcms.services.reconciliation import display_url_array, normalize_url_array

_TEXT_FIELDS = (
    'title', 'subtitle', 'category', 'duration', 'difficulty', 'capacity',
    'schedule', 'image', 'cta', 'link', 'badge',
)


class ExperienceService(CRUDService):
    label = 'experience'
    fields = {
        'title': 'title',
        'subtitle': 'subtitle',
        'category': 'category',
        'duration': 'duration',
        'priceTHB': 'price_thb',
        'difficulty': 'difficulty',
        'capacity': 'capacity',
        'schedule': 'schedule',
        'includes': 'includes',
        'bring': 'bring',
        'image': 'image',
        'imageUrls': 'image_urls',
        'cta': 'cta',
        'link': 'link',
        'badge': 'badge',
        'published': 'published',
        'order': 'order',
    }

    def __init__(self):
        super().__init__(Experience)

    def list_experiences(self, include_drafts: bool) -> list[Experience]:
        stmt = select(Experience)
        if not include_drafts:
            stmt = stmt.where(Experience.published == True)  # noqa: E712
        stmt = stmt.order_by(Experience.order.asc(), Experience.created_at.desc())
        return list(db.session.execute(stmt).scalars())

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        if not clean_text(data.get('title')):
            return 'Title is required'
        return None

    def _validate_update(self, instance, data: dict[str, Any]) -> str | None:
        if 'title' in data and not clean_text(data.get('title')):
            return 'Title is required'
        return None

    def _prepare(self, data: dict[str, Any], instance) -> dict[str, Any]:
        data = dict(data)
        for key in _TEXT_FIELDS:
            if key in data:
                data[key] = clean_text(data[key])
        if 'price_thb' in data:
            data['price_thb'] = to_int(data['price_thb'], 'Price')
        for key, label in (('includes', 'Includes'), ('bring', 'Bring')):
            if key in data:
                data[key] = to_list(data[key], label)
        if 'image_urls' in data:
            data['image_urls'] = normalize_url_array(data['image_urls']) or None
        if 'published' in data or instance is None:
            data['published'] = to_bool(data.get('published'))
        if 'order' in data or instance is None:
            data['order'] = to_int(data.get('order'), 'Order') or 0
        return data


def serialize_experience(experience: Experience) -> dict:
    return {
        'id': experience.id,
        'title': experience.title,
        'subtitle': experience.subtitle,
        'category': experience.category,
        'duration': experience.duration,
        'priceTHB': experience.price_thb,
        'difficulty': experience.difficulty,
        'capacity': experience.capacity,
        'schedule': experience.schedule,
        'includes': experience.includes if isinstance(experience.includes, list) else [],
        'bring': experience.bring if isinstance(experience.bring, list) else [],
        'image': experience.image,
        'imageUrls': display_url_array(experience.image_urls) or [],
        'cta': experience.cta,
        'link': experience.link,
        'badge': experience.badge,
        'published': experience.published,
        'order': experience.order,
        'createdAt': isoformat(experience.created_at),
        'updatedAt': isoformat(experience.updated_at),
    }


experience_service = ExperienceService()

__all__ = ['ExperienceService', 'experience_service', 'serialize_experience']
