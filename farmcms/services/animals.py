"""Farm animals."""

from __future__ import annotations

from typing import Any

from farmcms.models import Animal, EntityKind
from farmcms.services.crud import CRUDService, clean_text, isoformat
from farmcms.services.reconciliation import (
    EMPTY_URL_ARRAY,
    display_url_array,
    normalize_url_array,
    sync_url_array_links,
    unlink_entity,
)


class AnimalService(CRUDService):
    label = 'animal'
    fields = {
        'name': 'name',
        'species': 'species',
        'breed': 'breed',
        'bio': 'bio',
        'status': 'status',
        'photoUrls': 'photo_urls',
        'healthInfo': 'health_info',
    }

    def __init__(self):
        super().__init__(Animal)

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        if not clean_text(data.get('name')):
            return 'Name is required'
        return None

    def _validate_update(self, instance, data: dict[str, Any]) -> str | None:
        if 'name' in data and not clean_text(data.get('name')):
            return 'Name is required'
        return None

    def _prepare(self, data: dict[str, Any], instance) -> dict[str, Any]:
        data = dict(data)
        for key in ('name', 'species', 'breed', 'bio', 'health_info'):
            if key in data:
                data[key] = clean_text(data[key])
        if 'status' in data or instance is None:
            data['status'] = clean_text(data.get('status')) or 'available'
        if 'photo_urls' in data:
            data['photo_urls'] = normalize_url_array(data['photo_urls']) or EMPTY_URL_ARRAY
        return data

    def _after_save(self, instance: Animal, data: dict[str, Any], created: bool) -> None:
        if 'photo_urls' in data:
            sync_url_array_links(instance.id, EntityKind.ANIMAL, instance.photo_urls)

    def _before_delete(self, instance: Animal) -> None:
        unlink_entity(EntityKind.ANIMAL, instance.id)


def serialize_animal(animal: Animal) -> dict:
    return {
        'id': animal.id,
        'name': animal.name,
        'species': animal.species,
        'breed': animal.breed,
        'bio': animal.bio,
        'status': animal.status,
        'photoUrls': display_url_array(animal.photo_urls),
        'healthInfo': animal.health_info,
        'createdAt': isoformat(animal.created_at),
        'updatedAt': isoformat(animal.updated_at),
    }


animal_service = AnimalService()

__all__ = ['AnimalService', 'animal_service', 'serialize_animal']
