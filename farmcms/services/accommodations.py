"""Accommodation listings and guest reviews."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from farmcms.extensions import db
from farmcms.models import Accommodation, AccommodationReview, EntityKind
from farmcms.services.crud import CRUDService, clean_text, isoformat, to_bool, to_int, to_list
from farmcms.services.reconciliation import (
    EMPTY_URL_ARRAY,
    display_url_array,
    normalize_url_array,
    sync_url_array_links,
    unlink_entity,
)


class AccommodationService(CRUDService):
    label = 'accommodation'
    fields = {
        'name': 'name',
        'hostedBy': 'hosted_by',
        'coHost': 'co_host',
        'description': 'description',
        'type': 'type',
        'zone': 'zone',
        'price': 'price',
        'capacity': 'capacity',
        'whatOffers': 'what_offers',
        'amenities': 'amenities',
        'imageUrls': 'image_urls',
        'houseRules': 'house_rules',
        'location': 'location',
        'safety': 'safety',
        'url': 'url',
        'available': 'available',
    }

    def __init__(self):
        super().__init__(Accommodation)

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        if not clean_text(data.get('name')):
            return 'Property name is required'
        return None

    def _validate_update(self, instance, data: dict[str, Any]) -> str | None:
        if 'name' in data and not clean_text(data.get('name')):
            return 'Property name is required'
        return None

    def _prepare(self, data: dict[str, Any], instance) -> dict[str, Any]:
        data = dict(data)
        for key in ('name', 'hosted_by', 'co_host', 'description', 'type', 'zone',
                    'house_rules', 'location', 'safety', 'url'):
            if key in data:
                data[key] = clean_text(data[key])
        if 'price' in data:
            data['price'] = _to_price(data['price'])
        if 'capacity' in data:
            data['capacity'] = to_int(data['capacity'], 'Capacity')
        if 'amenities' in data:
            data['amenities'] = to_list(data['amenities'], 'Amenities')
        if 'image_urls' in data:
            data['image_urls'] = normalize_url_array(data['image_urls']) or EMPTY_URL_ARRAY
        if 'what_offers' in data and data['what_offers'] in ('', [], {}):
            data['what_offers'] = None
        if 'available' in data or instance is None:
            data['available'] = to_bool(data.get('available'), default=True)
        return data

    def _after_save(self, instance: Accommodation, data: dict[str, Any], created: bool) -> None:
        if 'image_urls' in data:
            sync_url_array_links(instance.id, EntityKind.ACCOMMODATION, instance.image_urls)

    def _before_delete(self, instance: Accommodation) -> None:
        unlink_entity(EntityKind.ACCOMMODATION, instance.id)


class ReviewService(CRUDService):
    label = 'review'
    fields = {
        'accommodationId': 'accommodation_id',
        'reviewerName': 'reviewer_name',
        'reviewerEmail': 'reviewer_email',
        'rating': 'rating',
        'comment': 'comment',
        'imageUrls': 'image_urls',
    }

    def __init__(self):
        super().__init__(AccommodationReview)

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        if not data.get('accommodation_id') or not clean_text(data.get('reviewer_name')):
            return 'Accommodation ID and reviewer name are required'
        if db.session.get(Accommodation, data['accommodation_id']) is None:
            return 'Accommodation not found'
        return None

    def _prepare(self, data: dict[str, Any], instance) -> dict[str, Any]:
        data = dict(data)
        # Reviews never move between accommodations.
        if instance is not None:
            data.pop('accommodation_id', None)
        for key in ('reviewer_name', 'reviewer_email', 'comment'):
            if key in data:
                data[key] = clean_text(data[key])
        if 'rating' in data:
            rating = to_int(data['rating'], 'Rating')
            data['rating'] = None if rating is None else max(1, min(5, rating))
        if 'image_urls' in data:
            data['image_urls'] = normalize_url_array(data['image_urls']) or EMPTY_URL_ARRAY
        return data


def _to_price(value: Any) -> Decimal | None:
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError('Price must be a number')


def serialize_accommodation(item: Accommodation) -> dict:
    return {
        'id': item.id,
        'name': item.name,
        'hostedBy': item.hosted_by,
        'coHost': item.co_host,
        'description': item.description,
        'type': item.type,
        'zone': item.zone,
        'price': float(item.price) if item.price is not None else None,
        'capacity': item.capacity,
        'whatOffers': item.what_offers,
        'amenities': item.amenities,
        'imageUrls': display_url_array(item.image_urls),
        'houseRules': item.house_rules,
        'location': item.location,
        'safety': item.safety,
        'url': item.url,
        'available': item.available,
        'createdAt': isoformat(item.created_at),
        'updatedAt': isoformat(item.updated_at),
    }


def serialize_review(review: AccommodationReview) -> dict:
    return {
        'id': review.id,
        'accommodationId': review.accommodation_id,
        'reviewerName': review.reviewer_name,
        'reviewerEmail': review.reviewer_email,
        'rating': review.rating,
        'comment': review.comment,
        'imageUrls': review.image_urls,
        'createdAt': isoformat(review.created_at),
        'updatedAt': isoformat(review.updated_at),
    }


accommodation_service = AccommodationService()
review_service = ReviewService()

__all__ = [
    'AccommodationService',
    'ReviewService',
    'accommodation_service',
    'review_service',
    'serialize_accommodation',
    'serialize_review',
]
