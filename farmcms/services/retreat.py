"""Retreat workshops and the applications people send for them."""

from __future__ import annotations

import json
import re
from typing import Any

from sqlalchemy import select
from werkzeug.datastructures import FileStorage

from farmcms.extensions import db
from farmcms.models import RetreatApplication, RetreatWorkshop
from farmcms.services.crud import CRUDService, clean_text, isoformat, to_bool, to_int, to_list
from farmcms.services.media_library import create_media_item
from farmcms.services.reconciliation import display_url_array, normalize_url_array
from farmcms.services.uploads import store_upload

_TEXT_FIELDS = (
    'title', 'dates', 'location', 'overview', 'tagline', 'daily_rhythm',
    'meals', 'volunteer_pathway', 'story',
)
_LIST_FIELDS = {
    'objectives': 'Objectives',
    'accommodation': 'Accommodation',
    'facilitators': 'Facilitators',
}


def parse_program(value: Any):
    """Program is free-form JSON; strings are decoded."""
    if value in (None, ''):
        return None
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise ValueError('Program must be valid JSON')
    return value


class WorkshopService(CRUDService):
    label = 'workshop'
    fields = {
        'title': 'title',
        'dates': 'dates',
        'location': 'location',
        'overview': 'overview',
        'tagline': 'tagline',
        'objectives': 'objectives',
        'program': 'program',
        'dailyRhythm': 'daily_rhythm',
        'accommodation': 'accommodation',
        'meals': 'meals',
        'volunteerPathway': 'volunteer_pathway',
        'facilitators': 'facilitators',
        'story': 'story',
        'imageUrls': 'image_urls',
        'published': 'published',
        'order': 'order',
    }

    def __init__(self):
        super().__init__(RetreatWorkshop)

    def list_workshops(self, include_drafts: bool) -> list[RetreatWorkshop]:
        stmt = select(RetreatWorkshop)
        if not include_drafts:
            stmt = stmt.where(RetreatWorkshop.published == True)  # noqa: E712
        stmt = stmt.order_by(RetreatWorkshop.order.asc(), RetreatWorkshop.created_at.desc())
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
        for key, label in _LIST_FIELDS.items():
            if key in data:
                data[key] = to_list(data[key], label)
        if 'program' in data:
            data['program'] = parse_program(data['program'])
        if 'image_urls' in data:
            data['image_urls'] = normalize_url_array(data['image_urls']) or None
        if 'published' in data or instance is None:
            data['published'] = to_bool(data.get('published'))
        if 'order' in data or instance is None:
            data['order'] = to_int(data.get('order'), 'Order') or 0
        return data


def workshop_folder(workshop_name: str) -> str:
    return f"workshop/{re.sub(r'[^a-zA-Z0-9]', '-', workshop_name).lower()}"


def upload_workshop_image(file: FileStorage, workshop_name: str | None, workshop_id: str | None = None,
                          uploaded_by: str | None = None) -> dict:
    """
    Store a workshop image under ``workshop/<workshop-name>/``.

    Raises:
        ValueError: if the file is missing or not an image, or no workshop name is given
    """
    if not file or not file.filename:
        raise ValueError('No file provided')
    if not (file.mimetype or '').startswith('image/'):
        raise ValueError('File must be an image')
    if not clean_text(workshop_name):
        raise ValueError('Workshop name is required')

    stored = store_upload(file, workshop_folder(workshop_name.strip()), images_only=True)
    create_media_item(
        stored=stored,
        category='workshop',
        folder='workshop',
        uploaded_by=uploaded_by,
        workshop_id=workshop_id,
    )
    return stored


def list_applications(status: str | None = None) -> list[RetreatApplication]:
    stmt = select(RetreatApplication)
    if status:
        stmt = stmt.where(RetreatApplication.status == status)
    stmt = stmt.order_by(RetreatApplication.created_at.desc())
    return list(db.session.execute(stmt).scalars())


def update_application(application_id: str, payload: dict[str, Any]) -> tuple[RetreatApplication | None, str | None]:
    """
    Change an application's status and/or notes.

    Returns:
        (application, error_message)

    Raises:
        ValueError: if neither status nor notes is given
    """
    if 'status' not in payload and 'notes' not in payload:
        raise ValueError('No fields to update')

    application = db.session.get(RetreatApplication, application_id)
    if application is None:
        return None, 'Application not found'

    if 'status' in payload:
        status = clean_text(payload['status'])
        if not status:
            raise ValueError('Status cannot be empty')
        application.status = status
    if 'notes' in payload:
        application.notes = payload['notes']
    db.session.commit()
    return application, None


def delete_application(application_id: str) -> bool:
    application = db.session.get(RetreatApplication, application_id)
    if application is None:
        return False
    db.session.delete(application)
    db.session.commit()
    return True


def serialize_workshop(workshop: RetreatWorkshop) -> dict:
    return {
        'id': workshop.id,
        'title': workshop.title,
        'dates': workshop.dates,
        'location': workshop.location,
        'overview': workshop.overview,
        'tagline': workshop.tagline,
        'objectives': workshop.objectives or [],
        'program': workshop.program or [],
        'dailyRhythm': workshop.daily_rhythm,
        'accommodation': workshop.accommodation or [],
        'meals': workshop.meals,
        'volunteerPathway': workshop.volunteer_pathway,
        'facilitators': workshop.facilitators or [],
        'story': workshop.story,
        'imageUrls': display_url_array(workshop.image_urls) or [],
        'published': workshop.published,
        'order': workshop.order,
        'createdAt': isoformat(workshop.created_at),
        'updatedAt': isoformat(workshop.updated_at),
    }


def serialize_application(application: RetreatApplication) -> dict:
    return {
        'id': application.id,
        'fullName': application.full_name,
        'email': application.email,
        'phone': application.phone,
        'workshopId': application.workshop_id,
        'message': application.message,
        'status': application.status,
        'notes': application.notes,
        'createdAt': isoformat(application.created_at),
        'updatedAt': isoformat(application.updated_at),
    }


workshop_service = WorkshopService()

__all__ = [
    'WorkshopService',
    'workshop_service',
    'parse_program',
    'workshop_folder',
    'upload_workshop_image',
    'list_applications',
    'update_application',
    'delete_application',
    'serialize_workshop',
    'serialize_application',
]
