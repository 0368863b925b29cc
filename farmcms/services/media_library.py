"""Utilities for managing the media library."""

from __future__ import annotations

import re
from typing import Iterable

from flask import current_app
from sqlalchemy import or_, select
from werkzeug.datastructures import FileStorage

from farmcms.extensions import db
from farmcms.models import Accommodation, Animal, BlogPost, MediaItem, TeamMember
from farmcms.services.crud import clean_text, isoformat
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.reconciliation import reconcile_deletion
from farmcms.services.storage import get_blob_store
from farmcms.services.uploads import choose_folder, guess_mime_type, store_upload

VISION_ZONE_RE = re.compile(r'^(dao-home|lilac|mayu|ecosystem)-')

LINK_FILTERS = {
    'accommodationId': MediaItem.accommodation_id,
    'animalId': MediaItem.animal_id,
    'teamMemberId': MediaItem.team_member_id,
    'blogPostId': MediaItem.blog_post_id,
}


def create_media_item(
    *,
    stored: dict,
    category: str | None = None,
    folder: str | None = None,
    alt: str | None = None,
    description: str | None = None,
    uploaded_by: str | None = None,
    accommodation_id: str | None = None,
    animal_id: str | None = None,
    team_member_id: str | None = None,
    blog_post_id: str | None = None,
    workshop_id: str | None = None,
    vision_zone_name: str | None = None,
    commit: bool = True,
) -> MediaItem:
    """Persist a media row for an object that is already in the blob store."""
    item = MediaItem(
        filename=stored['filename'],
        original_name=stored.get('original_name') or stored['filename'],
        mime_type=stored.get('mime_type') or 'application/octet-stream',
        size=stored.get('size') or 0,
        url=stored['url'],
        alt=clean_text(alt),
        description=clean_text(description),
        category=clean_text(category),
        folder=folder,
        uploaded_by=uploaded_by,
        accommodation_id=clean_text(accommodation_id),
        animal_id=clean_text(animal_id),
        team_member_id=clean_text(team_member_id),
        blog_post_id=clean_text(blog_post_id),
        workshop_id=clean_text(workshop_id),
        vision_zone_name=clean_text(vision_zone_name),
    )
    db.session.add(item)
    if commit:
        db.session.commit()
    return item


def upload_media(file: FileStorage, *, category: str | None = None, folder: str | None = None,
                 images_only: bool = False, **fields) -> MediaItem:
    """Store an upload and record it in the library.

    The folder defaults to the category when it is a known folder, otherwise
    it follows the file's MIME type.
    """
    folder = folder or choose_folder(category, file.mimetype if file else None)
    stored = store_upload(file, folder, images_only=images_only)
    return create_media_item(stored=stored, category=category, folder=folder.split('/', 1)[0], **fields)


def list_media(category: str | None = None, links: dict[str, str] | None = None) -> list[dict]:
    """Return serialized media rows, newest first, with their owners' names."""
    stmt = (
        select(
            MediaItem,
            Accommodation.name,
            Animal.name,
            TeamMember.name,
            BlogPost.title,
        )
        .outerjoin(Accommodation, MediaItem.accommodation_id == Accommodation.id)
        .outerjoin(Animal, MediaItem.animal_id == Animal.id)
        .outerjoin(TeamMember, MediaItem.team_member_id == TeamMember.id)
        .outerjoin(BlogPost, MediaItem.blog_post_id == BlogPost.id)
    )
    if category:
        stmt = stmt.where(MediaItem.category == category)
    for key, value in (links or {}).items():
        if value and key in LINK_FILTERS:
            stmt = stmt.where(LINK_FILTERS[key] == value)
    stmt = stmt.order_by(MediaItem.created_at.desc())

    rows = []
    for item, accommodation_name, animal_name, member_name, post_title in db.session.execute(stmt):
        data = serialize_media_item(item)
        data.update({
            'accommodationName': accommodation_name,
            'animalName': animal_name,
            'teamMemberName': member_name,
            'blogPostTitle': post_title,
        })
        rows.append(data)
    return rows


def delete_media_items(ids: Iterable[str]) -> dict | None:
    """
    Reconcile, remove from storage and delete the given media rows.

    Returns:
        Summary dict, or None when none of the ids exist
    """
    ids = [i for i in dict.fromkeys(ids) if i]
    items = db.session.execute(select(MediaItem).where(MediaItem.id.in_(ids))).scalars().all() if ids else []
    if not items:
        return None

    store = get_blob_store()
    snapshot = [(item.id, item.url) for item in items]
    reports = []
    deleted_from_store: list[str] = []
    failed_store_deletes: list[str] = []

    for item in items:
        # Stored objects are only deleted for URLs the bucket serves.
        managed = bool(item.url and item.url.startswith(('https://', 'http://')))
        report = reconcile_deletion(item, blob_store=store if managed else None)
        reports.append(report)
        if report.blob_deleted:
            deleted_from_store.append(item.id)
        elif report.blob_deleted is False:
            failed_store_deletes.append(item.id)

    for media_id, _ in snapshot:
        item = db.session.get(MediaItem, media_id)
        if item is not None:
            db.session.delete(item)
    db.session.commit()

    return {
        'message': f'Successfully deleted {len(snapshot)} file(s)',
        'deleted': len(snapshot),
        'deletedFromS3': len(deleted_from_store),
        'failedS3Deletes': len(failed_store_deletes),
        'failedIds': failed_store_deletes or None,
        'reconciliation': [report.to_dict() for report in reports],
    }


def sync_from_storage() -> dict:
    """
    Back-fill media rows for objects that exist in the blob store but not in the table.

    Rows matched by URL or filename whose category disagrees with the folder
    they sit in are corrected.

    Raises:
        BlobStoreUnavailable: if the store cannot be listed
    """
    grouped = get_blob_store().list_objects()
    added = corrected = 0

    for folder, objects in grouped.items():
        for obj in objects:
            key = obj['key']
            # Gallery keys keep their album path, others drop the folder prefix.
            filename = key.split('/', 1)[1] if '/' in key else key

            existing = db.session.execute(
                select(MediaItem).where(or_(MediaItem.url == obj['url'], MediaItem.filename == filename)).limit(1)
            ).scalar_one_or_none()

            if existing is not None:
                if existing.category != folder:
                    existing.category = folder
                    existing.folder = folder
                    corrected += 1
                continue

            vision_zone = None
            if folder == 'vision':
                match = VISION_ZONE_RE.match(filename)
                vision_zone = match.group(1) if match else None

            db.session.add(MediaItem(
                filename=filename,
                original_name=filename.rsplit('/', 1)[-1] if folder == 'gallery' else filename,
                mime_type=guess_mime_type(filename, folder),
                size=obj.get('size') or 0,
                url=obj['url'],
                category=folder,
                folder=folder,
                vision_zone_name=vision_zone,
            ))
            added += 1

    db.session.commit()
    if added or corrected:
        current_app.logger.info(f"Storage sync added {added} and corrected {corrected} media rows")
    return {'added': added, 'corrected': corrected}


def serialize_media_item(item: MediaItem) -> dict:
    """Serialize a media row for JSON responses."""
    return {
        'id': item.id,
        'filename': item.filename,
        'originalName': item.original_name,
        'mimeType': item.mime_type,
        'size': item.size,
        'url': item.url,
        'alt': item.alt,
        'description': item.description,
        'category': item.category,
        'folder': item.folder,
        'uploadedBy': item.uploaded_by,
        'accommodationId': item.accommodation_id,
        'animalId': item.animal_id,
        'teamMemberId': item.team_member_id,
        'blogPostId': item.blog_post_id,
        'workshopId': item.workshop_id,
        'visionZoneName': item.vision_zone_name,
        'createdAt': isoformat(item.created_at),
        'updatedAt': isoformat(item.updated_at),
    }


__all__ = [
    'BlobStoreUnavailable',
    'create_media_item',
    'upload_media',
    'list_media',
    'delete_media_items',
    'sync_from_storage',
    'serialize_media_item',
]
