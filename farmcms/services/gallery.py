"""Gallery albums and their images."""

from __future__ import annotations

from typing import Any

from flask import current_app
from sqlalchemy import func, select
from werkzeug.datastructures import FileStorage

from farmcms.extensions import db
from farmcms.models import GalleryAlbum, GalleryImage, MediaItem
from farmcms.services.content import slugify
from farmcms.services.crud import CRUDService, clean_text, isoformat
from farmcms.services.media_library import create_media_item
from farmcms.services.reconciliation import ReconciliationReport, reconcile_deletion
from farmcms.services.storage import get_blob_store
from farmcms.services.uploads import store_upload


class AlbumService(CRUDService):
    label = 'gallery album'
    fields = {
        'name': 'name',
        'description': 'description',
        'coverImageUrl': 'cover_image_url',
    }

    def __init__(self):
        super().__init__(GalleryAlbum)

    def list_albums(self) -> list[GalleryAlbum]:
        """Albums newest first, with stale image counts corrected on the way."""
        counts = dict(db.session.execute(
            select(GalleryImage.album_id, func.count(GalleryImage.id)).group_by(GalleryImage.album_id)
        ).all())
        albums = self.list_all(order_by=GalleryAlbum.created_at.desc())
        stale = False
        for album in albums:
            actual = counts.get(album.id, 0)
            if album.image_count != actual:
                album.image_count = actual
                stale = True
        if stale:
            db.session.commit()
        return albums

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        if not clean_text(data.get('name')):
            return 'Album name is required'
        return None

    def _validate_update(self, instance, data: dict[str, Any]) -> str | None:
        if 'name' in data and not clean_text(data.get('name')):
            return 'Album name is required'
        return None

    def _prepare(self, data: dict[str, Any], instance) -> dict[str, Any]:
        data = {key: clean_text(value) for key, value in data.items()}
        if instance is None:
            data['image_count'] = 0
        return data

    def _handle_integrity_error(self, error) -> str:
        if 'unique' in str(error).lower():
            return 'An album with this name already exists'
        return super()._handle_integrity_error(error)

    def delete_album(self, album_id: str) -> tuple[bool, str | None, list[dict]]:
        """
        Delete an album, its images, their media rows and stored objects.

        Returns:
            (success, error_message, reconciliation reports)
        """
        album = self.get_by_id(album_id)
        if album is None:
            return False, 'Gallery album not found', []

        urls = list(dict.fromkeys(image.url for image in album.images))
        db.session.delete(album)
        db.session.commit()

        reports = [remove_media_for_url(url).to_dict() for url in urls]
        return True, None, reports


def album_folder(album: GalleryAlbum) -> str:
    return f'gallery/{slugify(album.name) or album.id}'


def next_image_order(album_id: str) -> int:
    current = db.session.execute(
        select(func.coalesce(func.max(GalleryImage.order), 0)).where(GalleryImage.album_id == album_id)
    ).scalar_one()
    return int(current) + 1


def list_images(album_id: str) -> list[GalleryImage]:
    stmt = (
        select(GalleryImage)
        .where(GalleryImage.album_id == album_id)
        .order_by(GalleryImage.order.asc(), GalleryImage.created_at.asc())
    )
    return list(db.session.execute(stmt).scalars())


def add_image(album: GalleryAlbum, file: FileStorage, *, alt: str | None = None,
              description: str | None = None, uploaded_by: str | None = None) -> GalleryImage:
    """
    Upload an image into the album's folder and append it to the album.

    The album's count goes up by one and the image becomes the cover when the
    album has none. A matching media library row is recorded as well.
    """
    stored = store_upload(file, album_folder(album), images_only=True)

    image = GalleryImage(
        album_id=album.id,
        filename=stored['filename'],
        original_name=stored['original_name'],
        mime_type=stored['mime_type'],
        size=stored['size'],
        url=stored['url'],
        alt=clean_text(alt),
        description=clean_text(description),
        uploaded_by=uploaded_by,
        order=next_image_order(album.id),
    )
    db.session.add(image)
    album.image_count = (album.image_count or 0) + 1
    if not album.cover_image_url:
        album.cover_image_url = image.url

    if db.session.execute(select(MediaItem.id).where(MediaItem.url == image.url).limit(1)).first() is None:
        create_media_item(
            stored=stored,
            category='gallery',
            folder='gallery',
            uploaded_by=uploaded_by,
            commit=False,
        )
    db.session.commit()
    return image


def remove_media_for_url(url: str) -> ReconciliationReport:
    """
    Reconcile, delete from storage and drop media rows for ``url``.

    Used for gallery images, whose media rows are optional: when none exists a
    transient one drives the reconciliation.
    """
    store = get_blob_store()
    items = db.session.execute(select(MediaItem).where(MediaItem.url == url)).scalars().all()
    media = items[0] if items else MediaItem(url=url, filename=url.rsplit('/', 1)[-1], original_name='')
    report = reconcile_deletion(media, blob_store=store)
    for item in items:
        db.session.delete(item)
    db.session.commit()
    if report.blob_deleted is False:
        current_app.logger.warning(f"Gallery object left in storage: {url}")
    return report


def delete_image(image_id: str) -> ReconciliationReport | None:
    """Delete a gallery image, its stored object and media row; None when it does not exist."""
    image = db.session.get(GalleryImage, image_id)
    if image is None:
        return None
    return remove_media_for_url(image.url)


def serialize_album(album: GalleryAlbum) -> dict:
    return {
        'id': album.id,
        'name': album.name,
        'description': album.description,
        'coverImageUrl': album.cover_image_url,
        'imageCount': album.image_count,
        'albumSlug': slugify(album.name),
        'createdAt': isoformat(album.created_at),
        'updatedAt': isoformat(album.updated_at),
    }


def serialize_image(image: GalleryImage) -> dict:
    return {
        'id': image.id,
        'albumId': image.album_id,
        'filename': image.filename,
        'originalName': image.original_name,
        'mimeType': image.mime_type,
        'size': image.size,
        'url': image.url,
        'alt': image.alt,
        'description': image.description,
        'uploadedBy': image.uploaded_by,
        'order': image.order,
        'createdAt': isoformat(image.created_at),
        'updatedAt': isoformat(image.updated_at),
    }


album_service = AlbumService()

__all__ = [
    'AlbumService',
    'album_service',
    'album_folder',
    'next_image_order',
    'list_images',
    'add_image',
    'remove_media_for_url',
    'delete_image',
    'serialize_album',
    'serialize_image',
]
