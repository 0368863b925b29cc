"""File upload service for handling admin uploads."""

from __future__ import annotations

import mimetypes
import os
import re
import time

from flask import current_app
from werkzeug.datastructures import FileStorage

from farmcms.services.storage import KNOWN_FOLDERS, get_blob_store


IMAGE_TYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/gif', 'image/webp', 'image/svg+xml'}
IMAGE_EXTENSIONS = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'svg': 'image/svg+xml',
}
VIDEO_EXTENSIONS = {
    'mp4': 'video/mp4',
    'mov': 'video/quicktime',
    'avi': 'video/x-msvideo',
}

# Folders whose objects are always images, regardless of extension.
IMAGE_FOLDERS = {'images', 'team', 'accommodation', 'animals', 'vision', 'gallery', 'workshop'}

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9.-]')


def build_filename(original_name: str, timestamp_ms: int | None = None) -> str:
    """Return ``<epoch-ms>-<sanitized name>`` for a stored object."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{timestamp_ms}-{_UNSAFE_CHARS.sub('_', original_name or 'file')}"


def folder_from_mime_type(mime_type: str | None) -> str:
    mime_type = mime_type or ''
    if mime_type.startswith('image/'):
        return 'images'
    if mime_type.startswith('video/'):
        return 'videos'
    return 'files'


def choose_folder(category: str | None, mime_type: str | None) -> str:
    """Use the category as folder when it is a known one, else derive from MIME type."""
    if category and category in KNOWN_FOLDERS:
        return category
    return folder_from_mime_type(mime_type)


def guess_mime_type(filename: str, folder: str | None = None) -> str:
    """Guess a MIME type for a stored object from its extension and folder."""
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    if folder in IMAGE_FOLDERS:
        return IMAGE_EXTENSIONS.get(ext, 'image/jpeg')
    if folder == 'videos':
        return VIDEO_EXTENSIONS.get(ext, 'video/mp4')
    return mimetypes.guess_type(filename)[0] or 'application/octet-stream'


def _determine_size(file: FileStorage) -> int:
    stream = file.stream
    current = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(current)
    return size


def store_upload(file: FileStorage, folder: str, images_only: bool = False, filename: str | None = None) -> dict:
    """
    Push an uploaded file to the blob store.

    Args:
        file: The uploaded file from the multipart form
        folder: Key prefix inside the bucket (e.g. 'team', 'gallery/summer-2024')
        images_only: Reject anything that is not a supported image type
        filename: Object name to use instead of the generated one

    Returns:
        Dict with url, filename, original_name, mime_type and size

    Raises:
        ValueError: if the file is missing, too large or of the wrong type
    """
    if not file or not file.filename:
        raise ValueError('No file provided')

    mime_type = file.mimetype or guess_mime_type(file.filename)
    if images_only and mime_type not in IMAGE_TYPES:
        raise ValueError('Invalid file type. Only images are allowed.')

    size = _determine_size(file)
    max_size = current_app.config.get('MAX_UPLOAD_SIZE', 20 * 1024 * 1024)
    if size > max_size:
        raise ValueError(f'File size must be less than {max_size // (1024 * 1024)}MB')

    filename = filename or build_filename(file.filename)
    file.stream.seek(0)
    data = file.stream.read()

    url = get_blob_store().put(data, f'{folder}/{filename}', mime_type)
    return {
        'url': url,
        'filename': filename,
        'original_name': file.filename,
        'mime_type': mime_type,
        'size': size,
    }


__all__ = [
    'IMAGE_TYPES',
    'build_filename',
    'folder_from_mime_type',
    'choose_folder',
    'guess_mime_type',
    'store_upload',
]
