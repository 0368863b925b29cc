"""Media library endpoints."""

from __future__ import annotations

from flask import jsonify, request

from farmcms.auth import token_required
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import current_user_id, json_body, server_error
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.media_library import (
    LINK_FILTERS,
    delete_media_items,
    list_media,
    serialize_media_item,
    sync_from_storage,
    upload_media,
)


@api_bp.route('/media', methods=['GET'])
@token_required
def get_media():
    try:
        sync = None
        if request.args.get('sync') == 'true':
            try:
                sync = sync_from_storage()
            except BlobStoreUnavailable as e:
                # Listing still works from the table alone.
                sync = {'error': str(e)}
        links = {key: request.args.get(key) for key in LINK_FILTERS}
        media = list_media(category=request.args.get('category'), links=links)
        payload = {'media': media, 'count': len(media)}
        if sync is not None:
            payload['sync'] = sync
        return jsonify(payload)
    except Exception as e:
        return server_error('fetching media', e)


@api_bp.route('/media', methods=['POST'])
@token_required
def post_media():
    file = request.files.get('file')
    form = request.form
    try:
        item = upload_media(
            file,
            category=form.get('category') or None,
            alt=form.get('alt'),
            description=form.get('description'),
            uploaded_by=current_user_id(),
            accommodation_id=form.get('accommodationId'),
            animal_id=form.get('animalId'),
            team_member_id=form.get('teamMemberId'),
            blog_post_id=form.get('blogPostId'),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except BlobStoreUnavailable as e:
        return jsonify({'error': 'Storage is unavailable', 'details': str(e)}), 503
    except Exception as e:
        return server_error('uploading the file', e)
    return jsonify({'message': 'File uploaded successfully', 'media': serialize_media_item(item)}), 201


def _requested_ids() -> list[str]:
    if request.args.get('id'):
        return [request.args['id']]
    if request.args.get('ids'):
        return [part.strip() for part in request.args['ids'].split(',') if part.strip()]
    ids = json_body().get('ids')
    if isinstance(ids, list):
        return [str(i) for i in ids if i]
    return []


@api_bp.route('/media', methods=['DELETE'])
@token_required
def delete_media():
    ids = _requested_ids()
    if not ids:
        return jsonify({'error': 'Media ID(s) required'}), 400
    try:
        result = delete_media_items(ids)
    except Exception as e:
        return server_error('deleting media', e)
    if result is None:
        return jsonify({'error': 'Media not found'}), 404
    return jsonify(result)
