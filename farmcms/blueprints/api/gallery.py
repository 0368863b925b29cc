"""Gallery albums and images."""

from __future__ import annotations

from flask import jsonify, request

from farmcms.auth import token_required
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import (
    current_user_id,
    json_body,
    not_found_or_bad_request,
    server_error,
)
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.gallery import (
    add_image,
    album_service,
    delete_image,
    list_images,
    serialize_album,
    serialize_image,
)


@api_bp.route('/gallery/albums', methods=['GET'])
@token_required
def list_albums():
    try:
        albums = album_service.list_albums()
        return jsonify({'albums': [serialize_album(a) for a in albums], 'count': len(albums)})
    except Exception as e:
        return server_error('fetching albums', e)


@api_bp.route('/gallery/albums', methods=['POST'])
@token_required
def create_album():
    try:
        album, error = album_service.create(album_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the album', e)
    if error:
        return jsonify({'error': error}), 400
    data = serialize_album(album)
    return jsonify({
        'message': 'Gallery album created successfully',
        'album': data,
        'albumSlug': data['albumSlug'],
    }), 201


@api_bp.route('/gallery/albums', methods=['PUT'])
@token_required
def update_album():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'Album ID is required'}), 400
    try:
        album, error = album_service.update(data['id'], album_service.from_payload(data))
    except Exception as e:
        return server_error('updating the album', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Gallery album updated successfully', 'album': serialize_album(album)})


@api_bp.route('/gallery/albums', methods=['DELETE'])
@token_required
def delete_album():
    album_id = request.args.get('id')
    if not album_id:
        return jsonify({'error': 'Album ID is required'}), 400
    try:
        deleted, error, reports = album_service.delete_album(album_id)
    except Exception as e:
        return server_error('deleting the album', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({
        'message': 'Gallery album deleted successfully',
        'deletedId': album_id,
        'reconciliation': reports,
    })


@api_bp.route('/gallery/images', methods=['GET'])
@token_required
def get_gallery_images():
    album_id = request.args.get('albumId')
    if not album_id:
        return jsonify({'error': 'Album ID is required'}), 400
    try:
        images = list_images(album_id)
        return jsonify({'images': [serialize_image(i) for i in images], 'count': len(images)})
    except Exception as e:
        return server_error('fetching images', e)


@api_bp.route('/gallery/images', methods=['POST'])
@token_required
def upload_gallery_image():
    album_id = request.form.get('albumId')
    if not album_id:
        return jsonify({'error': 'Album ID is required'}), 400
    album = album_service.get_by_id(album_id)
    if album is None:
        return jsonify({'error': 'Album not found'}), 404
    try:
        image = add_image(
            album,
            request.files.get('image'),
            alt=request.form.get('alt'),
            description=request.form.get('description'),
            uploaded_by=current_user_id(),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except BlobStoreUnavailable as e:
        return jsonify({'error': 'Storage is unavailable', 'details': str(e)}), 503
    except Exception as e:
        return server_error('uploading the image', e)
    return jsonify({'message': 'Image uploaded successfully', 'image': serialize_image(image)}), 201


@api_bp.route('/gallery/images', methods=['DELETE'])
@token_required
def delete_gallery_image():
    image_id = request.args.get('id')
    if not image_id:
        return jsonify({'error': 'Image ID is required'}), 400
    try:
        report = delete_image(image_id)
    except Exception as e:
        return server_error('deleting the image', e)
    if report is None:
        return jsonify({'error': 'Image not found'}), 404
    return jsonify({
        'message': 'Image deleted successfully',
        'deletedId': image_id,
        'reconciliation': report.to_dict(),
    })
