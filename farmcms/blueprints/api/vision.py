"""The vision page content and its images."""

from __future__ import annotations

from flask import jsonify, request

from farmcms.auth import token_required
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import current_user_id, json_body, server_error
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.media_library import serialize_media_item
from farmcms.services.vision import get_vision_content, save_vision_content, serialize_vision, upload_vision_image


@api_bp.route('/vision', methods=['GET'])
def get_vision():
    try:
        return jsonify({'visionContent': get_vision_content()})
    except Exception as e:
        return server_error('fetching vision content', e)


@api_bp.route('/vision', methods=['PUT'])
@token_required
def put_vision():
    try:
        content = save_vision_content(json_body())
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return server_error('saving vision content', e)
    return jsonify({'message': 'Vision content saved successfully', 'visionContent': serialize_vision(content)})


@api_bp.route('/vision/image', methods=['POST'])
@token_required
def upload_vision():
    try:
        item = upload_vision_image(
            request.files.get('file'),
            request.form.get('zoneName'),
            uploaded_by=current_user_id(),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except BlobStoreUnavailable as e:
        return jsonify({'error': 'Storage is unavailable', 'details': str(e)}), 503
    except Exception as e:
        return server_error('uploading the image', e)
    return jsonify({
        'message': 'Image uploaded successfully',
        'url': item.url,
        'filename': item.filename,
        'media': serialize_media_item(item),
    }), 201
