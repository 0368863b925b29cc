"""Bookable experiences."""

from __future__ import annotations

from flask import jsonify, request

from farmcms.auth import is_admin, token_required
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import json_body, not_found_or_bad_request, server_error
from farmcms.services.experiences import experience_service, serialize_experience


@api_bp.route('/experiences', methods=['GET'])
def list_experiences():
    try:
        items = experience_service.list_experiences(include_drafts=is_admin())
        return jsonify({'experiences': [serialize_experience(i) for i in items], 'count': len(items)})
    except Exception as e:
        return server_error('fetching experiences', e)


@api_bp.route('/experiences', methods=['POST'])
@token_required
def create_experience():
    try:
        item, error = experience_service.create(experience_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the experience', e)
    if error:
        return jsonify({'error': error}), 400
    return jsonify({'message': 'Experience created successfully', 'experience': serialize_experience(item)}), 201


@api_bp.route('/experiences', methods=['PUT'])
@token_required
def update_experience():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'ID is required'}), 400
    try:
        item, error = experience_service.update(data['id'], experience_service.from_payload(data))
    except Exception as e:
        return server_error('updating the experience', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Experience updated successfully', 'experience': serialize_experience(item)})


@api_bp.route('/experiences', methods=['DELETE'])
@token_required
def delete_experience():
    experience_id = request.args.get('id')
    if not experience_id:
        return jsonify({'error': 'ID is required'}), 400
    try:
        deleted, error = experience_service.delete(experience_id)
    except Exception as e:
        return server_error('deleting the experience', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Experience deleted successfully', 'deletedId': experience_id})
