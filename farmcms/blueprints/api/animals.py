"""Farm animal profiles."""

from __future__ import annotations

from flask import jsonify, request

from farmcms.auth import token_required
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import json_body, not_found_or_bad_request, server_error
from farmcms.models import Animal
from farmcms.services.animals import animal_service, serialize_animal


@api_bp.route('/animals', methods=['GET'])
@token_required
def list_animals():
    try:
        animals = animal_service.list_all(order_by=Animal.created_at.desc())
        return jsonify({'animals': [serialize_animal(a) for a in animals], 'count': len(animals)})
    except Exception as e:
        return server_error('fetching animals', e)


@api_bp.route('/animals', methods=['POST'])
@token_required
def create_animal():
    try:
        animal, error = animal_service.create(animal_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the animal', e)
    if error:
        return jsonify({'error': error}), 400
    return jsonify({'message': 'Animal created successfully', 'animal': serialize_animal(animal)}), 201


@api_bp.route('/animals', methods=['PUT'])
@token_required
def update_animal():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'Animal ID is required'}), 400
    try:
        animal, error = animal_service.update(data['id'], animal_service.from_payload(data))
    except Exception as e:
        return server_error('updating the animal', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Animal updated successfully', 'animal': serialize_animal(animal)})


@api_bp.route('/animals', methods=['DELETE'])
@token_required
def delete_animal():
    animal_id = request.args.get('id')
    if not animal_id:
        return jsonify({'error': 'Animal ID is required'}), 400
    try:
        deleted, error = animal_service.delete(animal_id)
    except Exception as e:
        return server_error('deleting the animal', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Animal deleted successfully', 'deletedId': animal_id})
