"""Retreat workshops and applications."""

from __future__ import annotations

from flask import jsonify, request

from farmcms.auth import is_admin, token_required
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import (
    current_user_id,
    json_body,
    not_found_or_bad_request,
    server_error,
)
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.retreat import (
    delete_application,
    list_applications,
    serialize_application,
    serialize_workshop,
    update_application,
    upload_workshop_image,
    workshop_service,
)


@api_bp.route('/retreat/workshops', methods=['GET'])
def list_workshops():
    try:
        workshops = workshop_service.list_workshops(include_drafts=is_admin())
        return jsonify({'workshops': [serialize_workshop(w) for w in workshops], 'count': len(workshops)})
    except Exception as e:
        return server_error('fetching retreat workshops', e)


@api_bp.route('/retreat/workshops', methods=['POST'])
@token_required
def create_workshop():
    try:
        workshop, error = workshop_service.create(workshop_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the retreat workshop', e)
    if error:
        return jsonify({'error': error}), 400
    return jsonify({'message': 'Workshop created successfully', 'workshop': serialize_workshop(workshop)}), 201


@api_bp.route('/retreat/workshops', methods=['PUT'])
@token_required
def update_workshop():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'ID is required'}), 400
    try:
        workshop, error = workshop_service.update(data['id'], workshop_service.from_payload(data))
    except Exception as e:
        return server_error('updating the retreat workshop', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Workshop updated successfully', 'workshop': serialize_workshop(workshop)})


@api_bp.route('/retreat/workshops', methods=['DELETE'])
@token_required
def delete_workshop():
    workshop_id = request.args.get('id')
    if not workshop_id:
        return jsonify({'error': 'ID is required'}), 400
    try:
        deleted, error = workshop_service.delete(workshop_id)
    except Exception as e:
        return server_error('deleting the retreat workshop', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Workshop deleted successfully', 'deletedId': workshop_id})


@api_bp.route('/retreat/workshops/image', methods=['POST'])
@token_required
def upload_workshop():
    try:
        stored = upload_workshop_image(
            request.files.get('image'),
            request.form.get('workshopName'),
            workshop_id=request.form.get('workshopId'),
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
        'url': stored['url'],
        'filename': stored['filename'],
    }), 201


@api_bp.route('/retreat/applications', methods=['GET'])
@token_required
def get_applications():
    try:
        applications = list_applications(request.args.get('status'))
        return jsonify({
            'applications': [serialize_application(a) for a in applications],
            'count': len(applications),
        })
    except Exception as e:
        return server_error('fetching applications', e)


@api_bp.route('/retreat/applications', methods=['PUT'])
@token_required
def put_application():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'Application ID is required'}), 400
    try:
        application, error = update_application(data['id'], data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return server_error('updating the application', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Application updated successfully', 'application': serialize_application(application)})


@api_bp.route('/retreat/applications', methods=['DELETE'])
@token_required
def remove_application():
    application_id = request.args.get('id')
    if not application_id:
        return jsonify({'error': 'Application ID is required'}), 400
    try:
        deleted = delete_application(application_id)
    except Exception as e:
        return server_error('deleting the application', e)
    if not deleted:
        return jsonify({'error': 'Application not found'}), 404
    return jsonify({'message': 'Application deleted successfully', 'deletedId': application_id})
