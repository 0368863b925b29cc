"""Team members, their skills and photos."""

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
from farmcms.services.media_library import serialize_media_item, upload_media
from farmcms.services.team import serialize_member, team_service


@api_bp.route('/team', methods=['GET'])
@token_required
def list_team():
    try:
        members = team_service.list_members()
        return jsonify({'teamMembers': [serialize_member(m) for m in members], 'count': len(members)})
    except Exception as e:
        return server_error('fetching team members', e)


@api_bp.route('/team', methods=['POST'])
@token_required
def create_team_member():
    try:
        member, error = team_service.create(team_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the team member', e)
    if error:
        return jsonify({'error': error}), 400
    return jsonify({'message': 'Team member created successfully', 'teamMember': serialize_member(member)}), 201


@api_bp.route('/team', methods=['PUT'])
@token_required
def update_team_member():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'Team member ID is required'}), 400
    try:
        member, error = team_service.update(data['id'], team_service.from_payload(data))
    except Exception as e:
        return server_error('updating the team member', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Team member updated successfully', 'teamMember': serialize_member(member)})


@api_bp.route('/team', methods=['DELETE'])
@token_required
def delete_team_member():
    member_id = request.args.get('id')
    if not member_id:
        return jsonify({'error': 'Team member ID is required'}), 400
    try:
        deleted, error = team_service.delete(member_id)
    except Exception as e:
        return server_error('deleting the team member', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Team member deleted successfully', 'deletedId': member_id})


@api_bp.route('/team/photo', methods=['POST'])
@token_required
def upload_team_photo():
    try:
        item = upload_media(
            request.files.get('photo'),
            category='team',
            folder='team',
            images_only=True,
            uploaded_by=current_user_id(),
            team_member_id=request.form.get('teamMemberId'),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except BlobStoreUnavailable as e:
        return jsonify({'error': 'Storage is unavailable', 'details': str(e)}), 503
    except Exception as e:
        return server_error('uploading the photo', e)
    return jsonify({
        'message': 'Photo uploaded successfully',
        'url': item.url,
        'filename': item.filename,
        'media': serialize_media_item(item),
    }), 201
