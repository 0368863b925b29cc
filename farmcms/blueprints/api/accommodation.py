"""Accommodation listings, their images and guest reviews."""

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
from farmcms.models import Accommodation, AccommodationReview
from farmcms.services.accommodations import (
    accommodation_service,
    review_service,
    serialize_accommodation,
    serialize_review,
)
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.media_library import serialize_media_item, upload_media


@api_bp.route('/accommodation', methods=['GET'])
@token_required
def list_accommodations():
    try:
        items = accommodation_service.list_all(order_by=Accommodation.created_at.desc())
        return jsonify({
            'accommodations': [serialize_accommodation(item) for item in items],
            'count': len(items),
        })
    except Exception as e:
        return server_error('fetching accommodations', e)


@api_bp.route('/accommodation', methods=['POST'])
@token_required
def create_accommodation():
    try:
        item, error = accommodation_service.create(accommodation_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the accommodation', e)
    if error:
        return jsonify({'error': error}), 400
    return jsonify({
        'message': 'Accommodation created successfully',
        'accommodation': serialize_accommodation(item),
    }), 201


@api_bp.route('/accommodation', methods=['PUT'])
@token_required
def update_accommodation():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'Accommodation ID is required'}), 400
    try:
        item, error = accommodation_service.update(data['id'], accommodation_service.from_payload(data))
    except Exception as e:
        return server_error('updating the accommodation', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({
        'message': 'Accommodation updated successfully',
        'accommodation': serialize_accommodation(item),
    })


@api_bp.route('/accommodation', methods=['DELETE'])
@token_required
def delete_accommodation():
    accommodation_id = request.args.get('id')
    if not accommodation_id:
        return jsonify({'error': 'Accommodation ID is required'}), 400
    try:
        deleted, error = accommodation_service.delete(accommodation_id)
    except Exception as e:
        return server_error('deleting the accommodation', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Accommodation deleted successfully', 'deletedId': accommodation_id})


@api_bp.route('/accommodation/image', methods=['POST'])
@token_required
def upload_accommodation_image():
    try:
        item = upload_media(
            request.files.get('image'),
            category='accommodation',
            folder='accommodation',
            images_only=True,
            uploaded_by=current_user_id(),
            accommodation_id=request.form.get('accommodationId'),
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


@api_bp.route('/accommodation/reviews', methods=['GET'])
@token_required
def list_reviews():
    filters = {}
    if request.args.get('accommodationId'):
        filters['accommodation_id'] = request.args['accommodationId']
    try:
        reviews = review_service.list_all(filters, order_by=AccommodationReview.created_at.desc())
        return jsonify({'reviews': [serialize_review(r) for r in reviews], 'count': len(reviews)})
    except Exception as e:
        return server_error('fetching reviews', e)


@api_bp.route('/accommodation/reviews', methods=['POST'])
def create_review():
    """Guests submit reviews without signing in."""
    try:
        review, error = review_service.create(review_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the review', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Review created successfully', 'review': serialize_review(review)}), 201


@api_bp.route('/accommodation/reviews', methods=['PUT'])
@token_required
def update_review():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'Review ID is required'}), 400
    try:
        review, error = review_service.update(data['id'], review_service.from_payload(data))
    except Exception as e:
        return server_error('updating the review', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Review updated successfully', 'review': serialize_review(review)})


@api_bp.route('/accommodation/reviews', methods=['DELETE'])
@token_required
def delete_review():
    review_id = request.args.get('id')
    if not review_id:
        return jsonify({'error': 'Review ID is required'}), 400
    try:
        deleted, error = review_service.delete(review_id)
    except Exception as e:
        return server_error('deleting the review', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Review deleted successfully', 'deletedId': review_id})
