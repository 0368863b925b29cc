"""Blog posts: public reading, admin writing."""

from __future__ import annotations

from flask import jsonify, request

from farmcms.auth import admin_required, is_admin
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import json_body, not_found_or_bad_request, server_error
from farmcms.services.blog import blog_service, serialize_post


@api_bp.route('/blog', methods=['GET'])
def list_blog_posts():
    try:
        posts = blog_service.list_posts(
            include_drafts=is_admin(),
            category=request.args.get('category'),
            published=request.args.get('published'),
            slug=request.args.get('slug'),
        )
        return jsonify({'blogPosts': [serialize_post(p) for p in posts], 'count': len(posts)})
    except Exception as e:
        return server_error('fetching blog posts', e)


@api_bp.route('/blog', methods=['POST'])
@admin_required
def create_blog_post():
    try:
        post, error = blog_service.create(blog_service.from_payload(json_body()))
    except Exception as e:
        return server_error('creating the blog post', e)
    if error:
        return jsonify({'error': error}), 400
    return jsonify({'message': 'Blog post created successfully', 'blogPost': serialize_post(post)}), 201


@api_bp.route('/blog', methods=['PUT'])
@admin_required
def update_blog_post():
    data = json_body()
    if not data.get('id'):
        return jsonify({'error': 'Blog post ID is required'}), 400
    try:
        post, error = blog_service.update(data['id'], blog_service.from_payload(data))
    except Exception as e:
        return server_error('updating the blog post', e)
    if error:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Blog post updated successfully', 'blogPost': serialize_post(post)})


@api_bp.route('/blog', methods=['DELETE'])
@admin_required
def delete_blog_post():
    post_id = request.args.get('id')
    if not post_id:
        return jsonify({'error': 'Blog post ID is required'}), 400
    try:
        deleted, error = blog_service.delete(post_id)
    except Exception as e:
        return server_error('deleting the blog post', e)
    if not deleted:
        return not_found_or_bad_request(error)
    return jsonify({'message': 'Blog post deleted successfully', 'deletedId': post_id})
