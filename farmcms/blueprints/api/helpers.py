"""Small request/response helpers shared by the API route modules."""

from __future__ import annotations

from flask import current_app, jsonify, request
from flask_login import current_user

from farmcms.extensions import db


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user_id() -> str | None:
    return current_user.get_id() if current_user.is_authenticated else None


def server_error(action: str, error: Exception):
    """Roll back, log with traceback and answer a JSON 500."""
    db.session.rollback()
    current_app.logger.exception(f"Error {action}: {error}")
    return jsonify({'error': f'An error occurred while {action}', 'details': str(error)}), 500


def not_found_or_bad_request(error: str):
    """Services report missing records as '<Label> not found'."""
    status = 404 if error.endswith('not found') else 400
    return jsonify({'error': error}), status


__all__ = ['json_body', 'current_user_id', 'server_error', 'not_found_or_bad_request']
