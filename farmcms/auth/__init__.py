"""Bearer-token authentication shared across the API."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Callable, TypeVar, cast

import jwt
from flask import current_app, jsonify, request
from flask_login import current_user

from farmcms.extensions import db
from farmcms.models import User, UserRole

F = TypeVar('F', bound=Callable[..., object])

_DURATION_RE = re.compile(r'^\s*(\d+)\s*([smhd]?)\s*$')
_UNITS = {'': 'seconds', 's': 'seconds', 'm': 'minutes', 'h': 'hours', 'd': 'days'}


def parse_expires_in(value: str | int) -> timedelta:
    """Parse durations like ``7d``, ``12h``, ``30m`` or a bare number of seconds."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f'Invalid token lifetime: {value!r}')
    amount, unit = match.groups()
    return timedelta(**{_UNITS[unit]: int(amount)})


def _secret() -> str:
    secret = current_app.config.get('JWT_SECRET')
    if not secret:
        raise RuntimeError('JWT_SECRET is not configured')
    return secret


def generate_token(user: User) -> str:
    """Issue a signed token for ``user``."""
    lifetime = parse_expires_in(current_app.config.get('JWT_EXPIRES_IN', '7d'))
    payload = {
        'email': user.email,
        'userId': str(user.id),
        'role': user.role.value if isinstance(user.role, UserRole) else str(user.role),
        'exp': datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(payload, _secret(), algorithm='HS256')


def verify_token(token: str) -> dict | None:
    """Return the token payload, or None when it is invalid or expired."""
    try:
        return jwt.decode(token, _secret(), algorithms=['HS256'])
    except jwt.PyJWTError:
        return None


def get_token_from_request(req=None) -> str | None:
    """Read the token from the Authorization header, falling back to the ``token`` cookie."""
    req = req or request
    auth_header = req.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        return auth_header[7:].strip() or None
    return req.cookies.get('token') or None


def load_user_from_request(req) -> User | None:
    """Flask-Login request loader resolving the bearer token to a user."""
    token = get_token_from_request(req)
    if not token:
        return None
    payload = verify_token(token)
    if not payload or not payload.get('userId'):
        return None
    user = db.session.get(User, payload['userId'])
    if user is None or not user.is_active:
        return None
    return user


def token_required(func: F) -> F:
    """Reject the request with a JSON 401 unless it carries a valid token."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not get_token_from_request():
            return jsonify({'error': 'No token provided'}), 401
        if not current_user.is_authenticated:
            return jsonify({'error': 'Invalid or expired token'}), 401
        return func(*args, **kwargs)
    return cast(F, wrapper)


def admin_required(func: F) -> F:
    """Like token_required, and the principal must be an admin."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not get_token_from_request():
            return jsonify({'error': 'No token provided'}), 401
        if not current_user.is_authenticated:
            return jsonify({'error': 'Invalid or expired token'}), 401
        if not current_user.has_role(UserRole.ADMIN):
            return jsonify({'error': 'Admin access required'}), 403
        return func(*args, **kwargs)
    return cast(F, wrapper)


def is_admin() -> bool:
    return bool(current_user.is_authenticated and current_user.has_role(UserRole.ADMIN))


__all__ = [
    'parse_expires_in',
    'generate_token',
    'verify_token',
    'get_token_from_request',
    'load_user_from_request',
    'token_required',
    'admin_required',
    'is_admin',
]
