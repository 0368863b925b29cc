"""Sign-in for the admin dashboard."""

from __future__ import annotations

from datetime import datetime, timezone

from flask import current_app, jsonify
from sqlalchemy import select

from farmcms.auth import generate_token, parse_expires_in
from farmcms.blueprints.api import api_bp
from farmcms.blueprints.api.helpers import json_body, server_error
from farmcms.extensions import db, limiter
from farmcms.models import User, UserRole


def _signed_in(user: User, message: str):
    token = generate_token(user)
    response = jsonify({
        'message': message,
        'token': token,
        'user': {'id': user.id, 'email': user.email, 'role': user.role.value},
    })
    lifetime = parse_expires_in(current_app.config.get('JWT_EXPIRES_IN', '7d'))
    response.set_cookie(
        'token',
        token,
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        samesite='Lax',
        secure=not current_app.debug and not current_app.testing,
    )
    return response


@api_bp.route('/auth/signin', methods=['POST'])
@limiter.limit("5 per minute")
def signin():
    data = json_body()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    try:
        user = db.session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user is None:
            # First sign-in with an unknown email bootstraps an admin account.
            user = User(email=email, role=UserRole.ADMIN)
            user.set_password(password)
            user.last_login_at = datetime.now(timezone.utc)
            db.session.add(user)
            db.session.commit()
            current_app.logger.info(f"Created admin account {email} on first sign-in")
            return _signed_in(user, 'User created and signed in successfully')

        if not user.check_password(password) or not user.is_active:
            return jsonify({'error': 'Invalid email or password'}), 401

        user.last_login_at = datetime.now(timezone.utc)
        db.session.commit()
        return _signed_in(user, 'Sign in successful')
    except Exception as e:
        return server_error('signing in', e)


@api_bp.route('/auth/signout', methods=['POST'])
def signout():
    response = jsonify({'message': 'Signed out'})
    response.delete_cookie('token')
    return response
