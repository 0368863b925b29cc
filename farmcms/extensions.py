import bcrypt
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Shared by the app factory, models, services and CLI

db = SQLAlchemy()
# The API answers 401s itself, so there is no login view to redirect to.
login_manager = LoginManager()
login_manager.session_protection = None
migrate = Migrate(compare_type=True)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
)

__all__ = [
    "db",
    "bcrypt",
    "login_manager",
    "migrate",
    "limiter",
]
