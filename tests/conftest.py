import os
from collections import defaultdict

os.environ['FARMCMS_SKIP_BOOTSTRAP'] = '1'

import pytest

from farmcms import create_app
from farmcms.auth import generate_token
from farmcms.config import Config
from farmcms.extensions import db
from farmcms.models import User, UserRole
from farmcms.services.errors import BlobStoreUnavailable

BUCKET_URL = 'https://test-bucket.s3.eu-west-1.amazonaws.com'


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET = 'test-secret'
    JWT_EXPIRES_IN = '1h'
    RATELIMIT_ENABLED = False
    AWS_S3_BUCKET_NAME = 'test-bucket'
    AWS_REGION = 'eu-west-1'


class MemoryBlobStore:
    """Stands in for the S3 store; set ``fail`` to make every call raise."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.fail = False

    def url_for_key(self, key: str) -> str:
        return f'{BUCKET_URL}/{key}'

    def key_from_url(self, url: str) -> str:
        return url[len(BUCKET_URL) + 1:] if url.startswith(BUCKET_URL + '/') else url

    def put(self, data: bytes, key: str, content_type: str) -> str:
        if self.fail:
            raise BlobStoreUnavailable('store is down')
        self.objects[key] = (data, content_type)
        return self.url_for_key(key)

    def delete(self, url: str) -> None:
        if self.fail:
            raise BlobStoreUnavailable('store is down')
        self.objects.pop(self.key_from_url(url), None)
        self.deleted.append(url)

    def list_objects(self) -> dict[str, list[dict]]:
        if self.fail:
            raise BlobStoreUnavailable('store is down')
        grouped = defaultdict(list)
        for key, (data, _) in self.objects.items():
            grouped[key.split('/', 1)[0]].append({
                'key': key,
                'url': self.url_for_key(key),
                'size': len(data),
                'last_modified': None,
            })
        return dict(grouped)


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    app.extensions['blob_store'] = MemoryBlobStore()

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def blob_store(app):
    return app.extensions['blob_store']


@pytest.fixture()
def app_ctx(app):
    with app.app_context():
        yield


def _token_for(app, email: str, role: UserRole) -> str:
    with app.app_context():
        user = User(email=email, role=role)
        user.set_password('password123')
        db.session.add(user)
        db.session.commit()
        return generate_token(user)


@pytest.fixture()
def auth_headers(app):
    return {'Authorization': f"Bearer {_token_for(app, 'admin@example.com', UserRole.ADMIN)}"}


@pytest.fixture()
def editor_headers(app):
    return {'Authorization': f"Bearer {_token_for(app, 'editor@example.com', UserRole.EDITOR)}"}
