import io
from datetime import timedelta

import pytest
from botocore.stub import Stubber
from werkzeug.datastructures import FileStorage

from farmcms.auth import generate_token, parse_expires_in, verify_token
from farmcms.models import User, UserRole
from farmcms.services.errors import BlobStoreUnavailable
from farmcms.services.storage import S3BlobStore
from farmcms.services.uploads import build_filename, choose_folder, guess_mime_type, store_upload


@pytest.fixture()
def s3_store():
    store = S3BlobStore('farm-bucket', 'eu-west-1', access_key_id='test', secret_access_key='test')
    with Stubber(store.client) as stubber:
        yield store, stubber


def test_public_urls_round_trip():
    store = S3BlobStore('farm-bucket', 'eu-west-1')
    url = store.url_for_key('gallery/summer/1-a b.jpg')
    assert url == 'https://farm-bucket.s3.eu-west-1.amazonaws.com/gallery/summer/1-a b.jpg'
    assert store.key_from_url('https://farm-bucket.s3.eu-west-1.amazonaws.com/team/a%20b.jpg') == 'team/a b.jpg'

    minio = S3BlobStore('farm-bucket', 'eu-west-1', endpoint_url='http://localhost:9000/')
    assert minio.url_for_key('team/a.jpg') == 'http://localhost:9000/farm-bucket/team/a.jpg'
    assert minio.key_from_url('http://localhost:9000/farm-bucket/team/a.jpg') == 'team/a.jpg'


def test_put_maps_missing_bucket(app_ctx, s3_store):
    store, stubber = s3_store
    stubber.add_client_error('put_object', service_error_code='NoSuchBucket')
    with pytest.raises(BlobStoreUnavailable, match='does not exist'):
        store.put(b'data', 'images/a.jpg', 'image/jpeg')


def test_delete_uses_key_from_url(s3_store):
    store, stubber = s3_store
    stubber.add_response('delete_object', {}, {'Bucket': 'farm-bucket', 'Key': 'images/a.jpg'})
    store.delete('https://farm-bucket.s3.eu-west-1.amazonaws.com/images/a.jpg')
    stubber.assert_no_pending_responses()


def test_delete_failure_raises_unavailable(s3_store):
    store, stubber = s3_store
    stubber.add_client_error('delete_object', service_error_code='AccessDenied')
    with pytest.raises(BlobStoreUnavailable):
        store.delete('https://farm-bucket.s3.eu-west-1.amazonaws.com/images/a.jpg')


def test_list_objects_groups_known_folders(s3_store):
    store, stubber = s3_store
    stubber.add_response('list_objects_v2', {
        'Contents': [
            {'Key': 'gallery/summer/1.jpg', 'Size': 3},
            {'Key': 'team/', 'Size': 0},
            {'Key': 'random/file.bin', 'Size': 1},
            {'Key': 'team/mai.jpg', 'Size': 5},
        ],
        'IsTruncated': False,
    }, {'Bucket': 'farm-bucket'})
    grouped = store.list_objects()
    assert [o['key'] for o in grouped['gallery']] == ['gallery/summer/1.jpg']
    assert [o['key'] for o in grouped['team']] == ['team/mai.jpg']
    assert 'random' not in grouped


def test_build_filename_sanitizes():
    assert build_filename('my photo (1).JPG', timestamp_ms=1700000000000) == '1700000000000-my_photo__1_.JPG'


def test_folder_choice():
    assert choose_folder('team', 'image/png') == 'team'
    assert choose_folder('misc', 'image/png') == 'images'
    assert choose_folder(None, 'video/mp4') == 'videos'
    assert choose_folder(None, 'application/pdf') == 'files'


def test_mime_guessing_by_folder():
    assert guess_mime_type('x.webp', 'gallery') == 'image/webp'
    assert guess_mime_type('x.unknown', 'team') == 'image/jpeg'
    assert guess_mime_type('clip.mov', 'videos') == 'video/quicktime'
    assert guess_mime_type('doc.pdf', 'files') == 'application/pdf'


def test_store_upload_enforces_size(app, blob_store):
    app.config['MAX_UPLOAD_SIZE'] = 4
    with app.app_context():
        file = FileStorage(io.BytesIO(b'12345'), filename='a.jpg', content_type='image/jpeg')
        with pytest.raises(ValueError, match='File size'):
            store_upload(file, 'images')
    assert blob_store.objects == {}


def test_store_upload_writes_to_folder(app, blob_store):
    with app.app_context():
        file = FileStorage(io.BytesIO(b'abc'), filename='a b.jpg', content_type='image/jpeg')
        stored = store_upload(file, 'gallery/summer', images_only=True)
    assert stored['size'] == 3
    assert stored['filename'].endswith('-a_b.jpg')
    assert blob_store.objects[f"gallery/summer/{stored['filename']}"] == (b'abc', 'image/jpeg')


def test_parse_expires_in():
    assert parse_expires_in('7d') == timedelta(days=7)
    assert parse_expires_in('90') == timedelta(seconds=90)
    assert parse_expires_in('15m') == timedelta(minutes=15)
    with pytest.raises(ValueError):
        parse_expires_in('soon')


def test_expired_tokens_are_rejected(app):
    app.config['JWT_EXPIRES_IN'] = '0s'
    with app.app_context():
        user = User(id='u1', email='a@b.test', role=UserRole.ADMIN)
        token = generate_token(user)
        assert verify_token(token) is None


def test_token_payload(app):
    with app.app_context():
        user = User(id='u1', email='a@b.test', role=UserRole.EDITOR)
        payload = verify_token(generate_token(user))
    assert payload['userId'] == 'u1'
    assert payload['role'] == 'editor'
    assert payload['email'] == 'a@b.test'
