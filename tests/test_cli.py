import json

from farmcms.extensions import db
from farmcms.models import MediaItem, TeamMember, User, UserRole


def test_admin_create_and_reset(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['admin', 'create', '--email', 'Boss@Farm.test', '--password', 'pw1'])
    assert result.exit_code == 0
    assert 'User created successfully!' in result.output

    result = runner.invoke(args=['admin', 'create', '--email', 'boss@farm.test', '--password', 'pw2',
                                 '--role', 'editor'])
    assert 'Existing user updated.' in result.output

    with app.app_context():
        user = db.session.query(User).filter_by(email='boss@farm.test').one()
        assert user.role == UserRole.EDITOR
        assert user.check_password('pw2')


def test_generate_secret(app):
    result = app.test_cli_runner().invoke(args=['admin', 'generate-secret', '--bytes', '16'])
    assert result.exit_code == 0
    assert len(result.output.strip()) == 32


def test_media_sync(app, blob_store):
    blob_store.objects['team/1700000000000-mai.jpg'] = (b'x', 'image/jpeg')
    result = app.test_cli_runner().invoke(args=['media', 'sync'])
    assert result.exit_code == 0
    assert 'Added: 1' in result.output
    with app.app_context():
        item = db.session.query(MediaItem).one()
        assert item.category == 'team'
        assert item.mime_type == 'image/jpeg'


def test_media_sync_reports_unavailable_store(app, blob_store):
    blob_store.fail = True
    result = app.test_cli_runner().invoke(args=['media', 'sync'])
    assert result.exit_code == 1


def test_media_reconcile_clears_references_without_deleting(app, blob_store):
    url = 'https://test-bucket.s3.eu-west-1.amazonaws.com/team/mai.jpg'
    blob_store.objects['team/mai.jpg'] = (b'x', 'image/jpeg')
    with app.app_context():
        member = TeamMember(name='Mai', role='Host', photo_url=url)
        db.session.add(member)
        db.session.commit()
        member_id = member.id

    result = app.test_cli_runner().invoke(args=['media', 'reconcile', '--url', url])

    assert result.exit_code == 0
    report = json.loads(result.stdout)
    assert report['touched'] == [{'kind': 'team_member', 'id': member_id}]
    assert report['blobDeleted'] is None
    assert 'team/mai.jpg' in blob_store.objects
    with app.app_context():
        assert db.session.get(TeamMember, member_id).photo_url is None
