import io

from farmcms.extensions import db
from farmcms.models import Accommodation, MediaItem

BUCKET_URL = 'https://test-bucket.s3.eu-west-1.amazonaws.com'


def _image(name='photo.jpg', mimetype='image/jpeg'):
    return (io.BytesIO(b'\xff\xd8\xff fake image'), name, mimetype)


def _upload(client, headers, path, field, **form):
    data = {field: _image(form.pop('filename', 'photo.jpg'))}
    data.update(form)
    return client.post(path, data=data, headers=headers, content_type='multipart/form-data')


class TestAuth:
    def test_first_signin_creates_admin(self, client):
        resp = client.post('/api/auth/signin', json={'email': 'Owner@Farm.test', 'password': 'pw'})
        assert resp.status_code == 200
        body = resp.get_json()
        assert body['user'] == {'id': body['user']['id'], 'email': 'owner@farm.test', 'role': 'admin'}
        assert body['token']

        token = body['token']
        listed = client.get('/api/accommodation', headers={'Authorization': f'Bearer {token}'})
        assert listed.status_code == 200

    def test_wrong_password_is_rejected(self, client):
        client.post('/api/auth/signin', json={'email': 'a@b.test', 'password': 'right'})
        resp = client.post('/api/auth/signin', json={'email': 'a@b.test', 'password': 'wrong'})
        assert resp.status_code == 401
        assert resp.get_json() == {'error': 'Invalid email or password'}

    def test_missing_credentials(self, client):
        assert client.post('/api/auth/signin', json={'email': 'a@b.test'}).status_code == 400

    def test_token_errors(self, client):
        assert client.get('/api/animals').get_json() == {'error': 'No token provided'}
        resp = client.get('/api/animals', headers={'Authorization': 'Bearer nonsense'})
        assert resp.status_code == 401
        assert resp.get_json() == {'error': 'Invalid or expired token'}

    def test_token_cookie_is_accepted(self, client):
        client.post('/api/auth/signin', json={'email': 'c@b.test', 'password': 'pw'})
        assert client.get('/api/animals').status_code == 200


class TestAccommodationAndMedia:
    def test_image_links_and_delete_reconciles(self, app, client, auth_headers, blob_store):
        upload = _upload(client, auth_headers, '/api/accommodation/image', 'image')
        assert upload.status_code == 201
        url = upload.get_json()['url']
        assert url.startswith(f'{BUCKET_URL}/accommodation/')
        media_id = upload.get_json()['media']['id']

        created = client.post('/api/accommodation', json={'name': 'Bamboo Hut', 'imageUrls': [url]},
                              headers=auth_headers)
        assert created.status_code == 201
        acc_id = created.get_json()['accommodation']['id']

        with app.app_context():
            assert db.session.get(MediaItem, media_id).accommodation_id == acc_id

        listed = client.get(f'/api/media?accommodationId={acc_id}', headers=auth_headers).get_json()
        assert listed['count'] == 1
        assert listed['media'][0]['accommodationName'] == 'Bamboo Hut'

        deleted = client.delete(f'/api/media?id={media_id}', headers=auth_headers)
        assert deleted.status_code == 200
        body = deleted.get_json()
        assert body['deleted'] == 1
        assert body['deletedFromS3'] == 1
        assert body['reconciliation'][0]['touched'] == [{'kind': 'accommodation', 'id': acc_id}]

        with app.app_context():
            assert db.session.get(Accommodation, acc_id).image_urls is None
            assert db.session.get(MediaItem, media_id) is None
        assert blob_store.objects == {}

    def test_delete_with_unavailable_store_still_removes_row(self, app, client, auth_headers, blob_store):
        media_id = _upload(client, auth_headers, '/api/media', 'file', category='images').get_json()['media']['id']
        blob_store.fail = True
        body = client.delete('/api/media', json={'ids': [media_id]}, headers=auth_headers).get_json()
        assert body['deleted'] == 1
        assert body['failedS3Deletes'] == 1
        assert body['failedIds'] == [media_id]
        with app.app_context():
            assert db.session.get(MediaItem, media_id) is None

    def test_delete_unknown_media(self, client, auth_headers):
        assert client.delete('/api/media?ids=nope,also-nope', headers=auth_headers).status_code == 404

    def test_upload_rejects_non_images(self, client, auth_headers):
        data = {'image': (io.BytesIO(b'text'), 'notes.txt', 'text/plain')}
        resp = client.post('/api/accommodation/image', data=data, headers=auth_headers,
                           content_type='multipart/form-data')
        assert resp.status_code == 400

    def test_name_is_required(self, client, auth_headers):
        resp = client.post('/api/accommodation', json={'price': 10}, headers=auth_headers)
        assert resp.get_json() == {'error': 'Property name is required'}

    def test_update_is_partial(self, client, auth_headers):
        acc = client.post('/api/accommodation', json={'name': 'Hut', 'zone': 'lilac'},
                          headers=auth_headers).get_json()['accommodation']
        updated = client.put('/api/accommodation', json={'id': acc['id'], 'price': '25.50'},
                             headers=auth_headers).get_json()['accommodation']
        assert updated['zone'] == 'lilac'
        assert updated['price'] == 25.5

    def test_deleting_an_animal_unlinks_its_media(self, app, client, auth_headers, blob_store):
        media = _upload(client, auth_headers, '/api/media', 'file', category='animals').get_json()['media']
        animal = client.post('/api/animals', json={'name': 'Turtle', 'photoUrls': [media['url']]},
                             headers=auth_headers).get_json()['animal']
        with app.app_context():
            assert db.session.get(MediaItem, media['id']).animal_id == animal['id']

        resp = client.delete(f"/api/animals?id={animal['id']}", headers=auth_headers)
        assert resp.get_json()['deletedId'] == animal['id']
        with app.app_context():
            assert db.session.get(MediaItem, media['id']).animal_id is None
        assert f"animals/{media['filename']}" in blob_store.objects

    def test_sync_backfills_rows_from_storage(self, client, auth_headers, blob_store):
        blob_store.objects['vision/lilac-123-abc.jpg'] = (b'x', 'image/jpeg')
        body = client.get('/api/media?sync=true', headers=auth_headers).get_json()
        assert body['sync'] == {'added': 1, 'corrected': 0}
        assert body['media'][0]['category'] == 'vision'
        assert body['media'][0]['visionZoneName'] == 'lilac'

    def test_reviews_are_public_and_clamped(self, client, auth_headers):
        acc = client.post('/api/accommodation', json={'name': 'Hut'}, headers=auth_headers).get_json()
        acc_id = acc['accommodation']['id']
        resp = client.post('/api/accommodation/reviews',
                           json={'accommodationId': acc_id, 'reviewerName': 'Ana', 'rating': 9})
        assert resp.status_code == 201
        assert resp.get_json()['review']['rating'] == 5

        missing = client.post('/api/accommodation/reviews',
                              json={'accommodationId': 'nope', 'reviewerName': 'Ana'})
        assert missing.status_code == 404


class TestTeam:
    def test_skills_and_photo_linkage(self, app, client, auth_headers):
        first = _upload(client, auth_headers, '/api/team/photo', 'photo', filename='one.jpg').get_json()
        second = _upload(client, auth_headers, '/api/team/photo', 'photo', filename='two.jpg').get_json()

        member = client.post('/api/team', json={
            'name': 'Mai',
            'role': 'Host',
            'photoUrl': first['url'],
            'skills': [{'skillName': 'Farming', 'level': 15}, 'Cooking'],
        }, headers=auth_headers).get_json()['teamMember']
        assert member['skills'] == [
            {'skill': {'id': member['skills'][0]['skill']['id'], 'name': 'Cooking'}, 'level': 5},
            {'skill': {'id': member['skills'][1]['skill']['id'], 'name': 'Farming'}, 'level': 10},
        ]

        client.put('/api/team', json={'id': member['id'], 'photoUrl': second['url'], 'skills': ['farming']},
                   headers=auth_headers)

        with app.app_context():
            assert db.session.get(MediaItem, first['media']['id']).team_member_id is None
            assert db.session.get(MediaItem, second['media']['id']).team_member_id == member['id']

        listed = client.get('/api/team', headers=auth_headers).get_json()
        assert [s['skill']['name'] for s in listed['teamMembers'][0]['skills']] == ['Farming']


class TestBlog:
    def test_visitors_only_see_published_posts(self, client, auth_headers):
        client.post('/api/blog', json={'title': 'Draft', 'content': 'x'}, headers=auth_headers)
        client.post('/api/blog', json={'title': 'Live', 'content': 'y', 'published': True}, headers=auth_headers)

        public = client.get('/api/blog?published=false').get_json()
        assert [p['title'] for p in public['blogPosts']] == ['Live']

        drafts = client.get('/api/blog?published=false', headers=auth_headers).get_json()
        assert [p['title'] for p in drafts['blogPosts']] == ['Draft']

    def test_editors_cannot_write(self, client, editor_headers):
        resp = client.post('/api/blog', json={'title': 'T', 'content': 'c'}, headers=editor_headers)
        assert resp.status_code == 403

    def test_slugs_are_unique_and_publish_date_tracks_state(self, client, auth_headers):
        first = client.post('/api/blog', json={'title': 'Rice Harvest', 'content': 'a', 'published': True},
                            headers=auth_headers).get_json()['blogPost']
        second = client.post('/api/blog', json={'title': 'Rice Harvest', 'content': 'b'},
                             headers=auth_headers).get_json()['blogPost']
        assert first['slug'] == 'rice-harvest'
        assert second['slug'] == 'rice-harvest-1'
        assert first['publishedAt'] is not None

        unpublished = client.put('/api/blog', json={'id': first['id'], 'published': False},
                                 headers=auth_headers).get_json()['blogPost']
        assert unpublished['publishedAt'] is None

    def test_content_images_are_linked(self, app, client, auth_headers):
        media = _upload(client, auth_headers, '/api/media', 'file', category='images').get_json()['media']
        post = client.post('/api/blog', json={'title': 'Pics', 'content': f'<p><img src="{media["url"]}"></p>'},
                           headers=auth_headers).get_json()['blogPost']
        with app.app_context():
            assert db.session.get(MediaItem, media['id']).blog_post_id == post['id']


class TestVision:
    def test_defaults_then_upsert(self, client, auth_headers):
        default = client.get('/api/vision').get_json()['visionContent']
        assert default['id'] is None
        assert [z['name'] for z in default['zones']] == ['dao-home', 'lilac', 'mayu']

        saved = client.put('/api/vision', json={**default, 'title': 'Our World'}, headers=auth_headers)
        assert saved.status_code == 200
        record = client.get('/api/vision').get_json()['visionContent']
        assert record['id'] is not None
        assert record['title'] == 'Our World'
        assert record['buttonText'] == 'Explore Our World Map'

    def test_zones_must_be_a_list(self, client, auth_headers):
        resp = client.put('/api/vision', json={'title': 'x', 'zones': '{"a": 1}'}, headers=auth_headers)
        assert resp.status_code == 400

    def test_zone_image_upload(self, client, auth_headers):
        resp = _upload(client, auth_headers, '/api/vision/image', 'file', zoneName='dao-home')
        media = resp.get_json()['media']
        assert media['filename'].startswith('dao-home-')
        assert media['visionZoneName'] == 'dao-home'
        assert media['url'].startswith(f'{BUCKET_URL}/vision/')


class TestGallery:
    def test_album_lifecycle(self, client, auth_headers, blob_store):
        created = client.post('/api/gallery/albums', json={'name': 'Summer 2024'}, headers=auth_headers)
        assert created.status_code == 201
        assert created.get_json()['albumSlug'] == 'summer-2024'
        album_id = created.get_json()['album']['id']

        duplicate = client.post('/api/gallery/albums', json={'name': 'Summer 2024'}, headers=auth_headers)
        assert duplicate.get_json() == {'error': 'An album with this name already exists'}

        images = []
        for name in ('one.jpg', 'two.jpg'):
            resp = _upload(client, auth_headers, '/api/gallery/images', 'image', albumId=album_id, filename=name)
            assert resp.status_code == 201
            images.append(resp.get_json()['image'])
        assert [i['order'] for i in images] == [1, 2]
        assert images[0]['url'].startswith(f'{BUCKET_URL}/gallery/summer-2024/')

        album = client.get('/api/gallery/albums', headers=auth_headers).get_json()['albums'][0]
        assert album['imageCount'] == 2
        assert album['coverImageUrl'] == images[0]['url']

        client.delete(f"/api/gallery/images?id={images[0]['id']}", headers=auth_headers)
        album = client.get('/api/gallery/albums', headers=auth_headers).get_json()['albums'][0]
        assert album['imageCount'] == 1
        assert album['coverImageUrl'] == images[1]['url']

        media = client.get('/api/media?category=gallery', headers=auth_headers).get_json()
        assert [m['url'] for m in media['media']] == [images[1]['url']]

        deleted = client.delete(f'/api/gallery/albums?id={album_id}', headers=auth_headers)
        assert deleted.status_code == 200
        assert blob_store.objects == {}
        assert client.get('/api/media', headers=auth_headers).get_json()['count'] == 0

    def test_images_require_album(self, client, auth_headers):
        assert client.get('/api/gallery/images', headers=auth_headers).status_code == 400


class TestExperiencesAndRetreat:
    def test_visitors_see_published_experiences(self, client, auth_headers):
        client.post('/api/experiences', json={'title': 'Hidden'}, headers=auth_headers)
        client.post('/api/experiences', json={'title': 'Coffee Roasting', 'published': True, 'priceTHB': '800'},
                    headers=auth_headers)
        public = client.get('/api/experiences').get_json()
        assert [e['title'] for e in public['experiences']] == ['Coffee Roasting']
        assert public['experiences'][0]['priceTHB'] == 800
        assert client.get('/api/experiences', headers=auth_headers).get_json()['count'] == 2

    def test_experience_title_required(self, client, auth_headers):
        assert client.post('/api/experiences', json={}, headers=auth_headers).status_code == 400

    def test_workshop_crud_and_image(self, client, auth_headers, blob_store):
        workshop = client.post('/api/retreat/workshops', json={
            'title': 'Soil School',
            'objectives': ['Compost', 'Mulch'],
            'program': '[{"day": 1, "title": "Arrive"}]',
        }, headers=auth_headers).get_json()['workshop']
        assert workshop['program'] == [{'day': 1, 'title': 'Arrive'}]
        assert workshop['published'] is False

        resp = _upload(client, auth_headers, '/api/retreat/workshops/image', 'image',
                       workshopName='Soil School', workshopId=workshop['id'])
        assert resp.status_code == 201
        assert resp.get_json()['url'].startswith(f'{BUCKET_URL}/workshop/soil-school/')

        assert client.delete(f"/api/retreat/workshops?id={workshop['id']}", headers=auth_headers).status_code == 200

    def test_application_update_requires_fields(self, app, client, auth_headers):
        from farmcms.models import RetreatApplication

        with app.app_context():
            application = RetreatApplication(full_name='Lee', email='lee@example.com')
            db.session.add(application)
            db.session.commit()
            application_id = application.id

        assert client.put('/api/retreat/applications', json={'id': application_id},
                          headers=auth_headers).status_code == 400
        updated = client.put('/api/retreat/applications', json={'id': application_id, 'status': 'approved'},
                             headers=auth_headers).get_json()['application']
        assert updated['status'] == 'approved'
        listed = client.get('/api/retreat/applications?status=approved', headers=auth_headers).get_json()
        assert listed['count'] == 1
