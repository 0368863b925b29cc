from datetime import datetime, timezone

import pytest

from farmcms.extensions import db
from farmcms.models import (
    Accommodation,
    Animal,
    BlogPost,
    EntityKind,
    GalleryAlbum,
    GalleryImage,
    MediaItem,
    TeamMember,
    VisionContent,
)
from farmcms.services.errors import MalformedStoredValue
from farmcms.services.gallery import list_images
from farmcms.services.reconciliation import (
    LinkChanges,
    next_cover_url,
    normalize_url_array,
    reconcile_deletion,
    sync_url_array_links,
)

BUCKET_URL = 'https://test-bucket.s3.eu-west-1.amazonaws.com'

A = f'{BUCKET_URL}/images/a.jpg'
B = f'{BUCKET_URL}/images/b.jpg'
C = f'{BUCKET_URL}/images/c.jpg'


def _media(url, **links):
    item = MediaItem(
        filename=url.rsplit('/', 1)[-1],
        original_name=url.rsplit('/', 1)[-1],
        mime_type='image/jpeg',
        size=10,
        url=url,
        **links,
    )
    db.session.add(item)
    db.session.commit()
    return item


def _add(obj):
    db.session.add(obj)
    db.session.commit()
    return obj


class TestNormalizeUrlArray:
    def test_accepts_every_stored_encoding(self):
        assert normalize_url_array(None) == []
        assert normalize_url_array(['a', '', None, 'b']) == ['a', 'b']
        assert normalize_url_array('["a", "b"]') == ['a', 'b']
        assert normalize_url_array('"[\\"a\\"]"') == ['a']
        assert normalize_url_array('{a,"b c",NULL}') == ['a', 'b c']
        assert normalize_url_array('a, b\nc') == ['a', 'b', 'c']
        assert normalize_url_array('   ') == []

    @pytest.mark.parametrize('value', ['[not json', '{a,b', 42, [1, 2], '[{"x": 1}]'])
    def test_rejects_unreadable_values(self, value):
        with pytest.raises(MalformedStoredValue):
            normalize_url_array(value)


class TestReconcileDeletion:
    def test_removes_url_from_every_owner(self, app_ctx):
        acc = _add(Accommodation(name='Hut', image_urls=[A, B, C]))
        animal = _add(Animal(name='Turtle', photo_urls=[B]))
        member = _add(TeamMember(name='Mai', role='Host', photo_url=B))
        post = _add(BlogPost(title='Hello', slug='hello', content=f'<p><img src="{B}"></p><p>Text</p>',
                             featured_image=B))
        media = _media(B, accommodation_id=acc.id)

        report = reconcile_deletion(media)

        assert report.ok
        assert report.touched_kinds == {
            EntityKind.ACCOMMODATION, EntityKind.ANIMAL, EntityKind.TEAM_MEMBER, EntityKind.BLOG_POST,
        }
        assert db.session.get(Accommodation, acc.id).image_urls == [A, C]
        assert db.session.get(Animal, animal.id).photo_urls is None
        assert db.session.get(TeamMember, member.id).photo_url is None
        post = db.session.get(BlogPost, post.id)
        assert post.featured_image is None
        assert post.content == '<p>Text</p>'

    def test_second_run_changes_nothing(self, app_ctx):
        acc = _add(Accommodation(name='Hut', image_urls=[A, B]))
        media = _media(B, accommodation_id=acc.id)

        first = reconcile_deletion(media)
        second = reconcile_deletion(media)

        assert first.touched == [(EntityKind.ACCOMMODATION, acc.id)]
        assert second.touched == []
        assert second.failures == []

    def test_unreferenced_media_yields_empty_report(self, app_ctx):
        _add(Accommodation(name='Hut', image_urls=[A]))
        report = reconcile_deletion(_media(C))
        assert report.touched == []
        assert report.failures == []
        assert report.blob_deleted is None

    def test_removing_last_url_stores_null(self, app_ctx):
        acc = _add(Accommodation(name='Hut', image_urls=[A]))
        reconcile_deletion(_media(A, accommodation_id=acc.id))
        assert db.session.get(Accommodation, acc.id).image_urls is None

    def test_legacy_encodings_are_patched(self, app_ctx):
        acc = _add(Accommodation(name='Hut', image_urls=f'{{{A},{B}}}'))
        reconcile_deletion(_media(A, accommodation_id=acc.id))
        assert db.session.get(Accommodation, acc.id).image_urls == [B]

    def test_regex_characters_in_url_match_literally(self, app_ctx):
        odd = 'https://x/(a+b).jpg'
        other = 'https://x/aab.jpg'
        post = _add(BlogPost(title='Odd', slug='odd',
                             content=f'<div><img src="{odd}"><img src="{other}"></div>'))
        reconcile_deletion(_media(odd, blog_post_id=post.id))
        assert db.session.get(BlogPost, post.id).content == f'<div><img src="{other}"></div>'

    def test_url_case_is_significant_in_blog_bodies(self, app_ctx):
        upper = f'{BUCKET_URL}/images/A.jpg'
        post = _add(BlogPost(title='Cases', slug='cases',
                             content=f'<p><img src="{upper}"></p><p><IMG SRC="{A}"></p>'))
        reconcile_deletion(_media(upper, blog_post_id=post.id))
        assert db.session.get(BlogPost, post.id).content == f'<p><IMG SRC="{A}"></p>'

    def test_gallery_count_and_cover_follow_deletion(self, app_ctx):
        img1 = f'{BUCKET_URL}/gallery/summer/1.jpg'
        img2 = f'{BUCKET_URL}/gallery/summer/2.jpg'
        album = _add(GalleryAlbum(name='Summer', cover_image_url=img1, image_count=2))
        for order, url in ((1, img1), (2, img2)):
            db.session.add(GalleryImage(album_id=album.id, filename=url.rsplit('/', 1)[-1], original_name='x.jpg',
                                        mime_type='image/jpeg', url=url, order=order))
        db.session.commit()

        report = reconcile_deletion(_media(img1, category='gallery'))

        assert (EntityKind.GALLERY, album.id) in report.touched
        album = db.session.get(GalleryAlbum, album.id)
        assert album.image_count == 1
        assert album.cover_image_url == img2

    def test_listed_first_image_is_the_recomputed_cover(self, app_ctx):
        album = _add(GalleryAlbum(name='Ties', image_count=2))
        older = GalleryImage(album_id=album.id, filename='old.jpg', original_name='old.jpg',
                             mime_type='image/jpeg', url=f'{BUCKET_URL}/gallery/ties/old.jpg', order=1,
                             created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        newer = GalleryImage(album_id=album.id, filename='new.jpg', original_name='new.jpg',
                             mime_type='image/jpeg', url=f'{BUCKET_URL}/gallery/ties/new.jpg', order=1,
                             created_at=datetime(2024, 6, 1, tzinfo=timezone.utc))
        db.session.add_all([newer, older])
        db.session.commit()

        assert [image.url for image in list_images(album.id)] == [older.url, newer.url]
        assert next_cover_url(album.id) == older.url

    def test_vision_zones_keep_untouched_entries(self, app_ctx):
        zones = [
            {'name': 'dao-home', 'title': 'Home', 'imageUrl': A, 'tags': ['#a'],
             'description': ['Huts and a turtle pond.']},
            {'name': 'lilac', 'title': 'LILAC \u2014 Move', 'imageUrl': B, 'tags': ['#b', '#Recovery'],
             'description': ['Bamboo gym.', '  Ice baths, mobility.  ']},
            {'name': 'mayu', 'title': 'Mayu', 'imageUrl': A, 'tags': [],
             'description': ['Workshops.']},
        ]
        vision = _add(VisionContent(title='Vision', zones=zones, ecosystem_image_url=A))

        report = reconcile_deletion(_media(A, category='vision'))

        assert report.touched == [(EntityKind.VISION, vision.id)]
        vision = db.session.get(VisionContent, vision.id)
        assert vision.zones[0] == {**zones[0], 'imageUrl': ''}
        assert vision.zones[1] == zones[1]
        assert vision.zones[2] == {**zones[2], 'imageUrl': ''}
        assert vision.ecosystem_image_url is None

    def test_malformed_record_does_not_block_other_patches(self, app_ctx):
        acc = _add(Accommodation(name='Broken', image_urls=f'[not json {A}'))
        member = _add(TeamMember(name='Mai', role='Host', photo_url=A))
        post = _add(BlogPost(title='Post', slug='post', content=f'<img src="{A}">'))

        report = reconcile_deletion(_media(A, accommodation_id=acc.id))

        assert not report.ok
        assert [(f.kind, f.entity_id) for f in report.failures] == [(EntityKind.ACCOMMODATION, acc.id)]
        assert {EntityKind.TEAM_MEMBER, EntityKind.BLOG_POST} <= report.touched_kinds
        assert db.session.get(TeamMember, member.id).photo_url is None
        assert db.session.get(BlogPost, post.id).content == ''

    def test_blob_store_failure_is_reported_not_raised(self, app_ctx, blob_store):
        blob_store.fail = True
        report = reconcile_deletion(_media(A), blob_store=blob_store)
        assert report.blob_deleted is False
        assert not report.ok

    def test_blob_is_deleted_after_patches(self, app_ctx, blob_store):
        report = reconcile_deletion(_media(A), blob_store=blob_store)
        assert report.blob_deleted is True
        assert blob_store.deleted == [A]

    def test_all_ambiguous_owners_are_patched(self, app_ctx):
        first = _add(Animal(name='One', photo_urls=[A]))
        second = _add(Animal(name='Two', photo_urls=[A, B]))
        report = reconcile_deletion(_media(A, animal_id=first.id))
        assert {entity_id for kind, entity_id in report.touched if kind == EntityKind.ANIMAL} == {first.id, second.id}
        assert db.session.get(Animal, second.id).photo_urls == [B]

    def test_missing_owner_counts_as_done(self, app_ctx):
        report = reconcile_deletion(_media(A, animal_id='does-not-exist'))
        assert report.ok
        assert report.touched == []


class TestSyncUrlArrayLinks:
    def test_links_unowned_and_releases_dropped(self, app_ctx):
        acc = _add(Accommodation(name='Hut'))
        a = _media(A, accommodation_id=acc.id)
        b = _media(B)

        changes = sync_url_array_links(acc.id, EntityKind.ACCOMMODATION, [B])

        assert changes == LinkChanges(linked=1, unlinked=1)
        assert db.session.get(MediaItem, a.id).accommodation_id is None
        assert db.session.get(MediaItem, b.id).accommodation_id == acc.id

    def test_case_only_change_is_a_no_op(self, app_ctx):
        acc = _add(Accommodation(name='Hut'))
        _media('https://x/X.jpg', accommodation_id=acc.id)
        assert sync_url_array_links(acc.id, EntityKind.ACCOMMODATION, ['https://x/x.jpg']) == LinkChanges(0, 0)

    def test_media_owned_elsewhere_is_not_claimed(self, app_ctx):
        owner = _add(Animal(name='One'))
        other = _add(Animal(name='Two'))
        item = _media(A, animal_id=owner.id)
        assert sync_url_array_links(other.id, EntityKind.ANIMAL, [A]) == LinkChanges(0, 0)
        assert db.session.get(MediaItem, item.id).animal_id == owner.id

    def test_empty_list_releases_everything(self, app_ctx):
        acc = _add(Accommodation(name='Hut'))
        _media(A, accommodation_id=acc.id)
        _media(B, accommodation_id=acc.id)
        assert sync_url_array_links(acc.id, EntityKind.ACCOMMODATION, None) == LinkChanges(0, 2)

    def test_unlinkable_kind_is_rejected(self, app_ctx):
        with pytest.raises(ValueError):
            sync_url_array_links('x', EntityKind.GALLERY, [A])
