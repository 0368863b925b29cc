from farmcms.extensions import db
from farmcms.models import BlogPost, MediaItem
from farmcms.services.content import extract_image_urls, slugify, strip_image_tags, unique_slug
from farmcms.services.reconciliation import LinkChanges, reconcile_content_links


def _media(url, **links):
    item = MediaItem(filename='f.jpg', original_name='f.jpg', mime_type='image/jpeg', url=url, **links)
    db.session.add(item)
    db.session.commit()
    return item


def _post(slug, content='<p>x</p>'):
    post = BlogPost(title=slug.title(), slug=slug, content=content)
    db.session.add(post)
    db.session.commit()
    return post


def test_slugify():
    assert slugify('  Hello, World!  ') == 'hello-world'
    assert slugify('Coffee & Soil__Notes') == 'coffee-soil-notes'
    assert slugify('---') == ''


def test_unique_slug_appends_counter(app_ctx):
    _post('harvest')
    _post('harvest-1')
    assert unique_slug('harvest') == 'harvest-2'
    assert unique_slug('fresh') == 'fresh'


def test_unique_slug_ignores_the_post_itself(app_ctx):
    post = _post('harvest')
    assert unique_slug('harvest', exclude_id=post.id) == 'harvest'


def test_extract_image_urls_dedupes_in_order():
    html = "<p><img src='b.jpg'></p><IMG alt=x SRC=\"a.jpg\"><img src=\"b.jpg\">"
    assert extract_image_urls(html) == ['b.jpg', 'a.jpg']
    assert extract_image_urls(None) == []


def test_strip_image_tags_collapses_emptied_containers():
    html = '<div><p> <img src="a.jpg" alt="A"> </p></div><p>keep</p><p></p>'
    assert strip_image_tags(html, 'a.jpg') == '<p>keep</p><p></p>'


def test_strip_image_tags_keeps_other_content():
    html = '<p>Before <img src="a.jpg"> after</p>'
    assert strip_image_tags(html, 'a.jpg') == '<p>Before  after</p>'
    assert strip_image_tags(html, 'b.jpg') == html


def test_strip_image_tags_does_not_match_prefixes():
    html = '<img src="a.jpg?v=2"><img src="a.jpg">'
    assert strip_image_tags(html, 'a.jpg') == '<img src="a.jpg?v=2">'


def test_reconcile_content_links_links_and_unlinks(app_ctx):
    post = _post('post')
    embedded = _media('https://x/Embedded.jpg')
    removed = _media('https://x/old.jpg', blog_post_id=post.id)

    changes = reconcile_content_links(post.id, '<p><img src="https://x/embedded.jpg"></p>')

    assert changes == LinkChanges(linked=1, unlinked=1)
    assert db.session.get(MediaItem, embedded.id).blog_post_id == post.id
    assert db.session.get(MediaItem, removed.id).blog_post_id is None


def test_reconcile_content_links_leaves_other_posts_media(app_ctx):
    owner = _post('owner')
    other = _post('other')
    shared = _media('https://x/shared.jpg', blog_post_id=owner.id)

    changes = reconcile_content_links(other.id, '<img src="https://x/shared.jpg">')

    assert changes == LinkChanges(0, 0)
    assert db.session.get(MediaItem, shared.id).blog_post_id == owner.id


def test_reconcile_content_links_without_images_unlinks_all(app_ctx):
    post = _post('post')
    _media('https://x/a.jpg', blog_post_id=post.id)
    assert reconcile_content_links(post.id, '<p>No pictures</p>') == LinkChanges(0, 1)


def test_lazy_load_attributes_are_not_image_sources():
    html = '<p><img data-src="a.jpg" src="keep.jpg"></p>'
    assert strip_image_tags(html, 'a.jpg') == html
    assert extract_image_urls(html) == ['keep.jpg']
    assert strip_image_tags(html, 'keep.jpg') == ''
