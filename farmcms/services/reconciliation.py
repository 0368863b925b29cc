"""Keep media references consistent across content records.

Media items are joined to the records that display them by URL rather than by
foreign key: uploads often happen before the owning record exists. When a media
item goes away every copy of its URL has to be cleaned out of accommodations,
animals, team members, blog posts, the vision page and gallery albums by hand.

Each per-record patch runs in its own transaction. A failure in one is logged
and reported but never stops the others, so a delete request can always finish.
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, NamedTuple

from flask import current_app
from sqlalchemy import String, cast, func, or_, select

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
from farmcms.services.content import extract_image_urls, strip_image_tags
from farmcms.services.errors import (
    AmbiguousLinkage,
    BlobStoreUnavailable,
    EntityNotFound,
    MalformedStoredValue,
    ReconciliationError,
)

# Value written to an image-list column once its last URL is removed.
EMPTY_URL_ARRAY = None

# MediaItem column holding the owner id for each linkable kind.
LINK_COLUMNS = {
    EntityKind.ACCOMMODATION: 'accommodation_id',
    EntityKind.ANIMAL: 'animal_id',
    EntityKind.TEAM_MEMBER: 'team_member_id',
    EntityKind.BLOG_POST: 'blog_post_id',
}


def normalize_url_array(value: Any) -> list[str]:
    """
    Parse any stored encoding of an image list into an ordered list of strings.

    Accepted encodings: a native list, a JSON-serialized list (possibly
    serialized twice), a Postgres array literal such as ``{a,"b"}``, or plain
    text with one URL per comma or line. ``None`` and empty strings are empty
    lists.

    Raises:
        MalformedStoredValue: if the value fits none of the encodings
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        urls = []
        for item in value:
            if item is None:
                continue
            if not isinstance(item, str):
                raise MalformedStoredValue(f'Unexpected {type(item).__name__} inside image list')
            if item.strip():
                urls.append(item)
        return urls
    if not isinstance(value, str):
        raise MalformedStoredValue(f'Cannot read image list from {type(value).__name__}')

    text = value.strip()
    if not text:
        return []

    if text[0] in '["':
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedStoredValue(f'Invalid JSON image list: {exc}') from exc
        if isinstance(decoded, (list, str)):
            return normalize_url_array(decoded)
        raise MalformedStoredValue(f'JSON image list decoded to {type(decoded).__name__}')

    if text.startswith('{') and text.endswith('}'):
        return _parse_pg_array(text)
    if text.startswith('{'):
        raise MalformedStoredValue('Unterminated array literal')

    return [part.strip() for part in text.replace('\n', ',').split(',') if part.strip()]


def display_url_array(value: Any) -> Any:
    """Normalized list for responses; unreadable legacy values are passed through as stored."""
    try:
        return normalize_url_array(value) or None
    except MalformedStoredValue:
        return value


def _parse_pg_array(text: str) -> list[str]:
    inner = text[1:-1].strip()
    if not inner:
        return []
    try:
        row = next(csv.reader([inner], skipinitialspace=True, escapechar='\\'))
    except csv.Error as exc:
        raise MalformedStoredValue(f'Invalid array literal: {exc}') from exc
    return [item.strip() for item in row if item.strip() and item.strip() != 'NULL']


@dataclass
class PatchFailure:
    kind: EntityKind | None
    entity_id: str | None
    reason: str


@dataclass
class ReconciliationReport:
    """What a reconciliation run changed, for logging by the caller."""

    url: str
    touched: list[tuple[EntityKind, str]] = field(default_factory=list)
    failures: list[PatchFailure] = field(default_factory=list)
    blob_deleted: bool | None = None

    @property
    def touched_kinds(self) -> set[EntityKind]:
        return {kind for kind, _ in self.touched}

    @property
    def ok(self) -> bool:
        return not self.failures and self.blob_deleted is not False

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'touched': [{'kind': kind.value, 'id': entity_id} for kind, entity_id in self.touched],
            'failures': [
                {'kind': f.kind.value if f.kind else None, 'id': f.entity_id, 'reason': f.reason}
                for f in self.failures
            ],
            'blobDeleted': self.blob_deleted,
        }


class LinkChanges(NamedTuple):
    linked: int
    unlinked: int


# ---------------------------------------------------------------------------
# Per-kind patches. Each returns True when it wrote something.
# ---------------------------------------------------------------------------

def _load(model, entity_id: str):
    entity = db.session.get(model, entity_id)
    if entity is None:
        raise EntityNotFound(f'{model.__tablename__} {entity_id} not found')
    return entity


def _remove_from_url_array(model, attr: str, entity_id: str, url: str) -> bool:
    entity = _load(model, entity_id)
    current = normalize_url_array(getattr(entity, attr))
    remaining = [item for item in current if item != url]
    if len(remaining) == len(current):
        return False
    setattr(entity, attr, remaining or EMPTY_URL_ARRAY)
    return True


def _patch_accommodation(entity_id: str, url: str) -> bool:
    return _remove_from_url_array(Accommodation, 'image_urls', entity_id, url)


def _patch_animal(entity_id: str, url: str) -> bool:
    return _remove_from_url_array(Animal, 'photo_urls', entity_id, url)


def _patch_team_member(entity_id: str, url: str) -> bool:
    member = _load(TeamMember, entity_id)
    if member.photo_url != url:
        return False
    member.photo_url = None
    return True


def _patch_blog_post(entity_id: str, url: str) -> bool:
    post = _load(BlogPost, entity_id)
    changed = False
    if post.featured_image == url:
        post.featured_image = None
        changed = True
    if post.content:
        content = strip_image_tags(post.content, url)
        if content != post.content:
            post.content = content
            changed = True
    return changed


def _load_zones(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        if not value.strip():
            return []
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as exc:
            raise MalformedStoredValue(f'Invalid zones JSON: {exc}') from exc
        if isinstance(decoded, list):
            return decoded
    raise MalformedStoredValue(f'Zones must be a list, got {type(value).__name__}')


def current_vision_content() -> VisionContent | None:
    """Return the most recently created vision record."""
    stmt = select(VisionContent).order_by(VisionContent.created_at.desc(), VisionContent.id.desc()).limit(1)
    return db.session.execute(stmt).scalar_one_or_none()


def _patch_vision(entity_id: str, url: str) -> bool:
    content = _load(VisionContent, entity_id)
    zones = _load_zones(content.zones)

    zones_changed = False
    patched = []
    for zone in zones:
        if isinstance(zone, dict) and zone.get('imageUrl') == url:
            zone = {**zone, 'imageUrl': ''}
            zones_changed = True
        patched.append(zone)

    if zones_changed:
        content.zones = patched
    if content.ecosystem_image_url == url:
        content.ecosystem_image_url = None
        return True
    return zones_changed


def _patch_gallery_album(album_id: str, url: str) -> bool:
    album = _load(GalleryAlbum, album_id)
    images = db.session.execute(
        select(GalleryImage).where(GalleryImage.album_id == album_id, GalleryImage.url == url)
    ).scalars().all()
    if not images:
        return False

    for image in images:
        db.session.delete(image)
    db.session.flush()

    album.image_count = max(0, (album.image_count or 0) - len(images))
    if album.cover_image_url == url:
        album.cover_image_url = next_cover_url(album_id)
    return True


def next_cover_url(album_id: str) -> str | None:
    """URL of the album image with the lowest (order, created_at), if any."""
    stmt = (
        select(GalleryImage.url)
        .where(GalleryImage.album_id == album_id)
        .order_by(GalleryImage.order.asc(), GalleryImage.created_at.asc())
        .limit(1)
    )
    return db.session.execute(stmt).scalar_one_or_none()


_PATCHES: dict[EntityKind, Callable[[str, str], bool]] = {
    EntityKind.ACCOMMODATION: _patch_accommodation,
    EntityKind.ANIMAL: _patch_animal,
    EntityKind.TEAM_MEMBER: _patch_team_member,
    EntityKind.BLOG_POST: _patch_blog_post,
    EntityKind.VISION: _patch_vision,
    EntityKind.GALLERY: _patch_gallery_album,
}


# ---------------------------------------------------------------------------
# Target discovery
# ---------------------------------------------------------------------------

def _linked_ids(media: MediaItem, attr: str) -> list[str]:
    """Owner ids recorded on this media item and on any other row sharing its URL."""
    ids = []
    own = getattr(media, attr, None)
    if own:
        ids.append(own)
    column = getattr(MediaItem, attr)
    stmt = select(column).where(MediaItem.url == media.url, column.is_not(None))
    if media.id:
        stmt = stmt.where(MediaItem.id != media.id)
    ids.extend(db.session.execute(stmt).scalars())
    return ids


def _referencing_ids(model, column, url: str) -> list[str]:
    """Ids of rows whose serialized column text mentions ``url``."""
    stmt = select(model.id).where(cast(column, String).contains(url, autoescape=True))
    return list(db.session.execute(stmt).scalars())


def _dedupe(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(i for i in ids if i))


def _deletion_targets(media: MediaItem) -> list[tuple[EntityKind, str]]:
    url = media.url
    targets: list[tuple[EntityKind, str]] = []

    candidates = {
        EntityKind.ACCOMMODATION: _linked_ids(media, 'accommodation_id')
        + _referencing_ids(Accommodation, Accommodation.image_urls, url),
        EntityKind.ANIMAL: _linked_ids(media, 'animal_id')
        + _referencing_ids(Animal, Animal.photo_urls, url),
        EntityKind.TEAM_MEMBER: _linked_ids(media, 'team_member_id')
        + list(db.session.execute(select(TeamMember.id).where(TeamMember.photo_url == url)).scalars()),
        EntityKind.BLOG_POST: _linked_ids(media, 'blog_post_id')
        + list(db.session.execute(
            select(BlogPost.id).where(
                or_(BlogPost.featured_image == url, BlogPost.content.contains(url, autoescape=True))
            )
        ).scalars()),
    }

    for kind, ids in candidates.items():
        ids = _dedupe(ids)
        if len(ids) > 1:
            # Every owner gets patched; nothing is silently picked.
            current_app.logger.warning(
                f"{AmbiguousLinkage.__name__}: {url} is referenced by {len(ids)} {kind.value} records"
            )
        targets.extend((kind, entity_id) for entity_id in ids)

    vision = current_vision_content()
    if vision is not None:
        targets.append((EntityKind.VISION, vision.id))

    album_ids = db.session.execute(
        select(GalleryImage.album_id).where(GalleryImage.url == url).distinct()
    ).scalars()
    targets.extend((EntityKind.GALLERY, album_id) for album_id in album_ids)
    return targets


def _run_patch(report: ReconciliationReport, kind: EntityKind, entity_id: str) -> None:
    try:
        changed = _PATCHES[kind](entity_id, report.url)
        if changed:
            db.session.commit()
            report.touched.append((kind, entity_id))
    except EntityNotFound:
        db.session.rollback()
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error(
            f"Failed to remove {report.url} from {kind.value} {entity_id}: {exc}"
        )
        report.failures.append(PatchFailure(kind, entity_id, f'{type(exc).__name__}: {exc}'))


def reconcile_deletion(media: MediaItem, blob_store=None) -> ReconciliationReport:
    """
    Remove every reference to ``media.url`` ahead of deleting the media item.

    Looks at the owners recorded on the media item, other media rows sharing
    its URL, and any content record whose stored value mentions the URL. The
    current vision record and gallery albums are always checked. Running it a
    second time finds nothing left to change.

    When ``blob_store`` is given the stored object is deleted afterwards and a
    failure there is logged rather than raised.

    Never raises for patch failures; they are collected on the report.
    """
    url = media.url
    report = ReconciliationReport(url=url)
    if not url:
        return report

    try:
        targets = _deletion_targets(media)
    except Exception as exc:
        db.session.rollback()
        current_app.logger.error(f"Failed to look up references to {url}: {exc}")
        targets = []
        report.failures.append(PatchFailure(None, None, f'lookup: {exc}'))

    for kind, entity_id in targets:
        _run_patch(report, kind, entity_id)

    if blob_store is not None:
        try:
            blob_store.delete(url)
            report.blob_deleted = True
        except BlobStoreUnavailable as exc:
            current_app.logger.warning(f"Could not delete stored object for {url}: {exc}")
            report.blob_deleted = False

    if report.touched or report.failures:
        current_app.logger.info(
            f"Reconciled {url}: touched={[k.value for k, _ in report.touched]} "
            f"failures={len(report.failures)}"
        )
    return report


# ---------------------------------------------------------------------------
# Linking
# ---------------------------------------------------------------------------

def sync_url_array_links(entity_id: str, kind: EntityKind, urls: Any) -> LinkChanges:
    """
    Point media items at ``entity_id`` for every URL in ``urls`` and release the rest.

    Only unlinked media items are claimed. Media already linked to this entity
    whose URL is missing from ``urls`` are unlinked. URL comparison ignores case,
    so a casing change alone never unlinks and relinks an item.
    """
    attr = LINK_COLUMNS.get(kind)
    if attr is None:
        raise ValueError(f'Media cannot be linked to {kind.value}')
    column = getattr(MediaItem, attr)

    wanted = {url.lower() for url in normalize_url_array(urls)}
    linked = unlinked = 0

    if wanted:
        claim = db.session.execute(
            select(MediaItem).where(func.lower(MediaItem.url).in_(wanted), column.is_(None))
        ).scalars().all()
        for item in claim:
            setattr(item, attr, entity_id)
            linked += 1

    stale_stmt = select(MediaItem).where(column == entity_id)
    if wanted:
        stale_stmt = stale_stmt.where(func.lower(MediaItem.url).not_in(wanted))
    for item in db.session.execute(stale_stmt).scalars().all():
        setattr(item, attr, None)
        unlinked += 1

    if linked or unlinked:
        db.session.commit()
    return LinkChanges(linked, unlinked)


def reconcile_content_links(blog_post_id: str, html: str | None) -> LinkChanges:
    """
    Link media embedded in a blog post body to the post and unlink the rest.

    A media item already owned by a different post is left with that post and
    the overlap is logged.
    """
    urls = extract_image_urls(html)
    wanted = {url.lower() for url in urls}
    linked = unlinked = 0

    if wanted:
        matches = db.session.execute(
            select(MediaItem).where(func.lower(MediaItem.url).in_(wanted))
        ).scalars().all()
        for item in matches:
            if item.blog_post_id is None:
                item.blog_post_id = blog_post_id
                linked += 1
            elif item.blog_post_id != blog_post_id:
                current_app.logger.warning(
                    f"{AmbiguousLinkage.__name__}: media {item.id} is embedded in blog post "
                    f"{blog_post_id} but linked to {item.blog_post_id}"
                )

    stale_stmt = select(MediaItem).where(MediaItem.blog_post_id == blog_post_id)
    if wanted:
        stale_stmt = stale_stmt.where(func.lower(MediaItem.url).not_in(wanted))
    for item in db.session.execute(stale_stmt).scalars().all():
        item.blog_post_id = None
        unlinked += 1

    if linked or unlinked:
        db.session.commit()
    return LinkChanges(linked, unlinked)


def unlink_entity(kind: EntityKind, entity_id: str) -> int:
    """Clear the linkage of every media item owned by a record that is being deleted."""
    attr = LINK_COLUMNS[kind]
    column = getattr(MediaItem, attr)
    items = db.session.execute(select(MediaItem).where(column == entity_id)).scalars().all()
    for item in items:
        setattr(item, attr, None)
    return len(items)


__all__ = [
    'EMPTY_URL_ARRAY',
    'LINK_COLUMNS',
    'ReconciliationError',
    'MalformedStoredValue',
    'EntityNotFound',
    'BlobStoreUnavailable',
    'AmbiguousLinkage',
    'PatchFailure',
    'ReconciliationReport',
    'LinkChanges',
    'normalize_url_array',
    'display_url_array',
    'current_vision_content',
    'next_cover_url',
    'reconcile_deletion',
    'reconcile_content_links',
    'sync_url_array_links',
    'unlink_entity',
]
