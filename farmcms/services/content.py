"""Helpers for blog HTML and slugs."""
from __future__ import annotations

import re

from sqlalchemy import select

from farmcms.extensions import db
from farmcms.models import BlogPost

IMG_SRC_RE = re.compile(r'<img\b[^>]*\ssrc\s*=\s*["\']([^"\']+)["\']', re.IGNORECASE)

# Marks where a tag was cut so that only containers emptied by the cut collapse.
_CUT = '\x00'


def slugify(text: str) -> str:
    """Convert text to URL-friendly slug."""
    text = text.lower().strip()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_-]+', '-', text)
    return text.strip('-')


def unique_slug(base: str, exclude_id: str | None = None) -> str:
    """Return ``base`` or ``base-N``, whichever no other blog post uses first."""
    base = base or 'post'
    slug = base
    counter = 1
    while True:
        stmt = select(BlogPost.id).where(BlogPost.slug == slug)
        if exclude_id:
            stmt = stmt.where(BlogPost.id != exclude_id)
        if db.session.execute(stmt).first() is None:
            return slug
        slug = f'{base}-{counter}'
        counter += 1


def extract_image_urls(html: str | None) -> list[str]:
    """Return image URLs referenced by <img src> tags, in document order, without duplicates."""
    if not html:
        return []
    seen: dict[str, None] = {}
    for match in IMG_SRC_RE.finditer(html):
        seen.setdefault(match.group(1), None)
    return list(seen)


def strip_image_tags(html: str, url: str) -> str:
    """
    Remove every <img> whose src is exactly ``url``.

    The URL is escaped before use so characters like ``(`` or ``+`` match
    literally. Paragraphs and divs left holding nothing but whitespace after
    the removal are dropped; pre-existing empty containers are kept.
    """
    if not html or url not in html:
        return html

    # Only tag and attribute names ignore case; object keys do not.
    tag_re = re.compile(
        r'(?i:<img\b[^>]*\ssrc)\s*=\s*(["\'])' + re.escape(url) + r'\1[^>]*>'
    )
    marked, count = tag_re.subn(_CUT, html)
    if not count:
        return html

    empty_re = re.compile(
        r'<(p|div)\b[^>]*>(?:\s|' + _CUT + r')*' + _CUT + r'(?:\s|' + _CUT + r')*</\1\s*>',
        re.IGNORECASE,
    )
    while True:
        # Collapsing an inner container leaves a marker so its parent can collapse too.
        marked, collapsed = empty_re.subn(_CUT, marked)
        if not collapsed:
            break
    return marked.replace(_CUT, '')


__all__ = ['slugify', 'unique_slug', 'extract_image_urls', 'strip_image_tags']
