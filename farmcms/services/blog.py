"""Blog posts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select

from farmcms.extensions import db
from farmcms.models import BlogPost, EntityKind
from farmcms.services.content import slugify, unique_slug
from farmcms.services.crud import CRUDService, clean_text, isoformat, to_bool, to_list
from farmcms.services.reconciliation import reconcile_content_links, unlink_entity


class BlogService(CRUDService):
    label = 'blog post'
    fields = {
        'title': 'title',
        'slug': 'slug',
        'excerpt': 'excerpt',
        'content': 'content',
        'featuredImage': 'featured_image',
        'author': 'author',
        'category': 'category',
        'tags': 'tags',
        'published': 'published',
        'seoTitle': 'seo_title',
        'seoDescription': 'seo_description',
    }

    def __init__(self):
        super().__init__(BlogPost)

    def list_posts(self, *, include_drafts: bool, category: str | None = None,
                   published: str | None = None, slug: str | None = None) -> list[BlogPost]:
        """
        List posts, newest publication first.

        Visitors only ever see published posts. Admins see everything and may
        filter on ``published=true|false``.
        """
        stmt = select(BlogPost)
        if slug:
            stmt = stmt.where(BlogPost.slug == slug)
        if not include_drafts:
            stmt = stmt.where(BlogPost.published == True, BlogPost.published_at.is_not(None))  # noqa: E712
        elif published in ('true', 'false') and not slug:
            stmt = stmt.where(BlogPost.published == (published == 'true'))
        if category:
            stmt = stmt.where(BlogPost.category == category)
        stmt = stmt.order_by(BlogPost.published_at.desc().nulls_last(), BlogPost.created_at.desc())
        return list(db.session.execute(stmt).scalars())

    def _validate_create(self, data: dict[str, Any]) -> str | None:
        if not clean_text(data.get('title')) or not clean_text(data.get('content')):
            return 'Title and content are required'
        return None

    def _validate_update(self, instance, data: dict[str, Any]) -> str | None:
        for key in ('title', 'content'):
            if key in data and not clean_text(data.get(key)):
                return 'Title and content are required'
        return None

    def _prepare(self, data: dict[str, Any], instance: BlogPost | None) -> dict[str, Any]:
        data = dict(data)
        for key in ('title', 'excerpt', 'featured_image', 'author', 'category', 'seo_title', 'seo_description'):
            if key in data:
                data[key] = clean_text(data[key])
        if 'tags' in data:
            data['tags'] = to_list(data['tags'], 'Tags')

        provided_slug = slugify(data.pop('slug', None) or '')
        if instance is None:
            data['slug'] = unique_slug(provided_slug or slugify(data['title']))
        elif 'title' in data and data['title'] != instance.title:
            data['slug'] = unique_slug(provided_slug or slugify(data['title']), exclude_id=instance.id)
        elif provided_slug:
            data['slug'] = unique_slug(provided_slug, exclude_id=instance.id)

        if 'published' in data or instance is None:
            published = to_bool(data.get('published'))
            data['published'] = published
            was_published = instance.published if instance is not None else False
            if published and not was_published:
                data['published_at'] = datetime.now(timezone.utc)
            elif not published:
                data['published_at'] = None
        return data

    def _after_save(self, instance: BlogPost, data: dict[str, Any], created: bool) -> None:
        if 'content' in data:
            reconcile_content_links(instance.id, instance.content)

    def _before_delete(self, instance: BlogPost) -> None:
        unlink_entity(EntityKind.BLOG_POST, instance.id)

    def _handle_integrity_error(self, error) -> str:
        if 'slug' in str(error).lower():
            return 'A blog post with this slug already exists'
        return super()._handle_integrity_error(error)


def serialize_post(post: BlogPost) -> dict:
    return {
        'id': post.id,
        'title': post.title,
        'slug': post.slug,
        'excerpt': post.excerpt,
        'content': post.content,
        'featuredImage': post.featured_image,
        'author': post.author,
        'category': post.category,
        'tags': post.tags,
        'published': post.published,
        'publishedAt': isoformat(post.published_at),
        'views': post.views,
        'seoTitle': post.seo_title,
        'seoDescription': post.seo_description,
        'createdAt': isoformat(post.created_at),
        'updatedAt': isoformat(post.updated_at),
    }


blog_service = BlogService()

__all__ = ['BlogService', 'blog_service', 'serialize_post']
