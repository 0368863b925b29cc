"""initial content schema

Revision ID: 0001_initial_content
Revises:
Create Date: 2025-11-03 10:00:00

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial_content'
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON(none_as_null=True).with_variant(postgresql.JSONB(none_as_null=True), 'postgresql')


def _base_columns():
    return [
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    op.create_table(
        'user',
        *_base_columns(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=6), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'media',
        *_base_columns(),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('url', sa.String(length=500), nullable=False),
        sa.Column('alt', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('folder', sa.String(length=255), nullable=True),
        sa.Column('uploaded_by', sa.String(length=255), nullable=True),
        sa.Column('accommodation_id', sa.String(length=36), nullable=True),
        sa.Column('animal_id', sa.String(length=36), nullable=True),
        sa.Column('team_member_id', sa.String(length=36), nullable=True),
        sa.Column('blog_post_id', sa.String(length=36), nullable=True),
        sa.Column('workshop_id', sa.String(length=36), nullable=True),
        sa.Column('vision_zone_name', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_media_category_created', 'media', ['category', 'created_at'], unique=False)
    op.create_index('ix_media_url', 'media', ['url'], unique=False)
    for column in ('accommodation_id', 'animal_id', 'team_member_id', 'blog_post_id', 'workshop_id'):
        op.create_index(f'ix_media_{column}', 'media', [column], unique=False)

    op.create_table(
        'accommodations',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('hosted_by', sa.String(length=255), nullable=True),
        sa.Column('co_host', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=255), nullable=True),
        sa.Column('zone', sa.String(length=255), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('what_offers', JSONType, nullable=True),
        sa.Column('amenities', JSONType, nullable=True),
        sa.Column('image_urls', JSONType, nullable=True),
        sa.Column('house_rules', sa.Text(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('safety', sa.Text(), nullable=True),
        sa.Column('url', sa.String(length=500), nullable=True),
        sa.Column('available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'accommodation_reviews',
        *_base_columns(),
        sa.Column('accommodation_id', sa.String(length=36), nullable=False),
        sa.Column('reviewer_name', sa.String(length=255), nullable=False),
        sa.Column('reviewer_email', sa.String(length=255), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('image_urls', JSONType, nullable=True),
        sa.CheckConstraint('rating IS NULL OR (rating >= 1 AND rating <= 5)', name='ck_review_rating'),
        sa.ForeignKeyConstraint(['accommodation_id'], ['accommodations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_accommodation_reviews_accommodation_id', 'accommodation_reviews', ['accommodation_id'], unique=False)

    op.create_table(
        'animals',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('species', sa.String(length=255), nullable=True),
        sa.Column('breed', sa.String(length=255), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=255), nullable=False, server_default='available'),
        sa.Column('photo_urls', JSONType, nullable=True),
        sa.Column('health_info', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'team_members',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=255), nullable=False),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('group', sa.String(length=255), nullable=True),
        sa.Column('photo_url', sa.Text(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('social_links', JSONType, nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'skills',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'team_member_skills',
        *_base_columns(),
        sa.Column('team_member_id', sa.String(length=36), nullable=False),
        sa.Column('skill_id', sa.String(length=36), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.CheckConstraint('level >= 1 AND level <= 10', name='ck_team_member_skill_level'),
        sa.ForeignKeyConstraint(['team_member_id'], ['team_members.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('team_member_id', 'skill_id', name='uq_team_member_skill'),
    )
    op.create_index('ix_team_member_skills_team_member_id', 'team_member_skills', ['team_member_id'], unique=False)

    op.create_table(
        'blog_posts',
        *_base_columns(),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('excerpt', sa.Text(), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('featured_image', sa.String(length=500), nullable=True),
        sa.Column('author', sa.String(length=255), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('tags', JSONType, nullable=True),
        sa.Column('published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('views', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('seo_title', sa.String(length=255), nullable=True),
        sa.Column('seo_description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_blog_posts_slug', 'blog_posts', ['slug'], unique=True)
    op.create_index('ix_blog_posts_category', 'blog_posts', ['category'], unique=False)
    op.create_index('ix_blog_posts_published', 'blog_posts', ['published'], unique=False)

    op.create_table(
        'vision_content',
        *_base_columns(),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('button_text', sa.Text(), nullable=True),
        sa.Column('intro_text1', sa.Text(), nullable=True),
        sa.Column('intro_text2', sa.Text(), nullable=True),
        sa.Column('zones', JSONType, nullable=True),
        sa.Column('ecosystem_image_url', sa.Text(), nullable=True),
        sa.Column('ecosystem_text1', sa.Text(), nullable=True),
        sa.Column('ecosystem_text2', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'gallery_albums',
        *_base_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('cover_image_url', sa.String(length=500), nullable=True),
        sa.Column('image_count', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )

    op.create_table(
        'gallery_images',
        *_base_columns(),
        sa.Column('album_id', sa.String(length=36), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('mime_type', sa.String(length=255), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('url', sa.String(length=500), nullable=False),
        sa.Column('alt', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('uploaded_by', sa.String(length=255), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['album_id'], ['gallery_albums.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_gallery_images_album_order', 'gallery_images', ['album_id', 'order'], unique=False)
    op.create_index('ix_gallery_images_url', 'gallery_images', ['url'], unique=False)

    op.create_table(
        'experiences',
        *_base_columns(),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('subtitle', sa.Text(), nullable=True),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('duration', sa.Text(), nullable=True),
        sa.Column('price_thb', sa.Integer(), nullable=True),
        sa.Column('difficulty', sa.Text(), nullable=True),
        sa.Column('capacity', sa.Text(), nullable=True),
        sa.Column('schedule', sa.Text(), nullable=True),
        sa.Column('includes', JSONType, nullable=True),
        sa.Column('bring', JSONType, nullable=True),
        sa.Column('image', sa.Text(), nullable=True),
        sa.Column('image_urls', JSONType, nullable=True),
        sa.Column('cta', sa.Text(), nullable=True),
        sa.Column('link', sa.Text(), nullable=True),
        sa.Column('badge', sa.Text(), nullable=True),
        sa.Column('published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'retreat_workshops',
        *_base_columns(),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('dates', sa.Text(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('overview', sa.Text(), nullable=True),
        sa.Column('tagline', sa.Text(), nullable=True),
        sa.Column('objectives', JSONType, nullable=True),
        sa.Column('program', JSONType, nullable=True),
        sa.Column('daily_rhythm', sa.Text(), nullable=True),
        sa.Column('accommodation', JSONType, nullable=True),
        sa.Column('meals', sa.Text(), nullable=True),
        sa.Column('volunteer_pathway', sa.Text(), nullable=True),
        sa.Column('facilitators', JSONType, nullable=True),
        sa.Column('story', sa.Text(), nullable=True),
        sa.Column('image_urls', JSONType, nullable=True),
        sa.Column('published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'retreats',
        *_base_columns(),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('workshop_id', sa.String(length=36), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['workshop_id'], ['retreat_workshops.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_retreats_workshop_id', 'retreats', ['workshop_id'], unique=False)
    op.create_index('ix_retreats_status', 'retreats', ['status'], unique=False)


def downgrade():
    op.drop_index('ix_retreats_status', table_name='retreats')
    op.drop_index('ix_retreats_workshop_id', table_name='retreats')
    op.drop_table('retreats')
    op.drop_table('retreat_workshops')
    op.drop_table('experiences')
    op.drop_index('ix_gallery_images_url', table_name='gallery_images')
    op.drop_index('ix_gallery_images_album_order', table_name='gallery_images')
    op.drop_table('gallery_images')
    op.drop_table('gallery_albums')
    op.drop_table('vision_content')
    op.drop_index('ix_blog_posts_published', table_name='blog_posts')
    op.drop_index('ix_blog_posts_category', table_name='blog_posts')
    op.drop_index('ix_blog_posts_slug', table_name='blog_posts')
    op.drop_table('blog_posts')
    op.drop_index('ix_team_member_skills_team_member_id', table_name='team_member_skills')
    op.drop_table('team_member_skills')
    op.drop_table('skills')
    op.drop_table('team_members')
    op.drop_table('animals')
    op.drop_index('ix_accommodation_reviews_accommodation_id', table_name='accommodation_reviews')
    op.drop_table('accommodation_reviews')
    op.drop_table('accommodations')
    for column in ('workshop_id', 'blog_post_id', 'team_member_id', 'animal_id', 'accommodation_id'):
        op.drop_index(f'ix_media_{column}', table_name='media')
    op.drop_index('ix_media_url', table_name='media')
    op.drop_index('ix_media_category_created', table_name='media')
    op.drop_table('media')
    op.drop_table('user')
