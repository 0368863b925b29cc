from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from farmcms.extensions import db, bcrypt

# Python None is written as SQL NULL rather than a JSON 'null' literal.
JSONType = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), 'postgresql')


class TimestampedBase(db.Model):
    """Abstract base providing id/created/updated columns."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UserRole(Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class EntityKind(Enum):
    """Content types a media item can be linked to."""

    ACCOMMODATION = "accommodation"
    ANIMAL = "animal"
    TEAM_MEMBER = "team_member"
    BLOG_POST = "blog_post"
    VISION = "vision"
    GALLERY = "gallery"


class User(TimestampedBase):
    __tablename__ = "user"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SqlEnum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.ADMIN,
    )
    active: Mapped[bool] = mapped_column('is_active', Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def set_password(self, password: str) -> None:
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))
        except ValueError:
            return False

    def has_role(self, *roles: UserRole | str) -> bool:
        role_value = self.role.value if isinstance(self.role, UserRole) else str(self.role)
        allowed = {r.value if isinstance(r, UserRole) else str(r) for r in roles}
        return role_value in allowed

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_active(self) -> bool:  # Flask-Login compatibility
        return bool(self.active)

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return str(self.id)


class MediaItem(TimestampedBase):
    """An uploaded file and the entity (if any) that displays it.

    The linkage columns are plain strings rather than foreign keys: uploads can
    happen before the owning record exists, and the public URL is the join key
    used to back-fill them.
    """

    __tablename__ = "media"
    __table_args__ = (
        Index("ix_media_category_created", "category", "created_at"),
        Index("ix_media_url", "url"),
    )

    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False, default="application/octet-stream")
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    alt: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(255))
    folder: Mapped[str | None] = mapped_column(String(255))
    uploaded_by: Mapped[str | None] = mapped_column(String(255))

    accommodation_id: Mapped[str | None] = mapped_column(String(36), index=True)
    animal_id: Mapped[str | None] = mapped_column(String(36), index=True)
    team_member_id: Mapped[str | None] = mapped_column(String(36), index=True)
    blog_post_id: Mapped[str | None] = mapped_column(String(36), index=True)
    workshop_id: Mapped[str | None] = mapped_column(String(36), index=True)
    vision_zone_name: Mapped[str | None] = mapped_column(String(255))


class Accommodation(TimestampedBase):
    __tablename__ = "accommodations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    hosted_by: Mapped[str | None] = mapped_column(String(255))
    co_host: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    type: Mapped[str | None] = mapped_column(String(255))
    zone: Mapped[str | None] = mapped_column(String(255))
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    capacity: Mapped[int | None] = mapped_column(Integer)
    what_offers: Mapped[dict | list | None] = mapped_column(JSONType)
    amenities: Mapped[list | None] = mapped_column(JSONType)
    # Stored as NULL when empty. Legacy rows may hold a JSON string or a
    # Postgres array literal instead of a list.
    image_urls: Mapped[list | str | None] = mapped_column(JSONType)
    house_rules: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(Text)
    safety: Mapped[str | None] = mapped_column(Text)
    url: Mapped[str | None] = mapped_column(String(500))
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    reviews: Mapped[list["AccommodationReview"]] = relationship(
        back_populates="accommodation",
        cascade="all, delete-orphan",
    )


class AccommodationReview(TimestampedBase):
    __tablename__ = "accommodation_reviews"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_review_rating"),
    )

    accommodation_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("accommodations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reviewer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    reviewer_email: Mapped[str | None] = mapped_column(String(255))
    rating: Mapped[int | None] = mapped_column(Integer)
    comment: Mapped[str | None] = mapped_column(Text)
    image_urls: Mapped[list | None] = mapped_column(JSONType)

    accommodation: Mapped[Accommodation] = relationship(back_populates="reviews")


class Animal(TimestampedBase):
    __tablename__ = "animals"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    species: Mapped[str | None] = mapped_column(String(255))
    breed: Mapped[str | None] = mapped_column(String(255))
    bio: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(255), nullable=False, default="available")
    photo_urls: Mapped[list | str | None] = mapped_column(JSONType)
    health_info: Mapped[str | None] = mapped_column(Text)


class TeamMember(TimestampedBase):
    __tablename__ = "team_members"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str | None] = mapped_column(Text)
    group: Mapped[str | None] = mapped_column("group", String(255))
    photo_url: Mapped[str | None] = mapped_column(Text)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)
    social_links: Mapped[dict | None] = mapped_column(JSONType)

    skills: Mapped[list["TeamMemberSkill"]] = relationship(
        back_populates="team_member",
        cascade="all, delete-orphan",
    )


class Skill(TimestampedBase):
    __tablename__ = "skills"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class TeamMemberSkill(TimestampedBase):
    __tablename__ = "team_member_skills"
    __table_args__ = (
        UniqueConstraint("team_member_id", "skill_id", name="uq_team_member_skill"),
        CheckConstraint("level >= 1 AND level <= 10", name="ck_team_member_skill_level"),
    )

    team_member_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("team_members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    skill_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("skills.id", ondelete="CASCADE"),
        nullable=False,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    team_member: Mapped[TeamMember] = relationship(back_populates="skills")
    skill: Mapped[Skill] = relationship()


class BlogPost(TimestampedBase):
    __tablename__ = "blog_posts"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    excerpt: Mapped[str | None] = mapped_column(Text)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    featured_image: Mapped[str | None] = mapped_column(String(500))
    author: Mapped[str | None] = mapped_column(String(255))
    category: Mapped[str | None] = mapped_column(String(255), index=True)
    tags: Mapped[list | None] = mapped_column(JSONType)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seo_title: Mapped[str | None] = mapped_column(String(255))
    seo_description: Mapped[str | None] = mapped_column(Text)


class VisionContent(TimestampedBase):
    """Singleton page content; the most recently created row is current."""

    __tablename__ = "vision_content"

    title: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    button_text: Mapped[str | None] = mapped_column(Text, default="Explore Our World Map")
    intro_text1: Mapped[str | None] = mapped_column(Text)
    intro_text2: Mapped[str | None] = mapped_column(Text)
    zones: Mapped[list | str | None] = mapped_column(JSONType)
    ecosystem_image_url: Mapped[str | None] = mapped_column(Text)
    ecosystem_text1: Mapped[str | None] = mapped_column(Text)
    ecosystem_text2: Mapped[str | None] = mapped_column(Text)


class GalleryAlbum(TimestampedBase):
    __tablename__ = "gallery_albums"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    cover_image_url: Mapped[str | None] = mapped_column(String(500))
    image_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    images: Mapped[list["GalleryImage"]] = relationship(
        back_populates="album",
        cascade="all, delete-orphan",
    )


class GalleryImage(TimestampedBase):
    __tablename__ = "gallery_images"
    __table_args__ = (
        Index("ix_gallery_images_album_order", "album_id", "order"),
    )

    album_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("gallery_albums.id", ondelete="CASCADE"),
        nullable=False,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    url: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    alt: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    uploaded_by: Mapped[str | None] = mapped_column(String(255))
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)

    album: Mapped[GalleryAlbum] = relationship(back_populates="images")


class Experience(TimestampedBase):
    __tablename__ = "experiences"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    subtitle: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(Text)
    duration: Mapped[str | None] = mapped_column(Text)
    price_thb: Mapped[int | None] = mapped_column(Integer)
    difficulty: Mapped[str | None] = mapped_column(Text)
    capacity: Mapped[str | None] = mapped_column(Text)
    schedule: Mapped[str | None] = mapped_column(Text)
    includes: Mapped[list | None] = mapped_column(JSONType)
    bring: Mapped[list | None] = mapped_column(JSONType)
    image: Mapped[str | None] = mapped_column(Text)
    image_urls: Mapped[list | None] = mapped_column(JSONType)
    cta: Mapped[str | None] = mapped_column(Text)
    link: Mapped[str | None] = mapped_column(Text)
    badge: Mapped[str | None] = mapped_column(Text)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)


class RetreatWorkshop(TimestampedBase):
    __tablename__ = "retreat_workshops"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    dates: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(Text)
    overview: Mapped[str | None] = mapped_column(Text)
    tagline: Mapped[str | None] = mapped_column(Text)
    objectives: Mapped[list | None] = mapped_column(JSONType)
    program: Mapped[list | dict | None] = mapped_column(JSONType)
    daily_rhythm: Mapped[str | None] = mapped_column(Text)
    accommodation: Mapped[list | None] = mapped_column(JSONType)
    meals: Mapped[str | None] = mapped_column(Text)
    volunteer_pathway: Mapped[str | None] = mapped_column(Text)
    facilitators: Mapped[list | None] = mapped_column(JSONType)
    story: Mapped[str | None] = mapped_column(Text)
    image_urls: Mapped[list | None] = mapped_column(JSONType)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order: Mapped[int] = mapped_column("order", Integer, nullable=False, default=0)


class RetreatApplication(TimestampedBase):
    __tablename__ = "retreats"

    full_name: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(64))
    workshop_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("retreat_workshops.id", ondelete="SET NULL"),
        index=True,
    )
    message: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="pending", index=True)
    notes: Mapped[str | None] = mapped_column(Text)


__all__ = [
    "JSONType",
    "TimestampedBase",
    "UserRole",
    "EntityKind",
    "User",
    "MediaItem",
    "Accommodation",
    "AccommodationReview",
    "Animal",
    "TeamMember",
    "Skill",
    "TeamMemberSkill",
    "BlogPost",
    "VisionContent",
    "GalleryAlbum",
    "GalleryImage",
    "Experience",
    "RetreatWorkshop",
    "RetreatApplication",
]
