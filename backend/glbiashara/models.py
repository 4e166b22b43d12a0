from sqlalchemy import Column, String, Integer, Text, Boolean, DateTime, ForeignKey, JSON, Float, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import sqlalchemy as sa
from glbiashara.database import Base


# JSONB on Postgres, plain JSON everywhere else (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class EntityType(str, enum.Enum):
    PROVIDER = "provider"
    CLUB = "club"
    INSTITUTION = "institution"


class FeedItemType(str, enum.Enum):
    CONNECTION = "connection"
    PROVIDER = "provider"
    CLUB = "club"
    INSTITUTION = "institution"
    POST = "post"
    PRODUCT = "product"


class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    logo = Column(String, nullable=True)
    services = Column(JSONType, nullable=True)
    content = Column(JSONType, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = relationship("User", back_populates="provider")


class Club(Base):
    __tablename__ = "clubs"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    sport = Column(String, nullable=True)
    logo = Column(String, nullable=True)
    content = Column(JSONType, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("ClubMembership", back_populates="club")


class Institution(Base):
    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    level = Column(String, nullable=True)
    logo = Column(String, nullable=True)
    content = Column(JSONType, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = relationship("User", back_populates="institution")


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    industry = Column(String, nullable=True)
    logo = Column(String, nullable=True)
    content = Column(JSONType, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, unique=True, nullable=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    avatar = Column(String, nullable=True)
    profession = Column(String, nullable=True, index=True)
    business_type = Column(String, nullable=True)
    provider_id = Column(Integer, ForeignKey("providers.id"), nullable=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    provider = relationship("Provider", back_populates="users")
    institution = relationship("Institution", back_populates="users")
    skill_entries = relationship(
        "UserSkill",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserSkill.id",
    )
    club_memberships = relationship(
        "ClubMembership",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="ClubMembership.id",
    )
    products = relationship("Product", back_populates="user", cascade="all, delete-orphan")
    feed_items = relationship("FeedItem", back_populates="user")

    @property
    def skills(self) -> list[str]:
        return [entry.name for entry in self.skill_entries]

    @property
    def club_ids(self) -> list[int]:
        return [membership.club_id for membership in self.club_memberships]


class UserSkill(Base):
    """One skill of a user. The unique pair keeps a user's skills a set."""
    __tablename__ = "user_skills"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)

    user = relationship("User", back_populates="skill_entries")

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_user_skills_user_name"),
    )


class ClubMembership(Base):
    """
    Club affiliation of a user.

    Joining a club inserts a row instead of rewriting a list on the user,
    so concurrent joins never overwrite each other. The unique pair makes
    a second join of the same club fail with IntegrityError.
    """
    __tablename__ = "club_memberships"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    club_id = Column(Integer, ForeignKey("clubs.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=sa.func.now(), nullable=False)

    user = relationship("User", back_populates="club_memberships")
    club = relationship("Club", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("user_id", "club_id", name="uq_club_memberships_user_club"),
    )


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0)
    currency = Column(String, nullable=False, default="TZS")
    media_urls = Column(JSONType, nullable=True)
    category = Column(String, nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="products")
    tag_entries = relationship(
        "ProductTag",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductTag.id",
    )

    @property
    def tags(self) -> list[str]:
        return [entry.name for entry in self.tag_entries]


class ProductTag(Base):
    __tablename__ = "product_tags"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)

    product = relationship("Product", back_populates="tag_entries")

    __table_args__ = (
        UniqueConstraint("product_id", "name", name="uq_product_tags_product_name"),
    )


class FeedItem(Base):
    """
    Activity stream entry.

    The feed itself is served elsewhere; this service writes `connection`
    items and reads the stream for a user's network view.
    """
    __tablename__ = "feed_items"

    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False, index=True)  # one of FeedItemType values
    content_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=sa.func.now(), nullable=False, index=True)

    user = relationship("User", back_populates="feed_items")

    __table_args__ = (
        sa.Index("idx_feed_items_type_content", "type", "content_id"),
    )
