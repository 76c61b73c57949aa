# app/models.py
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Text, Boolean, Float, JSON,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship

from .database import Base

# Review kinds
KIND_PROPERTY = "property"
KIND_COMPLEX = "residentialComplex"
KIND_LANDLORD = "landlord"
KIND_TENANT = "tenant"

ADDRESS_KINDS = (KIND_PROPERTY, KIND_COMPLEX, KIND_LANDLORD)

# report_count at which content is flagged for moderators
REPORT_THRESHOLD = 3


# =========================
# Users
# =========================
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(254), unique=True, nullable=False, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    password_hash = Column(String(255), nullable=False)

    role = Column(String(20), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)

    # Email verification (6-digit code, short expiry)
    email_verified = Column(Boolean, nullable=False, default=False)
    email_verification_code = Column(String(6), nullable=True)
    email_verification_expires = Column(DateTime, nullable=True)

    # Opt-out for comment notifications
    email_notifications = Column(Boolean, nullable=False, default=True)

    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    reviews = relationship("Review", back_populates="author", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_staff(self) -> bool:
        return (self.role or "").lower() in ("admin", "moderator")


# =========================
# Reviews (all four kinds share one table)
# =========================
class Review(Base):
    """
    One row per review. `kind` decides which descriptive columns are filled:
    - property / residentialComplex / landlord -> city, street, building (+ optional details)
    - tenant -> tenant_full_name + last four digits of id and phone
    """
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(24), nullable=False, default=KIND_PROPERTY, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Address-bearing kinds
    city = Column(String(100), nullable=True)
    street = Column(String(200), nullable=True)
    building = Column(String(50), nullable=True)
    floor = Column(Integer, nullable=True)
    apartment_number = Column(String(20), nullable=True)
    number_of_rooms = Column(Integer, nullable=True)
    residential_complex = Column(String(100), nullable=True)
    landlord_name = Column(String(100), nullable=True)

    # Tenant kind
    tenant_full_name = Column(String(100), nullable=True)
    tenant_id_last_four = Column(String(4), nullable=True)
    tenant_phone_last_four = Column(String(4), nullable=True)

    # Rental period
    from_month = Column(Integer, nullable=True)
    from_year = Column(Integer, nullable=True)
    to_month = Column(Integer, nullable=True)
    to_year = Column(Integer, nullable=True)

    review_text = Column(Text, nullable=False)
    ratings = Column(JSON, nullable=True)           # apartment / residentialComplex / courtyard / parking / infrastructure
    average_rating = Column(Float, nullable=True)   # mean of supplied criteria, 1 decimal
    rating = Column(Integer, nullable=True)         # 1..5

    # Moderation
    is_approved = Column(Boolean, nullable=False, default=False, index=True)
    is_reported = Column(Boolean, nullable=False, default=False, index=True)
    report_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User", back_populates="reviews", lazy="joined")
    comments = relationship(
        "ReviewComment",
        back_populates="review",
        cascade="all, delete-orphan",
        order_by="ReviewComment.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_reviews_address", "city", "street", "building"),
        Index("ix_reviews_tenant_identity", "tenant_full_name", "tenant_id_last_four", "tenant_phone_last_four"),
    )


class ReviewComment(Base):
    """Comment owned by a review; removed together with it."""
    __tablename__ = "review_comments"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    text = Column(String(1000), nullable=False)

    is_approved = Column(Boolean, nullable=False, default=False)
    is_reported = Column(Boolean, nullable=False, default=False, index=True)
    report_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    review = relationship("Review", back_populates="comments")
    author = relationship("User", lazy="joined")


# =========================
# Remembered addresses
# =========================
class RememberedAddress(Base):
    __tablename__ = "remembered_addresses"

    id = Column(Integer, primary_key=True, index=True)
    city = Column(String(100), nullable=False, index=True)
    street = Column(String(200), nullable=False)
    building = Column(String(50), nullable=False)
    residential_complex = Column(String(100), nullable=False, default="")
    usage_count = Column(Integer, nullable=False, default=1)
    last_used = Column(DateTime, nullable=False, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        # The triple is the identity of an address; concurrent inserts collide here
        UniqueConstraint("city", "street", "building", name="uq_remembered_address_triple"),
        Index("ix_remembered_addresses_usage", "usage_count", "last_used"),
    )
