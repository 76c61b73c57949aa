# app/reviews.py
"""
Review store: creation of the four review kinds, comments, public listings and
the JSON shape every endpoint returns.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from . import addresses
from .models import (
    Review, ReviewComment, User,
    KIND_PROPERTY, KIND_TENANT, ADDRESS_KINDS,
)
from .notifications import notify_review_author_of_comment
from .profanity import profanity_filter
from .utils import average_rating, overall_rating, total_pages
from .validation import (
    RATING_CRITERIA, as_int, sanitize_body,
    validate_comment, validate_property_review, validate_tenant_review,
)

logger = logging.getLogger(__name__)


# =========================================================
# JSON shapes
# =========================================================
def _iso(dt):
    return dt.isoformat() if dt else None


def user_brief(u: Optional[User], with_email: bool = False) -> Optional[dict]:
    if not u:
        return None
    out = {"id": u.id, "firstName": u.first_name, "lastName": u.last_name}
    if with_email:
        out["email"] = u.email
    return out


def comment_to_dict(c: ReviewComment) -> dict:
    return {
        "id": c.id,
        "reviewId": c.review_id,
        "author": user_brief(c.author),
        "text": c.text,
        "content": c.text,
        "isApproved": bool(c.is_approved),
        "isReported": bool(c.is_reported),
        "reportCount": c.report_count or 0,
        "createdAt": _iso(c.created_at),
    }


def _rental_period(r: Review) -> Optional[dict]:
    if not any(v is not None for v in (r.from_month, r.from_year, r.to_month, r.to_year)):
        return None
    return {
        "from": {"month": r.from_month, "year": r.from_year},
        "to": {"month": r.to_month, "year": r.to_year},
    }


def review_to_dict(r: Review, with_comments: bool = True, author_email: bool = False) -> dict:
    out = {
        "id": r.id,
        "reviewType": r.kind,
        "author": user_brief(r.author, with_email=author_email),
        "rentalPeriod": _rental_period(r),
        "reviewText": r.review_text,
        "content": r.review_text,
        "rating": r.rating,
        "isApproved": bool(r.is_approved),
        "isReported": bool(r.is_reported),
        "reportCount": r.report_count or 0,
        "createdAt": _iso(r.created_at),
        "updatedAt": _iso(r.updated_at),
    }
    if r.kind == KIND_TENANT:
        out.update({
            "tenantFullName": r.tenant_full_name,
            "tenantIdLastFour": r.tenant_id_last_four,
            "tenantPhoneLastFour": r.tenant_phone_last_four,
        })
    else:
        out.update({
            "city": r.city,
            "street": r.street,
            "building": r.building,
            "floor": r.floor,
            "apartmentNumber": r.apartment_number,
            "numberOfRooms": r.number_of_rooms,
            "residentialComplex": r.residential_complex,
            "landlordName": r.landlord_name,
            "ratings": r.ratings or {},
            "averageRating": r.average_rating,
        })
    if with_comments:
        out["comments"] = [comment_to_dict(c) for c in r.comments]
    return out


def paginated(reviews, page: int, limit: int, total: int) -> dict:
    return {
        "reviews": [review_to_dict(r) for r in reviews],
        "pagination": {"current": page, "pages": total_pages(total, limit), "total": total},
    }


# =========================================================
# Lookups
# =========================================================
def get_review(db: Session, review_id: int, kinds: Iterable[str] = (), approved_only: bool = False) -> Review:
    q = db.query(Review).filter(Review.id == review_id)
    if kinds:
        q = q.filter(Review.kind.in_(tuple(kinds)))
    if approved_only:
        q = q.filter(Review.is_approved.is_(True))
    review = q.first()
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    return review


# =========================================================
# Creation
# =========================================================
def _clean_text(value):
    if not value:
        return value
    return profanity_filter.clean(value)


def _ratings(data: dict) -> Optional[dict]:
    raw = data.get("ratings")
    if not isinstance(raw, dict):
        return None
    out = {}
    for name in RATING_CRITERIA:
        n = as_int(raw.get(name))
        if n is not None:
            out[name] = n
    return out or None


def _period(data: dict) -> dict:
    period = data.get("rentalPeriod") or {}
    start = period.get("from") or {}
    end = period.get("to") or {}
    return {
        "from_month": as_int(start.get("month")),
        "from_year": as_int(start.get("year")),
        "to_month": as_int(end.get("month")),
        "to_year": as_int(end.get("year")),
    }


def _rating_fields(data: dict) -> dict:
    ratings = _ratings(data)
    if ratings:
        return {
            "ratings": ratings,
            "average_rating": average_rating(ratings),
            "rating": overall_rating(ratings),
        }
    return {"ratings": None, "average_rating": None, "rating": as_int(data.get("rating"))}


def submit_address_review(db: Session, author: User, body: dict) -> Review:
    """Property, residential-complex and landlord reviews. Stored pending moderation."""
    data = sanitize_body(body)
    validate_property_review(data, ADDRESS_KINDS)

    complex_label = (data.get("residentialComplex") or "").strip()
    review = Review(
        kind=data.get("reviewType") or KIND_PROPERTY,
        author_id=author.id,
        city=data["city"],
        street=data["street"],
        building=data["building"],
        floor=as_int(data.get("floor")),
        apartment_number=(data.get("apartmentNumber") or None),
        number_of_rooms=as_int(data.get("numberOfRooms")),
        residential_complex=complex_label or None,
        landlord_name=_clean_text(data.get("landlordName")) or None,
        review_text=_clean_text(data["reviewText"]),
        is_approved=False,
        **_period(data),
        **_rating_fields(data),
    )
    db.add(review)
    db.commit()
    db.refresh(review)

    # Secondary write: a failure here never undoes the review
    addresses.remember_quietly(db, review.city, review.street, review.building, complex_label)
    return review


def submit_tenant_review(db: Session, author: User, body: dict) -> Review:
    data = sanitize_body(body)
    validate_tenant_review(data)

    review = Review(
        kind=KIND_TENANT,
        author_id=author.id,
        tenant_full_name=_clean_text(data["tenantFullName"]),
        tenant_id_last_four=data["tenantIdLastFour"],
        tenant_phone_last_four=data["tenantPhoneLastFour"],
        review_text=_clean_text(data["reviewText"]),
        is_approved=False,
        **_period(data),
        **_rating_fields(data),
    )
    db.add(review)
    db.commit()
    db.refresh(review)
    return review


# =========================================================
# Comments
# =========================================================
def add_comment(db: Session, review_id: int, author: User, body: dict, kinds: Iterable[str]) -> ReviewComment:
    review = get_review(db, review_id, kinds)

    data = sanitize_body(body)
    validate_comment(data)
    text = _clean_text(data["text"])

    comment = ReviewComment(review_id=review.id, author_id=author.id, text=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    try:
        notify_review_author_of_comment(review, author, text)
    except Exception:
        logger.exception("comment notification failed for review %s", review.id)
    return comment


# =========================================================
# Public listings (approved only)
# =========================================================
def list_property_reviews(db: Session, params: dict, page: int, limit: int) -> dict:
    q = db.query(Review).filter(Review.is_approved.is_(True), Review.kind == KIND_PROPERTY)
    if params.get("city"):
        q = q.filter(Review.city.ilike(f"%{params['city']}%"))
    if params.get("street"):
        q = q.filter(Review.street.ilike(f"%{params['street']}%"))
    if params.get("building"):
        q = q.filter(Review.building.ilike(f"%{params['building']}%"))
    if params.get("rooms"):
        q = q.filter(Review.number_of_rooms == as_int(params["rooms"]))

    total = q.count()
    rows = (
        q.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return paginated(rows, page, limit, total)


def list_tenant_reviews(db: Session, params: dict, page: int, limit: int) -> dict:
    q = db.query(Review).filter(Review.is_approved.is_(True), Review.kind == KIND_TENANT)
    if params.get("name"):
        q = q.filter(Review.tenant_full_name.ilike(f"%{params['name']}%"))
    if params.get("idLastFour"):
        q = q.filter(Review.tenant_id_last_four == params["idLastFour"])
    if params.get("phoneLastFour"):
        q = q.filter(Review.tenant_phone_last_four == params["phoneLastFour"])

    total = q.count()
    rows = (
        q.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return paginated(rows, page, limit, total)


def reviews_by_author(db: Session, user: User):
    rows = (
        db.query(Review)
        .filter(Review.author_id == user.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    address_reviews = [r for r in rows if r.kind in ADDRESS_KINDS]
    tenant_reviews = [r for r in rows if r.kind == KIND_TENANT]
    return address_reviews, tenant_reviews
