# app/reports.py
from __future__ import annotations

import logging
from typing import Iterable

from fastapi import HTTPException
from sqlalchemy import update
from sqlalchemy.orm import Session

from .models import (
    Review, ReviewComment,
    ADDRESS_KINDS, KIND_TENANT, REPORT_THRESHOLD,
)
from .reviews import get_review, review_to_dict, comment_to_dict
from .validation import validate_moderation_action

logger = logging.getLogger(__name__)

# Which reviews each admin "type" segment addresses
REVIEW_TYPES = {
    "property": ADDRESS_KINDS,
    "tenant": (KIND_TENANT,),
}
CONTENT_TYPES = tuple(REVIEW_TYPES) + ("comment",)

MODERATE_ACTIONS = ("approve", "reject")
RESOLVE_ACTIONS = ("dismiss", "approve", "delete")


# =========================
# Reporting
# =========================
def _count_report(db: Session, model, *criteria) -> bool:
    """
    report_count + 1 in SQL, then raise the flag once the threshold is reached.
    Both statements run in one transaction so no report is lost under concurrency.
    """
    bumped = db.execute(
        update(model)
        .where(*criteria)
        .values(report_count=model.report_count + 1)
        .execution_options(synchronize_session=False)
    ).rowcount
    if not bumped:
        db.rollback()
        return False

    db.execute(
        update(model)
        .where(*criteria, model.report_count >= REPORT_THRESHOLD, model.is_reported.is_(False))
        .values(is_reported=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return True


def report_review(db: Session, review_id: int, kinds: Iterable[str]) -> None:
    kinds = tuple(kinds)
    if not _count_report(db, Review, Review.id == review_id, Review.kind.in_(kinds)):
        raise HTTPException(status_code=404, detail="Review not found")
    logger.info("review %s reported", review_id)


def report_comment(db: Session, review_id: int, comment_id: int, kinds: Iterable[str]) -> None:
    get_review(db, review_id, kinds)
    ok = _count_report(
        db, ReviewComment,
        ReviewComment.id == comment_id,
        ReviewComment.review_id == review_id,
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Comment not found")
    logger.info("comment %s on review %s reported", comment_id, review_id)


# =========================
# Moderation
# =========================
def moderate_review(db: Session, review_id: int, action: str, kinds: Iterable[str]) -> str:
    """approve → visible in public search; reject → hard delete (comments cascade)."""
    action = validate_moderation_action(action, MODERATE_ACTIONS)
    review = get_review(db, review_id, kinds)

    if action == "approve":
        review.is_approved = True
        db.commit()
        logger.info("review %s approved", review_id)
        return "Review approved successfully"

    db.delete(review)
    db.commit()
    logger.info("review %s rejected and deleted", review_id)
    return "Review rejected and deleted"


def _get_comment(db: Session, comment_id: int) -> ReviewComment:
    comment = db.get(ReviewComment, comment_id)
    if not comment:
        raise HTTPException(status_code=404, detail="Comment not found")
    return comment


def resolve_report(db: Session, content_type: str, object_id: int, action: str) -> str:
    """
    dismiss → clear the flag and the counter
    approve → same, and mark the content approved
    delete  → hard delete
    """
    if content_type not in CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Invalid content type")
    action = validate_moderation_action(action, RESOLVE_ACTIONS)

    if content_type == "comment":
        target = _get_comment(db, object_id)
    else:
        target = get_review(db, object_id, REVIEW_TYPES[content_type])

    if action == "delete":
        db.delete(target)
        db.commit()
        logger.info("%s %s deleted after report", content_type, object_id)
        return "Content deleted successfully"

    target.is_reported = False
    target.report_count = 0
    if action == "approve":
        target.is_approved = True
    db.commit()
    logger.info("report on %s %s resolved: %s", content_type, object_id, action)
    return "Report dismissed" if action == "dismiss" else "Content approved"


# =========================
# Queues for the admin panel
# =========================
def pending_reviews(db: Session) -> dict:
    rows = (
        db.query(Review)
        .filter(Review.is_approved.is_(False))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return {
        "propertyReviews": [review_to_dict(r, author_email=True) for r in rows if r.kind in ADDRESS_KINDS],
        "tenantReviews": [review_to_dict(r, author_email=True) for r in rows if r.kind == KIND_TENANT],
    }


def reported_content(db: Session) -> dict:
    rows = (
        db.query(Review)
        .filter(Review.is_reported.is_(True))
        .order_by(Review.report_count.desc(), Review.created_at.desc())
        .all()
    )
    comments = (
        db.query(ReviewComment)
        .filter(ReviewComment.is_reported.is_(True))
        .order_by(ReviewComment.report_count.desc(), ReviewComment.created_at.desc())
        .all()
    )
    return {
        "propertyReviews": [review_to_dict(r, author_email=True) for r in rows if r.kind in ADDRESS_KINDS],
        "tenantReviews": [review_to_dict(r, author_email=True) for r in rows if r.kind == KIND_TENANT],
        "comments": [comment_to_dict(c) for c in comments],
    }
