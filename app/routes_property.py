# app/routes_property.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from .database import get_db
from .mixed_search import mixed_reviews
from .models import User, ADDRESS_KINDS
from .reports import report_comment, report_review
from .reviews import (
    add_comment, comment_to_dict, get_review, list_property_reviews,
    review_to_dict, submit_address_review,
)
from .security import require_login
from .validation import parse_object_id, parse_pagination, sanitize_query, validate_search

router = APIRouter(prefix="/property", tags=["property"])


@router.get("/reviews")
def property_reviews(
    db: Session = Depends(get_db),
    city: Optional[str] = Query(None),
    street: Optional[str] = Query(None),
    building: Optional[str] = Query(None),
    rooms: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
):
    params = sanitize_query({
        "city": city, "street": street, "building": building,
        "rooms": rooms, "page": page, "limit": limit,
    })
    validate_search(params)
    page_n, limit_n = parse_pagination(params)
    return list_property_reviews(db, params, page_n, limit_n)


@router.get("/mixed-reviews")
def property_mixed_reviews(
    db: Session = Depends(get_db),
    city: Optional[str] = Query(None),
    street: Optional[str] = Query(None),
    building: Optional[str] = Query(None),
    idLastFour: Optional[str] = Query(None),
    phoneLastFour: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
):
    params = sanitize_query({
        "city": city, "street": street, "building": building,
        "idLastFour": idLastFour, "phoneLastFour": phoneLastFour,
        "page": page, "limit": limit,
    })
    validate_search(params)
    page_n, limit_n = parse_pagination(params)
    return mixed_reviews(db, params, page_n, limit_n)


@router.get("/reviews/{review_id}")
def property_review_detail(review_id: str, db: Session = Depends(get_db)):
    review = get_review(db, parse_object_id(review_id), ADDRESS_KINDS, approved_only=True)
    return review_to_dict(review)


@router.post("/reviews", status_code=201)
def create_property_review(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    review = submit_address_review(db, user, payload)
    return {
        "message": "Review submitted successfully and is pending approval",
        "review": review_to_dict(review),
    }


@router.post("/reviews/{review_id}/comments", status_code=201)
def comment_property_review(
    review_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    comment = add_comment(db, parse_object_id(review_id), user, payload, ADDRESS_KINDS)
    return {"message": "Comment added successfully", "comment": comment_to_dict(comment)}


@router.post("/reviews/{review_id}/report")
def report_property_review(
    review_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    report_review(db, parse_object_id(review_id), ADDRESS_KINDS)
    return {"message": "Review reported successfully"}


@router.post("/reviews/{review_id}/comments/{comment_id}/report")
def report_property_comment(
    review_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    report_comment(
        db,
        parse_object_id(review_id),
        parse_object_id(comment_id, field="commentId"),
        ADDRESS_KINDS,
    )
    return {"message": "Comment reported successfully"}
