# app/routes_tenant.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from .database import get_db
from .models import User, KIND_TENANT
from .reports import report_comment, report_review
from .reviews import (
    add_comment, comment_to_dict, get_review, list_tenant_reviews,
    review_to_dict, submit_tenant_review,
)
from .security import require_login
from .validation import parse_object_id, parse_pagination, sanitize_query, validate_search

router = APIRouter(prefix="/tenant", tags=["tenant"])

TENANT_KINDS = (KIND_TENANT,)


@router.get("/reviews")
def tenant_reviews(
    db: Session = Depends(get_db),
    name: Optional[str] = Query(None),
    idLastFour: Optional[str] = Query(None),
    phoneLastFour: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
):
    params = sanitize_query({
        "name": name, "idLastFour": idLastFour, "phoneLastFour": phoneLastFour,
        "page": page, "limit": limit,
    })
    validate_search(params)
    page_n, limit_n = parse_pagination(params)
    return list_tenant_reviews(db, params, page_n, limit_n)


@router.get("/reviews/{review_id}")
def tenant_review_detail(review_id: str, db: Session = Depends(get_db)):
    review = get_review(db, parse_object_id(review_id), TENANT_KINDS, approved_only=True)
    return review_to_dict(review)


@router.post("/reviews", status_code=201)
def create_tenant_review(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    review = submit_tenant_review(db, user, payload)
    return {
        "message": "Tenant review submitted successfully and is pending approval",
        "review": review_to_dict(review),
    }


@router.post("/reviews/{review_id}/comments", status_code=201)
def comment_tenant_review(
    review_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    comment = add_comment(db, parse_object_id(review_id), user, payload, TENANT_KINDS)
    return {"message": "Comment added successfully", "comment": comment_to_dict(comment)}


@router.post("/reviews/{review_id}/report")
def report_tenant_review(
    review_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    report_review(db, parse_object_id(review_id), TENANT_KINDS)
    return {"message": "Tenant review reported successfully"}


@router.post("/reviews/{review_id}/comments/{comment_id}/report")
def report_tenant_comment(
    review_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    report_comment(
        db,
        parse_object_id(review_id),
        parse_object_id(comment_id, field="commentId"),
        TENANT_KINDS,
    )
    return {"message": "Comment reported successfully"}
