# app/routes_users.py
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from .auth import user_to_dict
from .database import get_db
from .models import User
from .reviews import review_to_dict, reviews_by_author
from .security import require_login
from .validation import FieldErrors

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/my-reviews")
def my_reviews(db: Session = Depends(get_db), user: User = Depends(require_login)):
    """Everything the user wrote, including reviews still waiting for moderation."""
    address_reviews, tenant_reviews = reviews_by_author(db, user)
    return {
        "propertyReviews": [review_to_dict(r) for r in address_reviews],
        "tenantReviews": [review_to_dict(r) for r in tenant_reviews],
    }


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), user: User = Depends(require_login)):
    address_reviews, tenant_reviews = reviews_by_author(db, user)
    return {
        "propertyReviewsCount": len(address_reviews),
        "tenantReviewsCount": len(tenant_reviews),
        "totalReviews": len(address_reviews) + len(tenant_reviews),
        "approvedReviews": sum(1 for r in address_reviews + tenant_reviews if r.is_approved),
    }


@router.patch("/preferences")
def update_preferences(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    value = payload.get("emailNotifications")
    errors = FieldErrors()
    errors.check(isinstance(value, bool), "emailNotifications", "emailNotifications must be true or false", value)
    errors.raise_if_any()

    user.email_notifications = value
    db.commit()
    return {"message": "Preferences updated", "user": user_to_dict(user)}
