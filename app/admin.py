# app/admin.py
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from .auth import user_to_dict
from .database import get_db
from .models import User, ADDRESS_KINDS, KIND_TENANT
from .reports import moderate_review, pending_reviews, reported_content, resolve_report
from .security import require_admin, require_staff
from .validation import FieldErrors, is_valid_user_role, parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ===== Review moderation queue =====
@router.get("/pending-reviews")
def admin_pending_reviews(db: Session = Depends(get_db), staff: User = Depends(require_staff)):
    return pending_reviews(db)


@router.patch("/property-reviews/{review_id}/moderate")
def admin_moderate_property_review(
    review_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    message = moderate_review(db, parse_object_id(review_id), payload.get("action"), ADDRESS_KINDS)
    return {"message": message}


@router.patch("/tenant-reviews/{review_id}/moderate")
def admin_moderate_tenant_review(
    review_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    message = moderate_review(db, parse_object_id(review_id), payload.get("action"), (KIND_TENANT,))
    return {"message": message}


# ===== Reports =====
@router.get("/reported-content")
def admin_reported_content(db: Session = Depends(get_db), staff: User = Depends(require_staff)):
    return reported_content(db)


@router.patch("/reported-content/{content_type}/{object_id}")
def admin_resolve_report(
    content_type: str,
    object_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
):
    oid = parse_object_id(object_id)
    message = resolve_report(db, content_type, oid, payload.get("action"))
    logger.info("staff %s resolved report on %s %s", staff.id, content_type, oid)
    return {"message": message}


# ===== Users =====
@router.get("/users")
def admin_users(
    db: Session = Depends(get_db),
    staff: User = Depends(require_staff),
    role: Optional[str] = Query(None),
):
    q = db.query(User)
    if role:
        errors = FieldErrors()
        errors.check(is_valid_user_role(role), "role", "Role must be user, admin or moderator", role)
        errors.raise_if_any()
        q = q.filter(User.role == role)
    rows = q.order_by(User.created_at.desc(), User.id.desc()).all()
    return [user_to_dict(u) | {"isActive": bool(u.is_active)} for u in rows]


@router.patch("/users/{user_id}/status")
def admin_user_status(
    user_id: str,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    uid = parse_object_id(user_id)
    is_active = payload.get("isActive")
    errors = FieldErrors()
    errors.check(isinstance(is_active, bool), "isActive", "isActive must be true or false", is_active)
    errors.raise_if_any()

    u = db.get(User, uid)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    if u.id == admin.id and not is_active:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")

    u.is_active = is_active
    db.commit()
    logger.info("admin %s set user %s active=%s", admin.id, u.id, is_active)
    return {"message": "User status updated successfully"}
