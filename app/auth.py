# app/auth.py

from datetime import datetime, timedelta
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .notifications import send_verification_code
from .security import issue_token, require_login, session_payload
from .utils import hash_password, verify_password, make_verification_code
from .validation import (
    FieldErrors, is_valid_email, sanitize_body, sanitize_email,
    validate_login, validate_registration,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

CODE_TTL_MINUTES = 15


def user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "role": u.role,
        "emailVerified": bool(u.email_verified),
        "emailNotifications": u.email_notifications is not False,
        "lastLogin": u.last_login.isoformat() if u.last_login else None,
        "createdAt": u.created_at.isoformat() if u.created_at else None,
    }


def _issue_code(db: Session, user: User) -> bool:
    """New code on the user row, then email it. The row is committed even if email fails."""
    code = make_verification_code()
    user.email_verification_code = code
    user.email_verification_expires = datetime.utcnow() + timedelta(minutes=CODE_TTL_MINUTES)
    db.commit()
    sent = send_verification_code(user, code, CODE_TTL_MINUTES)
    if not sent:
        logger.warning("[WARN] verification code for %s was not delivered", user.email)
    return sent


def _login(request: Request, db: Session, user: User) -> dict:
    user.last_login = datetime.utcnow()
    db.commit()
    if "session" in request.scope:
        request.session["user"] = session_payload(user)
    return {"token": issue_token(user), "user": user_to_dict(user)}


def _email_only(payload: dict) -> str:
    email = sanitize_email(payload.get("email"))
    errors = FieldErrors()
    errors.check(is_valid_email(email), "email", "Please provide a valid email address", email)
    errors.raise_if_any()
    return email


# =========================
# Register / verify
# =========================
@router.post("/register", status_code=201)
def register(payload: dict = Body(...), db: Session = Depends(get_db)):
    data = sanitize_body(payload)
    validate_registration(data)

    email = data["email"]
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        email=email,
        first_name=data["firstName"],
        last_name=data["lastName"],
        password_hash=hash_password(data["password"]),
        role="user",
        is_active=True,
        email_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("registered user %s", user.id)

    sent = _issue_code(db, user)
    return {
        "message": "Registration successful. Check your email for the verification code.",
        "emailSent": sent,
        "user": user_to_dict(user),
    }


@router.post("/verify-email")
def verify_email(request: Request, payload: dict = Body(...), db: Session = Depends(get_db)):
    email = _email_only(payload)
    code = str(payload.get("code") or "").strip()

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.email_verified:
        return {"message": "Email already verified", **_login(request, db, user)}

    expires = user.email_verification_expires
    if not code or code != (user.email_verification_code or ""):
        raise HTTPException(status_code=400, detail="Invalid verification code")
    if not expires or expires < datetime.utcnow():
        raise HTTPException(status_code=400, detail="Verification code has expired")

    user.email_verified = True
    user.email_verification_code = None
    user.email_verification_expires = None
    db.commit()
    logger.info("user %s verified email", user.id)
    return {"message": "Email verified successfully", **_login(request, db, user)}


@router.post("/resend-code")
def resend_code(payload: dict = Body(...), db: Session = Depends(get_db)):
    email = _email_only(payload)
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.email_verified:
        raise HTTPException(status_code=400, detail="Email already verified")

    sent = _issue_code(db, user)
    return {"message": "Verification code sent", "emailSent": sent}


# =========================
# Login / session
# =========================
@router.post("/login")
def login(request: Request, payload: dict = Body(...), db: Session = Depends(get_db)):
    data = sanitize_body(payload)
    validate_login(data)

    user = db.query(User).filter(User.email == data["email"]).first()
    if not user or not verify_password(data["password"], user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is deactivated")

    # Admin: always fully enabled
    if (user.role or "").lower() == "admin" and not user.email_verified:
        user.email_verified = True
    elif not user.email_verified:
        return JSONResponse(
            status_code=403,
            content={
                "message": "Please verify your email before logging in",
                "needsVerification": True,
                "email": user.email,
            },
        )

    return _login(request, db, user)


@router.post("/logout")
def logout(request: Request):
    if "session" in request.scope:
        request.session.clear()
    return {"message": "Logged out"}


@router.get("/me")
def me(user: User = Depends(require_login)):
    return user_to_dict(user)
