# app/security.py
import os
from typing import Optional

from fastapi import Depends, HTTPException, Request
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from sqlalchemy.orm import Session

from .database import get_db
from .models import User

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
TOKEN_MAX_AGE = int(os.getenv("TOKEN_MAX_AGE_SECONDS", str(7 * 24 * 3600)))  # 7 days


def _signer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key=SECRET_KEY, salt="auth-token-v1")


def issue_token(user: User) -> str:
    return _signer().dumps({"uid": user.id, "email": user.email})


def read_token(token: str) -> Optional[dict]:
    try:
        return _signer().loads(token, max_age=TOKEN_MAX_AGE)
    except (SignatureExpired, BadSignature):
        return None


def session_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role,
    }


def _bearer(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """Bearer token first, then the cookie session set at login."""
    uid = None
    token = _bearer(request)
    if token:
        data = read_token(token)
        if not data:
            raise HTTPException(status_code=401, detail="Token is not valid")
        uid = data.get("uid")
    elif "session" in request.scope:
        uid = (request.session.get("user") or {}).get("id")

    if not uid:
        return None
    user = db.get(User, uid)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Token is not valid")
    return user


def require_login(user: Optional[User] = Depends(get_optional_user)) -> User:
    if not user:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    return user


def require_staff(user: User = Depends(require_login)) -> User:
    """Admins and moderators."""
    if not user.is_staff:
        raise HTTPException(status_code=403, detail="Access denied. Admin only.")
    return user


def require_admin(user: User = Depends(require_login)) -> User:
    if (user.role or "").lower() != "admin":
        raise HTTPException(status_code=403, detail="Access denied. Admin only.")
    return user
