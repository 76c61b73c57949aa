# app/routes_addresses.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import addresses
from .database import get_db
from .models import User
from .security import require_login
from .validation import parse_limit, sanitize_body, sanitize_search_query

router = APIRouter(prefix="/addresses", tags=["addresses"])


@router.get("/remembered")
def remembered(
    db: Session = Depends(get_db),
    city: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
):
    city = sanitize_search_query(city) if city else None
    rows = addresses.list_remembered(db, city=city or None, limit=parse_limit(limit, 10))
    return {"addresses": [addresses.to_dict(a) for a in rows]}


@router.post("/remembered")
def remember(
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_login),
):
    data = sanitize_body(payload)
    if not addresses.is_complete(data.get("city"), data.get("street"), data.get("building")):
        raise HTTPException(status_code=400, detail="City, street and building are required")

    address, created = addresses.record_usage(
        db, data["city"], data["street"], data["building"],
        data.get("residentialComplex") or "",
    )
    return JSONResponse(status_code=201 if created else 200, content=addresses.to_dict(address))


@router.get("/popular")
def popular(db: Session = Depends(get_db), limit: Optional[str] = Query(None)):
    rows = addresses.list_popular(db, limit=parse_limit(limit, 20))
    return {"addresses": [addresses.to_dict(a) for a in rows]}


@router.get("/search")
def search(
    db: Session = Depends(get_db),
    q: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
):
    q = sanitize_search_query(q) if q else ""
    rows = addresses.search(db, q, limit=parse_limit(limit, 10))
    return {"addresses": [addresses.to_dict(a) for a in rows]}
