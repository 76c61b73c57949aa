# app/addresses.py
"""
Remembered addresses: every (city, street, building) used in a review is kept once,
with a usage counter that drives autocomplete and "popular addresses".
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import RememberedAddress

logger = logging.getLogger(__name__)

MIN_SEARCH_CHARS = 2


def normalize_triple(city, street, building) -> Tuple[str, str, str]:
    return tuple((v or "").strip() for v in (city, street, building))


def is_complete(city, street, building) -> bool:
    return all(isinstance(v, str) and v.strip() for v in (city, street, building))


def _bump(db: Session, city: str, street: str, building: str, label: str) -> int:
    """Atomic usage_count + 1 on the existing row; returns the number of rows touched."""
    values = {
        "usage_count": RememberedAddress.usage_count + 1,
        "last_used": datetime.utcnow(),
    }
    if label:
        values["residential_complex"] = label
    stmt = (
        update(RememberedAddress)
        .where(
            RememberedAddress.city == city,
            RememberedAddress.street == street,
            RememberedAddress.building == building,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def find(db: Session, city, street, building) -> Optional[RememberedAddress]:
    city, street, building = normalize_triple(city, street, building)
    return (
        db.query(RememberedAddress)
        .filter(
            RememberedAddress.city == city,
            RememberedAddress.street == street,
            RememberedAddress.building == building,
        )
        .populate_existing()
        .first()
    )


def record_usage(db: Session, city, street, building, residential_complex: str = "") -> Tuple[RememberedAddress, bool]:
    """
    Count one more use of an address, creating it on first use.
    Returns (address, created).

    A concurrent request may insert the same triple between our update and insert;
    the unique constraint rejects the second insert and we fall back to the update.
    """
    city, street, building = normalize_triple(city, street, building)
    if not (city and street and building):
        raise ValueError("city, street and building are required")
    label = (residential_complex or "").strip()

    if _bump(db, city, street, building, label):
        db.commit()
        return find(db, city, street, building), False

    try:
        entry = RememberedAddress(
            city=city,
            street=street,
            building=building,
            residential_complex=label,
            usage_count=1,
            last_used=datetime.utcnow(),
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry, True
    except IntegrityError:
        db.rollback()
        logger.info("address %s, %s, %s already remembered; counting this use", city, street, building)
        _bump(db, city, street, building, label)
        db.commit()
        return find(db, city, street, building), False


def remember_quietly(db: Session, city, street, building, residential_complex: str = "") -> Optional[RememberedAddress]:
    """record_usage for secondary writes: incomplete input is skipped and errors never escape."""
    if not is_complete(city, street, building):
        return None
    try:
        address, _ = record_usage(db, city, street, building, residential_complex)
        return address
    except Exception:
        db.rollback()
        logger.exception("Error saving remembered address")
        return None


def _ranked(query):
    return query.order_by(RememberedAddress.usage_count.desc(), RememberedAddress.last_used.desc())


def list_remembered(db: Session, city: Optional[str] = None, limit: int = 10) -> List[RememberedAddress]:
    q = db.query(RememberedAddress)
    if city:
        q = q.filter(RememberedAddress.city.ilike(f"%{city}%"))
    return _ranked(q).limit(limit).all()


def list_popular(db: Session, limit: int = 20) -> List[RememberedAddress]:
    return _ranked(db.query(RememberedAddress)).limit(limit).all()


def search(db: Session, q: Optional[str], limit: int = 10) -> List[RememberedAddress]:
    q = (q or "").strip()
    if len(q) < MIN_SEARCH_CHARS:
        return []
    pattern = f"%{q}%"
    query = db.query(RememberedAddress).filter(
        or_(
            RememberedAddress.city.ilike(pattern),
            RememberedAddress.street.ilike(pattern),
            RememberedAddress.building.ilike(pattern),
            RememberedAddress.residential_complex.ilike(pattern),
        )
    )
    return _ranked(query).limit(limit).all()


def to_dict(a: RememberedAddress) -> dict:
    return {
        "id": a.id,
        "city": a.city,
        "street": a.street,
        "building": a.building,
        "residentialComplex": a.residential_complex or "",
        "usageCount": a.usage_count,
        "lastUsed": a.last_used.isoformat() if a.last_used else None,
    }
