# app/mixed_search.py
"""
One search box, four result groups.

The address filter applies directly to property / residential complex / landlord
reviews. Tenant reviews have no address of their own, so they are matched through
their author: an author who reviewed a matching address is assumed to have rented
there, and their tenant reviews are shown with that address attached.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from .models import Review, KIND_PROPERTY, KIND_COMPLEX, KIND_LANDLORD, KIND_TENANT, ADDRESS_KINDS
from .reviews import review_to_dict

ADDRESS_FIELDS = ("city", "street", "building")

GROUPS = (
    (KIND_PROPERTY, "propertyReviews", "propertyTotal"),
    (KIND_COMPLEX, "residentialComplexReviews", "residentialComplexTotal"),
    (KIND_LANDLORD, "landlordReviews", "landlordTotal"),
    (KIND_TENANT, "tenantReviews", "tenantTotal"),
)

TITLES = {
    KIND_PROPERTY: "Property review",
    KIND_COMPLEX: "Residential complex review",
    KIND_LANDLORD: "Landlord review",
    KIND_TENANT: "Tenant review",
}


def has_address_filter(params: dict) -> bool:
    return any(params.get(f) for f in ADDRESS_FIELDS)


def _address_query(db: Session, params: dict):
    q = db.query(Review).filter(Review.is_approved.is_(True), Review.kind.in_(ADDRESS_KINDS))
    for field in ADDRESS_FIELDS:
        if params.get(field):
            q = q.filter(getattr(Review, field).ilike(f"%{params[field]}%"))
    return q


def latest_address_by_author(db: Session, params: dict) -> Dict[int, Dict[str, str]]:
    """author_id → the most recent matching (city, street, building) that author reviewed."""
    rows = (
        _address_query(db, params)
        .with_entities(Review.author_id, Review.city, Review.street, Review.building)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    out: Dict[int, Dict[str, str]] = {}
    for author_id, city, street, building in rows:
        if author_id not in out:
            out[author_id] = {"city": city, "street": street, "building": building}
    return out


def _page(q, page: int, limit: int) -> Tuple[List[Review], int]:
    total = q.count()
    rows = (
        q.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def _address_title(r: Review) -> str:
    return f"{TITLES[r.kind]}: {r.city}, {r.street}, {r.building}"


def mixed_reviews(db: Session, params: dict, page: int = 1, limit: int = 10) -> dict:
    addresses: Dict[int, Dict[str, str]] = {}
    authors: Optional[Set[int]] = None
    if has_address_filter(params):
        addresses = latest_address_by_author(db, params)
        authors = set(addresses)

    result: dict = {}
    for kind, key, total_key in GROUPS:
        if kind == KIND_TENANT:
            q = db.query(Review).filter(Review.is_approved.is_(True), Review.kind == KIND_TENANT)
            if authors is not None:
                q = q.filter(Review.author_id.in_(sorted(authors)))
            if params.get("idLastFour"):
                q = q.filter(Review.tenant_id_last_four == params["idLastFour"])
            if params.get("phoneLastFour"):
                q = q.filter(Review.tenant_phone_last_four == params["phoneLastFour"])
        else:
            q = _address_query(db, params).filter(Review.kind == kind)

        rows, total = _page(q, page, limit)
        items = []
        for r in rows:
            item = review_to_dict(r)
            if kind == KIND_TENANT:
                item.update(addresses.get(r.author_id, {}))
                item["title"] = f"{TITLES[kind]}: {r.tenant_full_name}"
            else:
                item["title"] = _address_title(r)
            items.append(item)

        result[key] = items
        result[total_key] = total

    return result
