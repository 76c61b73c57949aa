# app/routes_recommendations.py
"""
Public review statistics shown next to search: trending cities and room counts,
site-wide totals, and the signed-in user's preferred city.

Only approved address reviews (property, residential complex, landlord) are counted.
"""
from datetime import datetime, timedelta
from urllib.parse import quote

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from .database import get_db
from .models import Review, RememberedAddress, User, ADDRESS_KINDS
from .security import require_login
from .utils import one_decimal

router = APIRouter(prefix="/recommendations", tags=["recommendations"])

TOP_CITIES = 3
TOP_ROOMS = 2
HIGH_RATING = 4
RECENT_DAYS = 7
UNKNOWN_CITY = "Unknown"


def _published(db: Session):
    return db.query(Review).filter(Review.is_approved.is_(True), Review.kind.in_(ADDRESS_KINDS))


def _count_by(db: Session, column, limit: int, author_id=None):
    """[(value, count)] most frequent first; ties go to the alphabetically first value."""
    n = func.count(Review.id)
    q = _published(db).filter(column.isnot(None))
    if author_id is not None:
        q = q.filter(Review.author_id == author_id)
    return q.with_entities(column, n).group_by(column).order_by(n.desc(), column).limit(limit).all()


@router.get("/trending-topics")
def trending_topics(db: Session = Depends(get_db)):
    topics = []
    for i, (city, count) in enumerate(_count_by(db, Review.city, TOP_CITIES), start=1):
        topics.append({
            "id": f"city-{i}",
            "name": city,
            "count": count,
            "type": "city",
            "href": f"/property?city={quote(city)}",
        })
    for i, (rooms, count) in enumerate(_count_by(db, Review.number_of_rooms, TOP_ROOMS), start=1):
        topics.append({
            "id": f"room-{i}",
            "name": f"{rooms}-room",
            "count": count,
            "type": "room",
            "href": f"/property?rooms={rooms}",
        })

    since = datetime.utcnow() - timedelta(days=RECENT_DAYS)
    topics.append({
        "id": "high-rated",
        "name": "High rating",
        "count": _published(db).filter(Review.rating >= HIGH_RATING).count(),
        "type": "rating",
        "href": "/property",
    })
    topics.append({
        "id": "recent",
        "name": "New reviews",
        "count": _published(db).filter(Review.created_at >= since).count(),
        "type": "recent",
        "href": "/property",
    })
    return {"trendingTopics": topics}


@router.get("/stats")
def stats(db: Session = Depends(get_db)):
    avg = _published(db).filter(Review.rating.isnot(None)).with_entities(func.avg(Review.rating)).scalar()
    top = _count_by(db, Review.city, 1)
    return {
        "totalReviews": _published(db).count(),
        "totalAddresses": db.query(func.count(RememberedAddress.id)).scalar() or 0,
        "averageRating": one_decimal(avg),
        "mostPopularCity": top[0][0] if top else UNKNOWN_CITY,
    }


@router.get("/user-preferences")
def user_preferences(db: Session = Depends(get_db), user: User = Depends(require_login)):
    # null until the user has a published address review
    review_count = _published(db).filter(Review.author_id == user.id).count()
    if not review_count:
        return None
    city = _count_by(db, Review.city, 1, author_id=user.id)
    return {
        "preferredCity": city[0][0] if city else None,
        "reviewCount": review_count,
    }
