# app/validation.py
"""
Regex-based field validation and input sanitization.

Everything here is a plain function over plain values: sanitizers clean a raw value,
validators accept/reject it, and the request-level checks collect every failing field
into a FieldErrors before raising a single ValidationFailed.
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

# Full Cyrillic range (basic, supplement, extended A/B/C)
CYRILLIC = "\u0400-\u04FF\u0500-\u052F\u2DE0-\u2DFF\uA640-\uA69F\u1C80-\u1C8F"

# Punctuation allowed in free text (reviews, comments)
_TEXT_CHARS = rf"\w{CYRILLIC}\s.,!?;:\-'\"$\[\]/&%#@+=*()«»№—–"

PATTERNS: Dict[str, re.Pattern] = {
    "email": re.compile(
        r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
        r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
    ),
    # 8+ chars, at least one lowercase, one uppercase and one digit
    "password": re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d@$!%*?&]{8,}"),
    "name": re.compile(rf"[a-zA-Z{CYRILLIC}\s\-']{{2,50}}"),
    "city": re.compile(rf"[a-zA-Z{CYRILLIC}\s\-.]{{2,100}}"),
    "street": re.compile(rf"[a-zA-Z{CYRILLIC}0-9\s\-.,']{{2,200}}"),
    "building": re.compile(rf"[a-zA-Z{CYRILLIC}0-9\s\-.,'/]{{1,50}}"),
    "residential_complex": re.compile(rf"[a-zA-Z{CYRILLIC}0-9\s\-.,'\"«»]{{2,100}}"),
    "apartment_number": re.compile(r"[a-zA-Z0-9\-]{1,20}"),
    "floor": re.compile(r"-?[0-9]{1,3}"),
    "last_four": re.compile(r"[0-9]{4}"),
    "landlord_name": re.compile(rf"[a-zA-Z{CYRILLIC}\s\-.']{{2,100}}"),
    "tenant_full_name": re.compile(rf"[a-zA-Z{CYRILLIC}\s\-'.]{{2,100}}"),
    "review_text": re.compile(rf"[{_TEXT_CHARS}]{{10,5000}}"),
    "comment_text": re.compile(rf"[{_TEXT_CHARS}]{{1,1000}}"),
    "search_query": re.compile(rf"[a-zA-Z{CYRILLIC}0-9\s\-.']{{1,100}}"),
    "object_id": re.compile(r"[1-9][0-9]{0,17}"),
    "user_role": re.compile(r"user|admin|moderator"),
    "moderation_action": re.compile(r"approve|reject|delete|dismiss"),
    "page_number": re.compile(r"[1-9][0-9]*"),
}

MIN_YEAR = 1900
MAX_PAGE = 1_000_000
RATING_CRITERIA = ("apartment", "residentialComplex", "courtyard", "parking", "infrastructure")
PRIMARY_CRITERION = "apartment"


# =========================================================
# Errors
# =========================================================
class ValidationFailed(Exception):
    """Raised once per request with every failing field attached."""

    def __init__(self, errors: List[Dict[str, Any]]):
        super().__init__("Validation failed")
        self.errors = errors


class FieldErrors:
    def __init__(self):
        self.items: List[Dict[str, Any]] = []

    def add(self, field: str, msg: str, value: Any = None) -> None:
        self.items.append({"field": field, "msg": msg, "value": value})

    def check(self, ok: bool, field: str, msg: str, value: Any = None) -> bool:
        if not ok:
            self.add(field, msg, value)
        return ok

    def __bool__(self) -> bool:
        return bool(self.items)

    def raise_if_any(self) -> None:
        if self.items:
            raise ValidationFailed(self.items)


# =========================================================
# Small value helpers
# =========================================================
def _matches(name: str, value: Any) -> bool:
    if value is None:
        return False
    return PATTERNS[name].fullmatch(str(value)) is not None


def as_int(value: Any) -> Optional[int]:
    """int from an int / integral float / digit string; None for anything else."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()):
        return int(value.strip())
    return None


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _in_range(value: Any, lo: int, hi: Optional[int] = None) -> bool:
    n = as_int(value)
    if n is None:
        return False
    return n >= lo and (hi is None or n <= hi)


# =========================================================
# Validators (accept / reject one value)
# =========================================================
def is_valid_email(v) -> bool:
    return _matches("email", v)


def is_valid_password(v) -> bool:
    return _matches("password", v)


def is_valid_name(v) -> bool:
    return _matches("name", v)


def is_valid_city(v) -> bool:
    return _matches("city", v)


def is_valid_street(v) -> bool:
    return _matches("street", v)


def is_valid_building(v) -> bool:
    return _matches("building", v)


def is_valid_residential_complex(v) -> bool:
    return _matches("residential_complex", v)


def is_valid_apartment_number(v) -> bool:
    return _matches("apartment_number", v)


def is_valid_floor(v) -> bool:
    return not isinstance(v, bool) and _matches("floor", v)


def is_valid_last_four(v) -> bool:
    return isinstance(v, str) and _matches("last_four", v)


def is_valid_landlord_name(v) -> bool:
    return _matches("landlord_name", v)


def is_valid_tenant_full_name(v) -> bool:
    return _matches("tenant_full_name", v)


def is_valid_review_text(v) -> bool:
    return isinstance(v, str) and _matches("review_text", v)


def is_valid_comment_text(v) -> bool:
    return isinstance(v, str) and _matches("comment_text", v)


def is_valid_search_query(v) -> bool:
    return _matches("search_query", v)


def is_valid_rating(v) -> bool:
    return _in_range(v, 1, 5)


def is_valid_month(v) -> bool:
    return _in_range(v, 1, 12)


def is_valid_year(v) -> bool:
    return _in_range(v, MIN_YEAR, datetime.utcnow().year + 1)


def is_valid_number_of_rooms(v) -> bool:
    return _in_range(v, 1, 8)


def is_valid_page_number(v) -> bool:
    return _matches("page_number", v) and _in_range(v, 1, MAX_PAGE)


def is_valid_page_limit(v) -> bool:
    return _in_range(v, 1, 50)


def is_valid_object_id(v) -> bool:
    return _matches("object_id", v)


def is_valid_user_role(v) -> bool:
    return _matches("user_role", v)


def is_valid_moderation_action(v) -> bool:
    return _matches("moderation_action", v)


# =========================================================
# Sanitizers (always applied before validation)
# =========================================================
def _strip_to(value: Any, disallowed: str, max_len: int) -> str:
    if not isinstance(value, str):
        return ""
    return re.sub(disallowed, "", value.strip())[:max_len]


def sanitize_string(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return re.sub(r"[<>]", "", value.strip())[:1000]


def sanitize_name(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}\s\-'.]", 50)


def sanitize_email(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()[:254]


def sanitize_city(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}\s\-.]", 100)


def sanitize_street(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}0-9\s\-.,']", 200)


def sanitize_building(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}0-9\s\-.,'/]", 50)


def sanitize_residential_complex(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}0-9\s\-.,'\"«»]", 100)


def sanitize_review_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:5000]


def sanitize_search_query(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}0-9\s\-.']", 100)


def sanitize_tenant_full_name(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}\s\-'.]", 100)


def sanitize_landlord_name(value: Any) -> str:
    return _strip_to(value, rf"[^a-zA-Z{CYRILLIC}\s\-.']", 100)


# body field -> sanitizer
BODY_SANITIZERS = {
    "email": sanitize_email,
    "firstName": sanitize_name,
    "lastName": sanitize_name,
    "city": sanitize_city,
    "street": sanitize_street,
    "building": sanitize_building,
    "residentialComplex": sanitize_residential_complex,
    "reviewText": sanitize_review_text,
    "landlordName": sanitize_landlord_name,
    "tenantFullName": sanitize_tenant_full_name,
    "text": sanitize_string,
}

QUERY_SANITIZED = ("city", "street", "building", "name", "q")


def sanitize_body(data: Optional[dict]) -> dict:
    """Copy of the JSON body with every known text field cleaned."""
    out = dict(data or {})
    for key, fn in BODY_SANITIZERS.items():
        if key in out and out[key] is not None and not isinstance(out[key], dict):
            out[key] = fn(out[key])
    return out


def sanitize_query(params: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
    """Clean free-text query params; empty results become None (= no filter)."""
    out: Dict[str, Optional[str]] = {}
    for key, value in params.items():
        if value is None:
            out[key] = None
            continue
        if key in QUERY_SANITIZED:
            value = sanitize_search_query(value)
        else:
            value = value.strip()
        out[key] = value or None
    return out


# =========================================================
# Request-level checks
# =========================================================
def _check_text_field(errors: FieldErrors, data: dict, field: str, lo: int, hi: int,
                      validator, label: str, required: bool = True) -> None:
    value = data.get(field)
    if _blank(value):
        if required:
            errors.add(field, f"{label} must be between {lo} and {hi} characters", value)
        return
    if not isinstance(value, str) or not (lo <= len(value) <= hi):
        errors.add(field, f"{label} must be between {lo} and {hi} characters", value)
        return
    errors.check(validator(value), field, f"{label} contains invalid characters", value)


def _check_rental_period(errors: FieldErrors, data: dict, required: bool) -> None:
    period = data.get("rentalPeriod")
    if period is None and not required:
        return
    if not isinstance(period, dict):
        errors.add("rentalPeriod", "Rental period must be an object with from/to", period)
        return
    for side in ("from", "to"):
        part = period.get(side)
        if part is None and not required:
            continue
        if not isinstance(part, dict):
            errors.add(f"rentalPeriod.{side}", f"Rental period '{side}' must contain month and year", part)
            continue
        month, year = part.get("month"), part.get("year")
        if required or month is not None:
            errors.check(is_valid_month(month), f"rentalPeriod.{side}.month",
                         f"{side.capitalize()} month must be between 1 and 12", month)
        if required or year is not None:
            errors.check(is_valid_year(year), f"rentalPeriod.{side}.year",
                         f"{side.capitalize()} year must be {MIN_YEAR} or later", year)

    start, end = _month_key(period.get("from")), _month_key(period.get("to"))
    if start and end and end < start:
        errors.add("rentalPeriod", "Rental period end must not be before its start", period)


def _month_key(part: Any) -> Optional[tuple]:
    """(year, month) for a fully valid side of a rental period, else None."""
    if not isinstance(part, dict):
        return None
    month, year = part.get("month"), part.get("year")
    if not (is_valid_month(month) and is_valid_year(year)):
        return None
    return as_int(year), as_int(month)


def _check_ratings(errors: FieldErrors, data: dict, primary_required: bool) -> None:
    ratings = data.get("ratings")
    if ratings is None:
        if primary_required and _blank(data.get("rating")):
            errors.add(
                f"ratings.{PRIMARY_CRITERION}",
                "Main apartment rating (ratings.apartment) is required and must be a number from 1 to 5",
                None,
            )
    elif not isinstance(ratings, dict):
        errors.add("ratings", "Ratings must be an object", ratings)
    else:
        primary = ratings.get(PRIMARY_CRITERION)
        errors.check(
            is_valid_rating(primary),
            f"ratings.{PRIMARY_CRITERION}",
            "Main apartment rating (ratings.apartment) is required and must be a number from 1 to 5",
            primary,
        )
        for name in RATING_CRITERIA[1:]:
            value = ratings.get(name)
            if value is not None:
                errors.check(is_valid_rating(value), f"ratings.{name}",
                             f'Rating "{name}" must be a number from 1 to 5 if provided', value)
        unknown = sorted(set(ratings) - set(RATING_CRITERIA))
        if unknown:
            errors.add("ratings", f"Unknown rating criteria: {', '.join(unknown)}", unknown)

    rating = data.get("rating")
    if not _blank(rating):
        errors.check(is_valid_rating(rating), "rating", "Rating must be between 1 and 5", rating)


def validate_property_review(data: dict, allowed_kinds) -> None:
    errors = FieldErrors()

    kind = data.get("reviewType") or allowed_kinds[0]
    errors.check(kind in allowed_kinds, "reviewType",
                 f"Review type must be one of: {', '.join(allowed_kinds)}", kind)

    _check_text_field(errors, data, "city", 2, 100, is_valid_city, "City")
    _check_text_field(errors, data, "street", 2, 200, is_valid_street, "Street")
    _check_text_field(errors, data, "building", 1, 50, is_valid_building, "Building")
    _check_text_field(errors, data, "landlordName", 2, 100, is_valid_landlord_name,
                      "Landlord name", required=False)
    _check_text_field(errors, data, "residentialComplex", 2, 100, is_valid_residential_complex,
                      "Residential complex", required=False)
    _check_text_field(errors, data, "reviewText", 10, 5000, is_valid_review_text, "Review text")

    floor = data.get("floor")
    if not _blank(floor):
        errors.check(is_valid_floor(floor), "floor", "Floor must be a valid number", floor)
    apartment = data.get("apartmentNumber")
    if not _blank(apartment):
        errors.check(is_valid_apartment_number(apartment), "apartmentNumber",
                     "Apartment number contains invalid characters", apartment)
    rooms = data.get("numberOfRooms")
    if not _blank(rooms):
        errors.check(is_valid_number_of_rooms(rooms), "numberOfRooms",
                     "Number of rooms must be between 1 and 8", rooms)

    _check_rental_period(errors, data, required=False)
    _check_ratings(errors, data, primary_required=True)
    errors.raise_if_any()


def validate_tenant_review(data: dict) -> None:
    errors = FieldErrors()
    _check_text_field(errors, data, "tenantFullName", 2, 100, is_valid_tenant_full_name, "Tenant full name")
    for field, label in (("tenantIdLastFour", "Tenant ID"), ("tenantPhoneLastFour", "Tenant phone")):
        value = data.get(field)
        errors.check(is_valid_last_four(value), field, f"{label} last four digits must be exactly 4 digits", value)
    _check_rental_period(errors, data, required=True)
    _check_text_field(errors, data, "reviewText", 10, 5000, is_valid_review_text, "Review text")
    _check_ratings(errors, data, primary_required=False)
    errors.raise_if_any()


def validate_comment(data: dict) -> None:
    errors = FieldErrors()
    _check_text_field(errors, data, "text", 1, 1000, is_valid_comment_text, "Comment text")
    errors.raise_if_any()


def validate_registration(data: dict) -> None:
    errors = FieldErrors()
    email = data.get("email")
    errors.check(is_valid_email(email), "email", "Please provide a valid email address", email)
    password = data.get("password")
    errors.check(
        isinstance(password, str) and is_valid_password(password),
        "password",
        "Password must be at least 8 characters and contain an uppercase letter, a lowercase letter and a number",
    )
    _check_text_field(errors, data, "firstName", 2, 50, is_valid_name, "First name")
    _check_text_field(errors, data, "lastName", 2, 50, is_valid_name, "Last name")
    errors.raise_if_any()


def validate_login(data: dict) -> None:
    errors = FieldErrors()
    email = data.get("email")
    errors.check(is_valid_email(email), "email", "Please provide a valid email address", email)
    password = data.get("password")
    errors.check(isinstance(password, str) and len(password) > 0, "password", "Password is required")
    errors.raise_if_any()


def validate_search(params: Dict[str, Optional[str]]) -> None:
    errors = FieldErrors()
    if params.get("page") is not None:
        errors.check(is_valid_page_number(params["page"]), "page",
                     f"Page number must be between 1 and {MAX_PAGE}", params["page"])
    if params.get("limit") is not None:
        errors.check(is_valid_page_limit(params["limit"]), "limit",
                     "Limit must be between 1 and 50", params["limit"])
    for field in ("city", "street", "building", "name"):
        if params.get(field) is not None:
            errors.check(is_valid_search_query(params[field]), field,
                         f"{field.capitalize()} search query contains invalid characters", params[field])
    for field in ("idLastFour", "phoneLastFour"):
        if params.get(field) is not None:
            errors.check(is_valid_last_four(params[field]), field,
                         "Last four digits must be numeric", params[field])
    if params.get("rooms") is not None:
        errors.check(is_valid_number_of_rooms(params["rooms"]), "rooms",
                     "Number of rooms must be between 1 and 8", params["rooms"])
    errors.raise_if_any()


def validate_moderation_action(action: Any, allowed) -> str:
    errors = FieldErrors()
    ok = isinstance(action, str) and is_valid_moderation_action(action) and action in allowed
    errors.check(ok, "action", f"Invalid moderation action (expected one of: {', '.join(allowed)})", action)
    errors.raise_if_any()
    return action


def parse_object_id(value: Any, field: str = "id") -> int:
    """Path ids are checked for format before any lookup."""
    if not is_valid_object_id(value):
        raise ValidationFailed([{"field": field, "msg": "Invalid ID format", "value": value}])
    return int(value)


def parse_pagination(params: Dict[str, Optional[str]], default_limit: int = 10):
    page = as_int(params.get("page")) or 1
    limit = as_int(params.get("limit")) or default_limit
    return page, limit


def parse_limit(value: Optional[str], default: int, maximum: int = 50) -> int:
    """Lenient limit for address lookups: bad or missing values fall back to the default."""
    n = as_int(value)
    if n is None or n < 1:
        return default
    return min(n, maximum)
