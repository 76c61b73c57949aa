import pytest

from app.validation import (
    ValidationFailed,
    is_valid_city, is_valid_email, is_valid_last_four, is_valid_object_id,
    is_valid_password, is_valid_rating, is_valid_year,
    parse_object_id, parse_pagination,
    sanitize_body, sanitize_city, sanitize_query, sanitize_string,
    validate_property_review, validate_search, validate_tenant_review,
)
from app.models import ADDRESS_KINDS


def _fields(exc_info):
    return {e["field"] for e in exc_info.value.errors}


def test_cyrillic_and_latin_cities_are_valid():
    assert is_valid_city("Алматы")
    assert is_valid_city("Nur-Sultan")
    assert not is_valid_city("Almaty1")


def test_sanitizers_strip_disallowed_characters_and_truncate():
    assert sanitize_city("  <Алматы>!! ") == "Алматы"
    assert sanitize_string("<b>hi</b>") == "bhi/b"
    assert len(sanitize_city("a" * 300)) == 100


def test_sanitize_body_lowercases_email_and_leaves_unknown_keys():
    out = sanitize_body({"email": " USER@Example.COM ", "ratings": {"apartment": 5}})
    assert out["email"] == "user@example.com"
    assert out["ratings"] == {"apartment": 5}


def test_sanitize_query_turns_empty_into_none():
    assert sanitize_query({"city": "<>", "page": " 2 "}) == {"city": None, "page": "2"}


@pytest.mark.parametrize("value,ok", [(1, True), (5, True), ("3", True), (0, False), (6, False), ("x", False), (True, False)])
def test_rating_range(value, ok):
    assert is_valid_rating(value) is ok


def test_simple_validators():
    assert is_valid_email("a.b@example.com")
    assert not is_valid_email("nope")
    assert is_valid_password("Password1")
    assert not is_valid_password("password")
    assert is_valid_last_four("0042")
    assert not is_valid_last_four(1234)
    assert not is_valid_year(1899)
    assert is_valid_object_id("17")
    assert not is_valid_object_id("0")
    assert not is_valid_object_id("abc")


def test_property_review_collects_every_failing_field():
    with pytest.raises(ValidationFailed) as exc:
        validate_property_review({"city": "A", "reviewText": "short", "numberOfRooms": 9}, ADDRESS_KINDS)
    assert {"city", "street", "building", "reviewText", "numberOfRooms", "ratings.apartment"} <= _fields(exc)


def test_property_review_accepts_single_rating_instead_of_breakdown():
    validate_property_review(
        {"city": "Almaty", "street": "Abaya", "building": "15",
         "reviewText": "Nice flat, would rent again.", "rating": 4},
        ADDRESS_KINDS,
    )


def test_property_review_rejects_unknown_criteria_and_bad_kind():
    data = {"city": "Almaty", "street": "Abaya", "building": "15", "reviewType": "hotel",
            "reviewText": "Nice flat, would rent again.", "ratings": {"apartment": 4, "view": 5}}
    with pytest.raises(ValidationFailed) as exc:
        validate_property_review(data, ADDRESS_KINDS)
    assert {"reviewType", "ratings"} <= _fields(exc)


def test_tenant_review_requires_rental_period():
    data = {"tenantFullName": "Ivan Petrov", "tenantIdLastFour": "1234", "tenantPhoneLastFour": "12a4",
            "reviewText": "Good tenant, paid on time."}
    with pytest.raises(ValidationFailed) as exc:
        validate_tenant_review(data)
    assert "rentalPeriod" in _fields(exc)
    assert "tenantPhoneLastFour" in _fields(exc)


def test_rental_period_end_cannot_precede_start():
    data = {"tenantFullName": "Ivan Petrov", "tenantIdLastFour": "1234", "tenantPhoneLastFour": "1234",
            "reviewText": "Good tenant, paid on time.", "rating": 5,
            "rentalPeriod": {"from": {"month": 6, "year": 2023}, "to": {"month": 5, "year": 2023}}}
    with pytest.raises(ValidationFailed) as exc:
        validate_tenant_review(data)
    assert _fields(exc) == {"rentalPeriod"}

    data["rentalPeriod"]["to"] = {"month": 6, "year": 2023}
    validate_tenant_review(data)


def test_search_limits():
    validate_search({"page": "1", "limit": "50"})
    with pytest.raises(ValidationFailed) as exc:
        validate_search({"page": "0", "limit": "51", "rooms": "9"})
    assert _fields(exc) == {"page", "limit", "rooms"}

    with pytest.raises(ValidationFailed) as exc:
        validate_search({"page": "99999999999999999999"})
    assert _fields(exc) == {"page"}


def test_parse_helpers():
    assert parse_pagination({}) == (1, 10)
    assert parse_pagination({"page": "3", "limit": "5"}) == (3, 5)
    assert parse_object_id("42") == 42
    with pytest.raises(ValidationFailed):
        parse_object_id("abc")
