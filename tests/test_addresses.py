import pytest

from app import addresses
from app.models import RememberedAddress
from conftest import auth


def test_first_use_creates_then_counts(db):
    a, created = addresses.record_usage(db, " Almaty ", "Abaya", "15")
    assert created is True
    assert (a.city, a.usage_count) == ("Almaty", 1)

    a, created = addresses.record_usage(db, "Almaty", "Abaya ", "15", "Sunny")
    assert created is False
    assert a.usage_count == 2
    assert a.residential_complex == "Sunny"


def test_empty_complex_label_does_not_overwrite(db):
    addresses.record_usage(db, "Almaty", "Abaya", "15", "Sunny")
    a, _ = addresses.record_usage(db, "Almaty", "Abaya", "15", "")
    assert a.residential_complex == "Sunny"


def test_incomplete_triple_is_rejected(db):
    with pytest.raises(ValueError):
        addresses.record_usage(db, "Almaty", "  ", "15")
    assert addresses.remember_quietly(db, "Almaty", None, "15") is None
    assert db.query(RememberedAddress).count() == 0


def test_lost_insert_race_falls_back_to_increment(db, monkeypatch):
    addresses.record_usage(db, "Almaty", "Abaya", "15")

    # First update sees no row, as if another request inserted it in between
    real_bump = addresses._bump
    calls = []

    def racing_bump(*args):
        calls.append(args)
        return 0 if len(calls) == 1 else real_bump(*args)

    monkeypatch.setattr(addresses, "_bump", racing_bump)
    a, created = addresses.record_usage(db, "Almaty", "Abaya", "15")

    assert created is False
    assert a.usage_count == 2
    assert len(calls) == 2
    assert db.query(RememberedAddress).count() == 1


def test_remember_quietly_swallows_errors(db, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(addresses, "record_usage", boom)
    assert addresses.remember_quietly(db, "Almaty", "Abaya", "15") is None


def test_popular_and_city_filter_order_by_usage(db):
    for _ in range(3):
        addresses.record_usage(db, "Almaty", "Dostyk", "25")
    addresses.record_usage(db, "Almaty", "Abaya", "15")
    addresses.record_usage(db, "Astana", "Respublika", "1")

    popular = addresses.list_popular(db)
    assert [a.street for a in popular][0] == "Dostyk"
    assert {a.city for a in addresses.list_remembered(db, city="Alma")} == {"Almaty"}
    assert len(addresses.list_remembered(db, limit=1)) == 1


def test_search_requires_two_characters(db):
    addresses.record_usage(db, "Almaty", "Abaya", "15", "Sunny Park")
    assert addresses.search(db, "A") == []
    assert addresses.search(db, " a ") == []
    assert [a.street for a in addresses.search(db, "sunny")] == ["Abaya"]


def test_http_post_answers_201_then_200(client, user):
    body = {"city": "Almaty", "street": "Abaya", "building": "15"}
    r = client.post("/api/addresses/remembered", json=body, headers=auth(user))
    assert r.status_code == 201
    assert r.json()["usageCount"] == 1

    r = client.post("/api/addresses/remembered", json=body, headers=auth(user))
    assert r.status_code == 200
    assert r.json()["usageCount"] == 2

    r = client.post("/api/addresses/remembered", json={"city": "Almaty"}, headers=auth(user))
    assert r.status_code == 400


def test_http_listing_endpoints(client, user):
    client.post("/api/addresses/remembered",
                json={"city": "Almaty", "street": "Abaya", "building": "15"}, headers=auth(user))

    assert len(client.get("/api/addresses/popular").json()["addresses"]) == 1
    assert len(client.get("/api/addresses/remembered", params={"city": "alm"}).json()["addresses"]) == 1
    assert client.get("/api/addresses/search", params={"q": "x"}).json() == {"addresses": []}
    assert client.get("/api/addresses/search", params={"q": "Aba"}).json()["addresses"][0]["building"] == "15"


def test_http_post_requires_login(client):
    r = client.post("/api/addresses/remembered", json={"city": "Almaty", "street": "Abaya", "building": "15"})
    assert r.status_code == 401
    assert r.json()["message"] == "No token, authorization denied"


def test_cyrillic_search_ignores_case(db):
    addresses.record_usage(db, "Алматы", "ул. Абая", "15", "ЖК Солнечный")

    assert [a.city for a in addresses.search(db, "алматы")] == ["Алматы"]
    assert [a.city for a in addresses.search(db, "СОЛНЕЧ")] == ["Алматы"]
    assert [a.street for a in addresses.list_remembered(db, city="алм")] == ["ул. Абая"]
