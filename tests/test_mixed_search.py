import pytest

from app.models import Review
from conftest import auth, property_payload, tenant_payload

URL = "/api/property/mixed-reviews"


def _approved(client, db, url, body, user):
    rid = client.post(url, json=body, headers=auth(user)).json()["review"]["id"]
    db.query(Review).filter(Review.id == rid).update({"is_approved": True})
    db.commit()
    return rid


@pytest.fixture
def seeded(client, db, make_user):
    """A rented at Almaty/Abaya 15 and reviewed their tenant; B only reviewed a tenant."""
    a = make_user(first_name="Aida")
    b = make_user(first_name="Bolat")
    ids = {
        "old_home": _approved(client, db, "/api/property/reviews",
                              property_payload(street="Abaya", building="7"), a),
        "home": _approved(client, db, "/api/property/reviews", property_payload(), a),
        "complex": _approved(client, db, "/api/property/reviews",
                             property_payload(reviewType="residentialComplex", residentialComplex="Sunny"), a),
        "landlord": _approved(client, db, "/api/property/reviews",
                              property_payload(reviewType="landlord", landlordName="Ivan Petrov"), a),
        "tenant_a": _approved(client, db, "/api/tenant/reviews", tenant_payload(), a),
        "tenant_b": _approved(client, db, "/api/tenant/reviews",
                              tenant_payload(tenantFullName="Dana Serik", tenantIdLastFour="5555"), b),
    }
    # pending reviews never show up
    client.post("/api/property/reviews", json=property_payload(), headers=auth(b))
    return ids


def test_address_filter_restricts_tenants_to_matching_authors(client, seeded):
    data = client.get(URL, params={"city": "Almaty", "street": "Abaya", "building": "15"}).json()

    assert data["propertyTotal"] == 1
    assert data["residentialComplexTotal"] == 1
    assert data["landlordTotal"] == 1
    assert data["tenantTotal"] == 1

    tenant = data["tenantReviews"][0]
    assert tenant["id"] == seeded["tenant_a"]
    assert (tenant["city"], tenant["street"], tenant["building"]) == ("Almaty", "Abaya", "15")
    assert tenant["title"] == "Tenant review: Aleksei Sergeev"


def test_titles_embed_the_address(client, seeded):
    data = client.get(URL, params={"building": "15"}).json()
    assert data["propertyReviews"][0]["title"] == "Property review: Almaty, Abaya, 15"
    assert data["residentialComplexReviews"][0]["title"] == "Residential complex review: Almaty, Abaya, 15"
    assert data["landlordReviews"][0]["title"] == "Landlord review: Almaty, Abaya, 15"


def test_tenant_gets_most_recent_matching_address(client, seeded):
    # both of A's property reviews match "Abaya"; the later one (building 15) wins
    data = client.get(URL, params={"street": "Abaya"}).json()
    assert data["propertyTotal"] == 2
    tenant = data["tenantReviews"][0]
    assert tenant["building"] == "15"


def test_no_address_filter_returns_every_tenant_without_address(client, seeded):
    data = client.get(URL).json()
    assert data["tenantTotal"] == 2
    assert all("city" not in t for t in data["tenantReviews"])


def test_identity_fragments_filter_tenants_exactly(client, seeded):
    data = client.get(URL, params={"idLastFour": "5555"}).json()
    assert [t["id"] for t in data["tenantReviews"]] == [seeded["tenant_b"]]
    assert data["propertyTotal"] == 2


def test_address_with_no_reviews_yields_no_tenants(client, seeded):
    data = client.get(URL, params={"city": "Astana"}).json()
    assert data["propertyTotal"] == 0
    assert data["tenantTotal"] == 0
    assert data["tenantReviews"] == []


def test_groups_paginate_independently(client, seeded):
    data = client.get(URL, params={"limit": "1"}).json()
    assert len(data["propertyReviews"]) == 1
    assert data["propertyTotal"] == 2
    assert len(data["tenantReviews"]) == 1

    page2 = client.get(URL, params={"limit": "1", "page": "2"}).json()
    assert page2["residentialComplexReviews"] == []
    assert len(page2["propertyReviews"]) == 1


def test_cyrillic_city_matches_regardless_of_case(client, db, make_user):
    author = make_user(first_name="Айгерим")
    rid = _approved(client, db, "/api/property/reviews",
                    property_payload(city="Алматы", street="Абая"), author)
    _approved(client, db, "/api/tenant/reviews", tenant_payload(), author)

    for city in ("Алматы", "алматы", "АЛМАТЫ"):
        data = client.get(URL, params={"city": city, "street": "абая"}).json()
        assert [r["id"] for r in data["propertyReviews"]] == [rid]
        assert data["tenantTotal"] == 1
        assert data["tenantReviews"][0]["city"] == "Алматы"
