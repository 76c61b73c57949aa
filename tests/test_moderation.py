from app.models import Review, ReviewComment
from conftest import auth, property_payload, tenant_payload


def _post_review(client, user, approved_by=None):
    rid = client.post("/api/property/reviews", json=property_payload(), headers=auth(user)).json()["review"]["id"]
    if approved_by:
        client.patch(f"/api/admin/property-reviews/{rid}/moderate", json={"action": "approve"}, headers=auth(approved_by))
    return rid


def test_third_report_flags_the_review(client, make_user, user, admin, db):
    rid = _post_review(client, user, approved_by=admin)
    reporters = [make_user() for _ in range(3)]

    for reporter in reporters[:2]:
        assert client.post(f"/api/property/reviews/{rid}/report", headers=auth(reporter)).status_code == 200
    review = db.get(Review, rid)
    assert (review.report_count, review.is_reported) == (2, False)

    client.post(f"/api/property/reviews/{rid}/report", headers=auth(reporters[2]))
    db.expire_all()
    review = db.get(Review, rid)
    assert (review.report_count, review.is_reported) == (3, True)

    # the counter keeps going past the threshold
    client.post(f"/api/property/reviews/{rid}/report", headers=auth(reporters[0]))
    db.expire_all()
    assert db.get(Review, rid).report_count == 4


def test_report_missing_review_is_404(client, user):
    assert client.post("/api/property/reviews/12345/report", headers=auth(user)).status_code == 404
    assert client.post("/api/tenant/reviews/12345/report", headers=auth(user)).status_code == 404


def test_report_comment_threshold(client, make_user, user, db):
    rid = _post_review(client, user)
    cid = client.post(f"/api/property/reviews/{rid}/comments", json={"text": "spam spam"},
                      headers=auth(user)).json()["comment"]["id"]

    for _ in range(3):
        r = client.post(f"/api/property/reviews/{rid}/comments/{cid}/report", headers=auth(make_user()))
        assert r.status_code == 200
    comment = db.get(ReviewComment, cid)
    assert (comment.report_count, comment.is_reported) == (3, True)

    assert client.post(f"/api/property/reviews/{rid}/comments/999/report", headers=auth(user)).status_code == 404


def test_reject_deletes_review_and_comments(client, user, admin, db):
    rid = _post_review(client, user, approved_by=admin)
    client.post(f"/api/property/reviews/{rid}/comments", json={"text": "first"}, headers=auth(user))
    assert client.get(f"/api/property/reviews/{rid}").status_code == 200

    r = client.patch(f"/api/admin/property-reviews/{rid}/moderate", json={"action": "reject"}, headers=auth(admin))
    assert r.status_code == 200
    assert client.get(f"/api/property/reviews/{rid}").status_code == 404
    assert db.query(ReviewComment).count() == 0


def test_moderation_requires_staff_and_valid_action(client, make_user, user, admin):
    rid = _post_review(client, user)
    url = f"/api/admin/property-reviews/{rid}/moderate"

    r = client.patch(url, json={"action": "approve"}, headers=auth(user))
    assert r.status_code == 403
    assert r.json()["message"] == "Access denied. Admin only."

    assert client.patch(url, json={"action": "dismiss"}, headers=auth(admin)).status_code == 400
    assert client.patch("/api/admin/property-reviews/999/moderate", json={"action": "approve"},
                        headers=auth(admin)).status_code == 404

    moderator = make_user(role="moderator")
    assert client.patch(url, json={"action": "approve"}, headers=auth(moderator)).status_code == 200


def test_tenant_moderation_is_scoped_to_tenant_reviews(client, user, admin):
    rid = _post_review(client, user)
    r = client.patch(f"/api/admin/tenant-reviews/{rid}/moderate", json={"action": "approve"}, headers=auth(admin))
    assert r.status_code == 404

    tid = client.post("/api/tenant/reviews", json=tenant_payload(), headers=auth(user)).json()["review"]["id"]
    r = client.patch(f"/api/admin/tenant-reviews/{tid}/moderate", json={"action": "approve"}, headers=auth(admin))
    assert r.status_code == 200
    assert client.get(f"/api/tenant/reviews/{tid}").status_code == 200


def test_pending_queue(client, user, admin):
    _post_review(client, user)
    client.post("/api/tenant/reviews", json=tenant_payload(), headers=auth(user))
    queue = client.get("/api/admin/pending-reviews", headers=auth(admin)).json()
    assert len(queue["propertyReviews"]) == 1
    assert len(queue["tenantReviews"]) == 1
    assert queue["propertyReviews"][0]["author"]["email"] == user.email


def _flag(client, make_user, rid, times=3):
    for _ in range(times):
        client.post(f"/api/property/reviews/{rid}/report", headers=auth(make_user()))


def test_reported_content_sorted_and_dismissed(client, make_user, user, admin, db):
    low = _post_review(client, user, approved_by=admin)
    high = _post_review(client, user, approved_by=admin)
    _flag(client, make_user, low, 3)
    _flag(client, make_user, high, 4)

    reported = client.get("/api/admin/reported-content", headers=auth(admin)).json()
    assert [r["id"] for r in reported["propertyReviews"]] == [high, low]

    r = client.patch(f"/api/admin/reported-content/property/{low}", json={"action": "dismiss"}, headers=auth(admin))
    assert r.status_code == 200
    review = db.get(Review, low)
    assert (review.is_reported, review.report_count) == (False, 0)


def test_resolve_approve_and_delete(client, make_user, user, admin, db):
    rid = _post_review(client, user)
    _flag(client, make_user, rid)

    client.patch(f"/api/admin/reported-content/property/{rid}", json={"action": "approve"}, headers=auth(admin))
    review = db.get(Review, rid)
    assert (review.is_approved, review.is_reported, review.report_count) == (True, False, 0)

    r = client.patch(f"/api/admin/reported-content/property/{rid}", json={"action": "delete"}, headers=auth(admin))
    assert r.status_code == 200
    assert db.query(Review).filter(Review.id == rid).count() == 0


def test_resolve_comment_and_bad_input(client, user, admin, db):
    rid = _post_review(client, user)
    cid = client.post(f"/api/property/reviews/{rid}/comments", json={"text": "hi"},
                      headers=auth(user)).json()["comment"]["id"]

    r = client.patch(f"/api/admin/reported-content/comment/{cid}", json={"action": "delete"}, headers=auth(admin))
    assert r.status_code == 200
    assert db.query(ReviewComment).count() == 0

    assert client.patch(f"/api/admin/reported-content/hotel/{rid}", json={"action": "delete"},
                        headers=auth(admin)).status_code == 400
    assert client.patch(f"/api/admin/reported-content/property/{rid}", json={"action": "reject"},
                        headers=auth(admin)).status_code == 400
    assert client.patch("/api/admin/reported-content/property/abc", json={"action": "dismiss"},
                        headers=auth(admin)).status_code == 400


def test_user_admin_endpoints(client, make_user, user, admin):
    users = client.get("/api/admin/users", headers=auth(admin)).json()
    assert {u["email"] for u in users} >= {user.email, admin.email}

    moderator = make_user(role="moderator")
    assert client.patch(f"/api/admin/users/{user.id}/status", json={"isActive": False},
                        headers=auth(moderator)).status_code == 403

    r = client.patch(f"/api/admin/users/{user.id}/status", json={"isActive": False}, headers=auth(admin))
    assert r.status_code == 200
    # a deactivated user's token stops working
    assert client.get("/api/auth/me", headers=auth(user)).status_code == 401
