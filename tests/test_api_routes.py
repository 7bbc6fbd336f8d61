from datetime import timedelta

import pytest

from conftest import auth_headers, get_role, make_post, make_profile
from gclub.db.seeds.seed_channels import seed_channels
from gclub.models.audit_log import AuditLog
from gclub.models.channel import Channel
from gclub.services.game_post_service import game_post_service
from gclub.services.waiting_list_service import utcnow
from gclub.api.waiting import MANUAL_PROMOTION_RETIRED


def post_payload(max_players=3, **overrides):
    payload = {
        "title": "Friday Terraforming Mars",
        "content": "Starts at 7pm sharp",
        "game_name": "Terraforming Mars",
        "max_players": max_players,
        "start_time": (utcnow() + timedelta(days=1)).isoformat(),
    }
    payload.update(overrides)
    return payload


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ---- Profile ----

def test_register_profile_gets_default_role(client):
    resp = client.post("/api/profile/", json={"name": "Alice"}, headers=auth_headers("alice"))
    assert resp.status_code == 201
    assert resp.json()["role"]["name"] == "NONE"

    again = client.post("/api/profile/", json={"name": "Alice"}, headers=auth_headers("alice"))
    assert again.status_code == 409


def test_me_requires_authentication(client):
    assert client.get("/api/profile/me").status_code == 401
    bad = client.get("/api/profile/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401


def test_me_without_profile_has_no_capabilities(client):
    resp = client.get("/api/profile/me", headers=auth_headers("ghost"))
    assert resp.status_code == 200
    body = resp.json()
    assert body["profile"] is None
    assert not any(body["capabilities"].values())


def test_me_for_admin(client, db):
    make_profile(db, "root", "ADMIN")
    body = client.get("/api/profile/me", headers=auth_headers("root")).json()
    assert body["profile"]["role"]["name"] == "ADMIN"
    assert body["capabilities"]["is_admin"] is True
    assert body["capabilities"]["can_manage_channels"] is True
    assert body["capabilities"]["is_super_admin"] is False


# ---- Game posts ----

def test_create_post_requires_membership(client, db):
    make_profile(db, "newbie", "NONE")
    resp = client.post("/api/game-posts/", json=post_payload(), headers=auth_headers("newbie"))
    assert resp.status_code == 403


def test_create_post_rejects_bad_capacity(client, members):
    resp = client.post("/api/game-posts/", json=post_payload(max_players=1), headers=auth_headers("host"))
    assert resp.status_code == 400


def test_create_and_fetch_post(client, members):
    resp = client.post("/api/game-posts/", json=post_payload(), headers=auth_headers("host"))
    assert resp.status_code == 201
    post = resp.json()
    assert post["status"] == "OPEN"
    assert post["participant_count"] == 1
    assert post["participants"][0]["user_id"] == "host"
    assert post["participants"][0]["is_leader"] is True

    detail = client.get(f"/api/game-posts/{post['id']}").json()
    assert detail["title"] == "Friday Terraforming Mars"
    assert detail["waiting_list"] == []


def test_list_posts_filters(client, members):
    db = members
    open_post = make_post(db, max_players=3)
    full_post = make_post(db, max_players=2)
    game_post_service.join(db, full_post.id, "alice")

    recruiting = client.get("/api/game-posts/", params={"status": "recruiting"}).json()
    assert {p["id"] for p in recruiting["posts"]} == {open_post.id, full_post.id}

    full = client.get("/api/game-posts/", params={"status": "FULL"}).json()
    assert [p["id"] for p in full["posts"]] == [full_post.id]

    assert client.get("/api/game-posts/", params={"status": "BOGUS"}).status_code == 400
    assert client.get("/api/game-posts/", params={"status": "DELETED"}).status_code == 400


def test_participate_until_full_then_wait(client, members):
    db = members
    post = make_post(db, max_players=2)

    joined = client.post(f"/api/game-posts/{post.id}/participate", headers=auth_headers("alice"))
    assert joined.status_code == 200

    full = client.post(f"/api/game-posts/{post.id}/participate", headers=auth_headers("bob"))
    assert full.status_code == 409
    assert full.headers["X-Requires-Waiting"] == "true"

    waiting = client.post(f"/api/game-posts/{post.id}/wait", headers=auth_headers("bob"))
    assert waiting.status_code == 200
    assert waiting.json()["status"] == "WAITING"

    dup = client.post(f"/api/game-posts/{post.id}/wait", headers=auth_headers("bob"))
    assert dup.status_code == 409

    detail = client.get(f"/api/game-posts/{post.id}").json()
    assert detail["status"] == "FULL"
    assert [w["user_id"] for w in detail["waiting_list"]] == ["bob"]


def test_wait_with_future_time(client, members):
    db = members
    post = make_post(db, max_players=2)
    game_post_service.join(db, post.id, "alice")

    available = (utcnow() + timedelta(hours=3)).isoformat()
    resp = client.post(
        f"/api/game-posts/{post.id}/wait",
        json={"available_time": available},
        headers=auth_headers("bob"),
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "TIME_WAITING"


def test_leave_reports_promoted_users(client, members):
    db = members
    post = make_post(db, max_players=2)
    game_post_service.join(db, post.id, "alice")
    client.post(f"/api/game-posts/{post.id}/wait", headers=auth_headers("bob"))

    resp = client.delete(f"/api/game-posts/{post.id}/participate", headers=auth_headers("alice"))
    assert resp.status_code == 200
    assert resp.json()["detail"] == {"promoted_user_ids": ["bob"]}

    detail = client.get(f"/api/game-posts/{post.id}").json()
    assert {p["user_id"] for p in detail["participants"]} == {"host", "bob"}
    assert detail["status"] == "FULL"


def test_cancel_waiting(client, members):
    db = members
    post = make_post(db, max_players=2)
    game_post_service.join(db, post.id, "alice")
    client.post(f"/api/game-posts/{post.id}/wait", headers=auth_headers("bob"))

    assert client.post(f"/api/game-posts/{post.id}/wait/cancel").status_code == 401

    first = client.post(f"/api/game-posts/{post.id}/wait/cancel", headers=auth_headers("bob"))
    assert first.status_code == 200

    second = client.post(f"/api/game-posts/{post.id}/wait/cancel", headers=auth_headers("bob"))
    assert second.status_code == 404
    assert second.json()["detail"] == "No cancelable waiting entry found"


@pytest.mark.parametrize("post_id,waiting_id", [("1", "2"), ("abc", "xyz")])
def test_manual_promotion_is_gone(client, post_id, waiting_id):
    resp = client.patch(f"/api/game-posts/{post_id}/waiting/{waiting_id}", json={"action": "approve"})
    assert resp.status_code == 410
    assert resp.json() == {"detail": MANUAL_PROMOTION_RETIRED}


def test_edit_and_delete_permissions(client, members):
    db = members
    make_profile(db, "mod", "ADMIN")
    post = make_post(db, max_players=3)

    assert client.patch(
        f"/api/game-posts/{post.id}", json={"title": "Hijacked"}, headers=auth_headers("alice"),
    ).status_code == 403

    edited = client.patch(f"/api/game-posts/{post.id}", json={"title": "Renamed"}, headers=auth_headers("mod"))
    assert edited.status_code == 200
    assert edited.json()["title"] == "Renamed"

    assert client.delete(f"/api/game-posts/{post.id}", headers=auth_headers("alice")).status_code == 403
    assert client.delete(f"/api/game-posts/{post.id}", headers=auth_headers("host")).status_code == 200
    assert client.get(f"/api/game-posts/{post.id}").status_code == 404


def test_close_recruitment_author_only(client, members):
    db = members
    post = make_post(db, max_players=3)
    assert client.patch(
        f"/api/game-posts/{post.id}/close-recruitment", headers=auth_headers("alice"),
    ).status_code == 403

    closed = client.patch(f"/api/game-posts/{post.id}/close-recruitment", headers=auth_headers("host"))
    assert closed.status_code == 200
    assert closed.json()["status"] == "COMPLETED"


def test_view_counter(client, members):
    db = members
    post = make_post(db)
    assert client.post(f"/api/game-posts/{post.id}/view").status_code == 200
    assert client.get(f"/api/game-posts/{post.id}").json()["view_count"] == 1

    client.delete(f"/api/game-posts/{post.id}", headers=auth_headers("host"))
    assert client.post(f"/api/game-posts/{post.id}/view").status_code == 404
    assert client.post("/api/game-posts/9999/view").status_code == 404


# ---- Role check ----

def test_role_check(client, db):
    user_role = get_role(db, "USER")
    super_admin = get_role(db, "SUPER_ADMIN")

    def check(body):
        resp = client.post("/api/roles/check", json=body)
        assert resp.status_code == 200
        return resp.json()["hasPermission"]

    assert check({"roleId": user_role.id, "permissionName": "GAME_POST_CREATE"}) is True
    assert check({"roleId": user_role.id, "permissionName": "MANAGE_CHANNELS"}) is False
    assert check({"roleId": super_admin.id, "permissionName": "ANYTHING"}) is True
    assert check({"roleId": 9999, "permissionName": "GAME_POST_CREATE"}) is False
    assert check({"roleId": user_role.id}) is False


def test_role_check_tolerates_garbage(client):
    resp = client.post("/api/roles/check", content=b"not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 200
    assert resp.json() == {"hasPermission": False}


# ---- Channels ----

def test_channel_order(client, db):
    seed_channels(db)
    make_profile(db, "member", "USER")
    make_profile(db, "root", "ADMIN")
    channels = client.get("/api/channels/").json()
    ids = [c["id"] for c in channels]
    reversed_body = {"channels": [{"id": cid, "order": i} for i, cid in enumerate(reversed(ids))]}

    assert client.put("/api/channels/order", json=reversed_body).status_code == 401
    assert client.put(
        "/api/channels/order", json=reversed_body, headers=auth_headers("member"),
    ).status_code == 403

    resp = client.put("/api/channels/order", json=reversed_body, headers=auth_headers("root"))
    assert resp.status_code == 200
    assert resp.json()["detail"] == {"updated": len(ids)}
    assert [c["id"] for c in client.get("/api/channels/").json()] == list(reversed(ids))

    assert db.query(AuditLog).filter(AuditLog.action == "channel.reordered").count() == 1


@pytest.mark.parametrize("body", [
    b"{",
    b'{"channels": [{"id": "x", "order": 1}]}',
    b'{"orders": []}',
])
def test_channel_order_malformed_body(client, db, body):
    make_profile(db, "root", "ADMIN")
    resp = client.put(
        "/api/channels/order",
        content=body,
        headers={**auth_headers("root"), "Content-Type": "application/json"},
    )
    assert resp.status_code == 400


def test_channel_order_is_all_or_nothing(client, db):
    seed_channels(db)
    make_profile(db, "root", "ADMIN")
    before = [(c.id, c.order) for c in db.query(Channel).order_by(Channel.id)]
    first_id = before[0][0]

    dup = client.put(
        "/api/channels/order",
        json={"channels": [{"id": first_id, "order": 5}, {"id": first_id, "order": 6}]},
        headers=auth_headers("root"),
    )
    assert dup.status_code == 400

    missing = client.put(
        "/api/channels/order",
        json={"channels": [{"id": first_id, "order": 9}, {"id": 9999, "order": 1}]},
        headers=auth_headers("root"),
    )
    assert missing.status_code == 404

    db.expire_all()
    assert [(c.id, c.order) for c in db.query(Channel).order_by(Channel.id)] == before
