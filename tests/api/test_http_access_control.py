"""HTTP 层：状态码映射、认证头、可选认证与数据库故障"""
import pytest
from sqlalchemy.exc import OperationalError

from infrastructure.repositories.session_repository import SQLAlchemySessionRepository


API = "/api/v1"


async def _register(client, username, password="password123"):
    response = await client.post(f"{API}/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_register_login_me(client, auth_header):
    data = await _register(client, "alice")
    assert data["user"]["groups"] == ["administrator"]
    assert "password_hash" not in data["user"]

    login = await client.post(f"{API}/auth/login", json={"login": "alice@example.com", "password": "password123"})
    assert login.status_code == 200
    body = login.json()
    assert body["code"] == 0

    me = await client.get(f"{API}/auth/me", headers=auth_header(body["data"]["token"]))
    assert me.status_code == 200
    assert me.json()["data"]["user"]["username"] == "alice"
    assert me.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_oauth2_form_token(client):
    await _register(client, "alice")
    response = await client.post(
        f"{API}/auth/token", data={"username": "alice", "password": "password123"}
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_missing_and_bad_tokens_are_401(client, auth_header):
    missing = await client.get(f"{API}/auth/me")
    assert missing.status_code == 401
    assert missing.headers["WWW-Authenticate"] == "Bearer"
    assert missing.json()["error"]["kind"] == "authentication"

    bad = await client.get(f"{API}/auth/me", headers=auth_header("garbage"))
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_logged_out_token_stops_working(client, auth_header):
    token = (await _register(client, "alice"))["token"]
    assert (await client.post(f"{API}/auth/logout", headers=auth_header(token))).status_code == 200
    assert (await client.get(f"{API}/auth/me", headers=auth_header(token))).status_code == 401


@pytest.mark.asyncio
async def test_wrong_password_is_401(client):
    await _register(client, "alice")
    response = await client.post(f"{API}/auth/login", json={"login": "alice", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid login or password"


@pytest.mark.asyncio
async def test_validation_errors_are_400(client):
    short = await client.post(f"{API}/auth/register", json={
        "username": "ab", "email": "ab@example.com", "password": "password123",
    })
    assert short.status_code == 400
    assert short.json()["error"]["kind"] == "validation"

    bad_query = await client.get(f"{API}/articles", params={"limit": 0})
    assert bad_query.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_registration_is_400(client):
    await _register(client, "alice")
    response = await client.post(f"{API}/auth/register", json={
        "username": "alice", "email": "other@example.com", "password": "password123",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "User with this username or email already exists"


@pytest.mark.asyncio
async def test_group_management_permissions(client, auth_header):
    admin = await _register(client, "admin")
    member = await _register(client, "member")
    admin_id, member_id = admin["user"]["id"], member["user"]["id"]

    forbidden = await client.patch(
        f"{API}/users/{admin_id}/groups",
        json={"groups": ["user"]},
        headers=auth_header(member["token"]),
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["details"] == {"required_right": "manage_users"}

    self_change = await client.patch(
        f"{API}/users/{admin_id}/groups",
        json={"groups": ["user"]},
        headers=auth_header(admin["token"]),
    )
    assert self_change.status_code == 403

    multiple = await client.patch(
        f"{API}/users/{member_id}/groups",
        json={"groups": ["user", "creator"]},
        headers=auth_header(admin["token"]),
    )
    assert multiple.status_code == 400

    missing = await client.patch(
        f"{API}/users/00000000-0000-0000-0000-000000000000/groups",
        json={"groups": ["creator"]},
        headers=auth_header(admin["token"]),
    )
    assert missing.status_code == 404

    promoted = await client.patch(
        f"{API}/users/{member_id}/groups",
        json={"groups": ["creator"]},
        headers=auth_header(admin["token"]),
    )
    assert promoted.status_code == 200
    assert promoted.json()["data"]["groups"] == ["creator"]


@pytest.mark.asyncio
async def test_article_lifecycle_over_http(client, auth_header):
    admin = await _register(client, "admin")
    member = await _register(client, "member")
    author = auth_header(member["token"])

    denied = await client.post(f"{API}/articles", json={"title": "Hi", "content": "{}"}, headers=author)
    assert denied.status_code == 403

    await client.patch(
        f"{API}/users/{member['user']['id']}/groups",
        json={"groups": ["creator"]},
        headers=auth_header(admin["token"]),
    )
    can = await client.get(f"{API}/articles/can-create", headers=author)
    assert can.json()["data"]["can_create"] is True

    created = await client.post(
        f"{API}/articles", json={"title": "Hello World", "content": "{}"}, headers=author
    )
    assert created.status_code == 201
    article = created.json()["data"]
    assert article["slug"] == "hello-world"
    assert article["status"] == "draft"

    hidden = await client.get(f"{API}/articles/hello-world")
    assert hidden.status_code == 404

    published = await client.patch(
        f"{API}/articles/{article['id']}/status", json={"status": "published"}, headers=author
    )
    assert published.status_code == 200
    assert published.json()["data"]["published_at"].endswith("Z")

    public = await client.get(f"{API}/articles/hello-world")
    assert public.status_code == 200
    assert public.json()["data"]["views"] == 1

    like = await client.post(
        f"{API}/reactions/toggle", json={"target_id": article["id"]},
        headers=auth_header(admin["token"]),
    )
    assert like.json()["data"]["action"] == "added"

    batch = await client.post(f"{API}/reactions/stats/batch", json={"target_ids": [article["id"]]})
    assert batch.json()["data"]["stats"][article["id"]]["counts"] == {"like": 1}

    empty_patch = await client.patch(f"{API}/articles/{article['id']}", json={}, headers=author)
    assert empty_patch.status_code == 400

    deleted = await client.delete(f"{API}/articles/{article['id']}", headers=author)
    assert deleted.status_code == 200
    assert (await client.get(f"{API}/articles/{article['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_invalid_token_on_public_route_is_anonymous(client, auth_header):
    await _register(client, "alice")
    response = await client.get(f"{API}/articles", headers=auth_header("garbage"))
    assert response.status_code == 200
    assert response.json()["data"]["pagination"]["total"] == 0


@pytest.mark.asyncio
async def test_profile_owner_flag(client, auth_header):
    alice = await _register(client, "alice")
    bob = await _register(client, "bob")
    url = f"{API}/users/{alice['user']['id']}"

    own = (await client.get(url, headers=auth_header(alice["token"]))).json()["data"]
    other = (await client.get(url, headers=auth_header(bob["token"]))).json()["data"]

    assert own["isOwner"] is True and own["user"]["email"] == "alice@example.com"
    assert other["isOwner"] is False and other["user"]["email"] is None


@pytest.mark.asyncio
async def test_datastore_failure_is_500_not_401(client, auth_header, monkeypatch):
    token = (await _register(client, "alice"))["token"]

    async def _down(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(SQLAlchemySessionRepository, "get_active", _down)

    required = await client.get(f"{API}/auth/me", headers=auth_header(token))
    optional = await client.get(f"{API}/articles", headers=auth_header(token))

    assert required.status_code == 500
    assert required.json()["error"]["kind"] == "internal"
    assert optional.status_code == 500


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client):
    response = await client.get(f"{API}/does-not-exist")
    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "not_found"
