from conftest import API, SUPERADMIN_EMAIL, SUPERADMIN_PASSWORD, bearer


async def test_login_returns_user_and_tokens(client, superadmin):
    resp = await client.post(f"{API}/auth/login", json={"email": SUPERADMIN_EMAIL, "password": SUPERADMIN_PASSWORD})

    assert resp.status_code == 200
    body = resp.json()
    assert body["user"] == {"id": superadmin.id, "name": "System Super Admin", "role": "SUPERADMIN", "schoolId": None}
    assert body["accessToken"]
    assert body["refreshToken"]


async def test_login_rejects_wrong_password_and_unknown_email(client, superadmin):
    wrong = await client.post(f"{API}/auth/login", json={"email": SUPERADMIN_EMAIL, "password": "nope"})
    unknown = await client.post(f"{API}/auth/login", json={"email": "ghost@system.com", "password": "nope"})

    assert wrong.status_code == 401
    assert wrong.json() == {"message": "Invalid credentials"}
    assert unknown.status_code == 401
    assert unknown.json() == {"message": "Invalid credentials"}


async def test_me_echoes_token_claims(client, superadmin, superadmin_headers):
    resp = await client.get(f"{API}/auth/me", headers=superadmin_headers)

    assert resp.status_code == 200
    assert resp.json() == {
        "data": {"userId": superadmin.id, "role": "SUPERADMIN", "email": SUPERADMIN_EMAIL, "schoolId": None}
    }


async def test_me_requires_a_valid_token(client):
    missing = await client.get(f"{API}/auth/me")
    garbage = await client.get(f"{API}/auth/me", headers=bearer("not-a-jwt"))

    assert missing.status_code == 401
    assert "message" in missing.json()
    assert garbage.status_code == 401
    assert garbage.json() == {"message": "Invalid or expired token"}


async def test_refresh_issues_a_working_access_token(client, superadmin):
    login = await client.post(f"{API}/auth/login", json={"email": SUPERADMIN_EMAIL, "password": SUPERADMIN_PASSWORD})
    refresh_token = login.json()["refreshToken"]

    resp = await client.post(f"{API}/auth/refresh", json={"refreshToken": refresh_token})
    assert resp.status_code == 200

    me = await client.get(f"{API}/auth/me", headers=bearer(resp.json()["accessToken"]))
    assert me.json()["data"]["email"] == SUPERADMIN_EMAIL


async def test_refresh_rejects_access_tokens(client, superadmin):
    login = await client.post(f"{API}/auth/login", json={"email": SUPERADMIN_EMAIL, "password": SUPERADMIN_PASSWORD})

    resp = await client.post(f"{API}/auth/refresh", json={"refreshToken": login.json()["accessToken"]})

    assert resp.status_code == 401


async def test_school_admin_cannot_reach_superadmin_routes(client, admin_headers):
    resp = await client.get(f"{API}/superadmin/schools", headers=admin_headers)

    assert resp.status_code == 403
    assert resp.json() == {"message": "Forbidden"}


async def test_school_admin_is_scoped_to_own_school(client, create_school, admin_headers, school_id):
    other = await create_school(name="Roosevelt", code="ROO01", admin_email="admin@roosevelt.edu")
    other_id = other["school"]["id"]

    own = await client.get(f"{API}/schools/{school_id}/tutors", headers=admin_headers)
    foreign = await client.get(f"{API}/schools/{other_id}/tutors", headers=admin_headers)

    assert own.status_code == 200
    assert foreign.status_code == 403


async def test_teacher_can_read_but_not_write(client, school_id, create_tutor, login_as):
    created = await create_tutor(school_id)
    teacher_headers = await login_as("jane@lincoln.edu", created["temporaryPassword"])

    read = await client.get(f"{API}/schools/{school_id}/tutors", headers=teacher_headers)
    write = await client.post(
        f"{API}/schools/{school_id}/tutors",
        json={"name": "Bob", "email": "bob@lincoln.edu", "phone": "9000000002"},
        headers=teacher_headers,
    )
    stats = await client.get(f"{API}/schools/{school_id}/stats", headers=teacher_headers)

    assert read.status_code == 200
    assert write.status_code == 403
    assert stats.status_code == 403
