from conftest import login


def test_profile_requires_session(client):
    assert client.get("/api/user/profile").status_code == 401
    assert client.put("/api/user/profile", json={"city": "Paris"}).status_code == 401


def test_get_profile(client, seed_user, seed_purchase):
    user_id = seed_user("bee@example.com", firstname="Maya", lastname="Apis")
    first = seed_purchase(user_id, master_hives=1)
    second = seed_purchase(user_id, master_hives=3, access_granted=True, containers=["hive-1"])
    login(client, "bee@example.com")

    res = client.get("/api/user/profile")
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["user"]["id"] == user_id
    assert body["user"]["firstname"] == "Maya"
    assert "passwordHash" not in body["user"]
    assert [p["id"] for p in body["purchases"]] == [str(second), str(first)]
    assert body["purchases"][0]["assignedContainers"] == ["hive-1"]


def test_update_profile_only_touches_sent_fields(client, seed_user):
    seed_user("bee@example.com", firstname="Maya", lastname="Apis")
    login(client, "bee@example.com")

    res = client.put("/api/user/profile", json={"city": "Lyon", "postalCode": "69001"})
    assert res.status_code == 200
    user = res.json()["user"]
    assert user["city"] == "Lyon"
    assert user["postalCode"] == "69001"
    assert user["firstname"] == "Maya"

    user = client.get("/api/user/profile").json()["user"]
    assert user["city"] == "Lyon"
    assert user["lastname"] == "Apis"


def test_profile_cannot_change_role_or_email(client, seed_user):
    seed_user("bee@example.com")
    login(client, "bee@example.com")

    client.put("/api/user/profile", json={"role": "admin", "email": "evil@example.com"})
    user = client.get("/api/user/profile").json()["user"]
    assert user["role"] == "user"
    assert user["email"] == "bee@example.com"
