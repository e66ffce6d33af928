"""
API tests for user listing, profiles and account ownership.
"""

import uuid


def test_list_users_requires_auth(client):
    response = client.get("/api/users")
    assert response.status_code == 401


def test_list_users_with_search_and_pagination(client, register_user):
    alice = register_user("alice")
    register_user("bob")
    register_user("bobby", email="robert@example.com")

    response = client.get("/api/users", headers=alice["headers"])
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalUsers"] == 3
    # Newest first
    assert [u["username"] for u in data["users"]] == ["bobby", "bob", "alice"]

    response = client.get(
        "/api/users", params={"search": "BOB", "limit": 1}, headers=alice["headers"]
    )
    data = response.json()["data"]
    assert data["totalUsers"] == 2
    assert len(data["users"]) == 1
    assert data["pagination"] == {
        "page": 1,
        "limit": 1,
        "total": 2,
        "pages": 2,
        "hasNext": True,
        "hasPrev": False,
    }

    response = client.get(
        "/api/users", params={"search": "robert"}, headers=alice["headers"]
    )
    assert [u["username"] for u in response.json()["data"]["users"]] == ["bobby"]


def test_list_users_search_treats_wildcards_literally(client, register_user):
    alice = register_user("alice")
    register_user("bob_smith")

    def usernames(search):
        response = client.get(
            "/api/users", params={"search": search}, headers=alice["headers"]
        )
        return [u["username"] for u in response.json()["data"]["users"]]

    assert usernames("_") == ["bob_smith"]
    assert usernames("%") == []


def test_list_users_rejects_bad_limit(client, alice):
    response = client.get("/api/users", params={"limit": 500}, headers=alice["headers"])
    assert response.status_code == 400


def test_get_user_by_id(client, alice, bob):
    response = client.get(f"/api/users/{bob['user']['id']}", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["user"]["username"] == "bob"


def test_get_user_missing_and_malformed_id(client, alice):
    missing = client.get(f"/api/users/{uuid.uuid4()}", headers=alice["headers"])
    assert missing.status_code == 404
    assert missing.json()["message"] == "User not found"

    malformed = client.get("/api/users/12345", headers=alice["headers"])
    assert malformed.status_code == 404
    assert malformed.json()["message"] == "Resource not found"


def test_update_own_profile(client, alice):
    response = client.put(
        f"/api/users/{alice['user']['id']}",
        json={"firstName": "Alicia", "email": "alicia@example.com"},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["firstName"] == "Alicia"
    assert user["lastName"] == "Tester"
    assert user["email"] == "alicia@example.com"


def test_update_other_user_is_forbidden(client, alice, bob):
    response = client.put(
        f"/api/users/{bob['user']['id']}",
        json={"firstName": "Hacked"},
        headers=alice["headers"],
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to update this user"

    unchanged = client.get(f"/api/users/{bob['user']['id']}", headers=bob["headers"])
    assert unchanged.json()["data"]["user"]["firstName"] == "Bob"


def test_update_rejects_username_and_password(client, alice):
    url = f"/api/users/{alice['user']['id']}"
    response = client.put(url, json={"username": "newname"}, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == "Username cannot be changed"

    response = client.put(url, json={"password": "newpass123"}, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == "Use /users/change-password to update password"


def test_update_rejects_taken_email(client, alice, bob):
    response = client.put(
        f"/api/users/{alice['user']['id']}",
        json={"email": "bob@example.com"},
        headers=alice["headers"],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Email already in use"


def test_profile_routes(client, alice):
    response = client.get("/api/users/profile", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json()["data"]["user"]["username"] == "alice"

    response = client.put(
        "/api/users/profile", json={"lastName": "Liddell"}, headers=alice["headers"]
    )
    assert response.status_code == 200
    assert response.json()["data"]["user"]["fullName"] == "Alice Liddell"


def test_change_password(client, alice):
    response = client.put(
        "/api/users/change-password",
        json={"currentPassword": "wrong-one", "newPassword": "newsecret1"},
        headers=alice["headers"],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"

    response = client.post(
        "/api/users/change-password",
        json={"currentPassword": "secret123", "newPassword": "newsecret1"},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Password changed successfully"

    old = client.post(
        "/api/auth/login", json={"username": "alice", "password": "secret123"}
    )
    new = client.post(
        "/api/auth/login", json={"username": "alice", "password": "newsecret1"}
    )
    assert old.status_code == 400
    assert new.status_code == 200


def test_change_password_validates_new_password(client, alice):
    response = client.put(
        "/api/users/change-password",
        json={"currentPassword": "secret123", "newPassword": "123"},
        headers=alice["headers"],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "New password must be at least 6 characters"


def test_change_password_rejects_password_over_bcrypt_limit(client, alice):
    response = client.put(
        "/api/users/change-password",
        json={"currentPassword": "secret123", "newPassword": "y" * 73},
        headers=alice["headers"],
    )
    assert response.status_code == 400
    assert response.json()["message"] == "New password cannot exceed 72 bytes"


def test_delete_other_user_is_forbidden(client, alice, bob):
    response = client.delete(f"/api/users/{bob['user']['id']}", headers=alice["headers"])
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to delete this user"


def test_delete_own_account_cascades(client, alice, bob):
    post = client.post(
        "/api/posts",
        json={"title": "Bye", "content": "Soon gone"},
        headers=alice["headers"],
    ).json()["data"]["post"]
    client.post(f"/api/posts/{post['id']}/like", headers=bob["headers"])

    response = client.delete(f"/api/users/{alice['user']['id']}", headers=alice["headers"])
    assert response.status_code == 200
    assert response.json()["message"] == "User deleted successfully"

    assert client.get(f"/api/posts/{post['id']}").status_code == 404
    # The token of a deleted user is no longer accepted
    assert client.get("/api/auth/me", headers=alice["headers"]).status_code == 401
