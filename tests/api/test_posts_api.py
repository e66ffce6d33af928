"""
API tests for posts: CRUD, ownership, likes and comments.
"""

import uuid

import pytest


@pytest.fixture
def create_post(client):
    def _create(author: dict, **fields) -> dict:
        payload = {"title": "First post", "content": "Hello there, world", "tags": ["intro"]}
        payload.update(fields)
        response = client.post("/api/posts", json=payload, headers=author["headers"])
        assert response.status_code == 201, response.text
        return response.json()["data"]["post"]

    return _create


def test_create_post(client, alice):
    response = client.post(
        "/api/posts",
        json={"title": "  My Post!  ", "content": "Some content", "tags": [" a ", "b"]},
        headers=alice["headers"],
    )
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Post created successfully"
    post = body["data"]["post"]
    assert post["title"] == "My Post!"
    assert post["slug"] == "my-post"
    assert post["tags"] == ["a", "b"]
    assert post["author"]["username"] == "alice"
    assert post["likeCount"] == 0
    assert post["commentCount"] == 0
    assert post["readingTime"] == 1
    assert post["isPublished"] is True


def test_create_post_requires_auth(client):
    response = client.post("/api/posts", json={"title": "t", "content": "c"})
    assert response.status_code == 401
    assert response.json()["message"] == "No token, authorization denied"


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"content": "no title"}, "Title is required"),
        ({"title": "x" * 101, "content": "c"}, "Title cannot exceed 100 characters"),
        ({"title": "t", "content": "c", "tags": ["x" * 21]}, "Tag cannot exceed 20 characters"),
        ({"title": "   ", "content": "c"}, "Title is required"),
    ],
)
def test_create_post_validation(client, alice, payload, message):
    response = client.post("/api/posts", json=payload, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == message


def test_list_posts_is_public_and_paginated(client, alice, create_post):
    for i in range(3):
        create_post(alice, title=f"Post {i}")
    create_post(alice, title="Draft", isPublished=False)

    response = client.get("/api/posts", params={"limit": 2})
    assert response.status_code == 200
    data = response.json()["data"]
    assert [p["title"] for p in data["posts"]] == ["Post 2", "Post 1"]
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["pages"] == 2
    assert data["pagination"]["hasNext"] is True


def test_list_posts_search(client, alice, create_post):
    create_post(alice, title="Learning FastAPI", content="routers", tags=["python"])
    create_post(alice, title="Gardening", content="tomatoes", tags=["outdoors"])

    def titles(search):
        response = client.get("/api/posts", params={"search": search})
        return [p["title"] for p in response.json()["data"]["posts"]]

    assert titles("fastapi") == ["Learning FastAPI"]
    assert titles("TOMATO") == ["Gardening"]
    assert titles("outdoors") == ["Gardening"]


def test_list_posts_search_treats_wildcards_literally(client, alice, create_post):
    create_post(alice, title="Plain title", content="nothing special", tags=["misc"])
    create_post(alice, title="Discount", content="now 50% off", tags=["sale"])

    def titles(search):
        response = client.get("/api/posts", params={"search": search})
        return [p["title"] for p in response.json()["data"]["posts"]]

    assert titles("%") == ["Discount"]
    assert titles("_") == []


def test_get_post(client, alice, create_post):
    post = create_post(alice)
    response = client.get(f"/api/posts/{post['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["post"]["id"] == post["id"]
    assert "likedByMe" not in response.json()["data"]


def test_get_post_liked_by_me(client, alice, bob, create_post):
    post = create_post(alice)
    client.post(f"/api/posts/{post['id']}/like", headers=bob["headers"])

    as_bob = client.get(f"/api/posts/{post['id']}", headers=bob["headers"])
    assert as_bob.json()["data"]["likedByMe"] is True

    as_alice = client.get(f"/api/posts/{post['id']}", headers=alice["headers"])
    assert as_alice.json()["data"]["likedByMe"] is False

    # A bad token on a public read is ignored
    anonymous = client.get(
        f"/api/posts/{post['id']}", headers={"Authorization": "Bearer garbage"}
    )
    assert anonymous.status_code == 200
    assert "likedByMe" not in anonymous.json()["data"]


def test_get_post_missing_and_malformed(client):
    missing = client.get(f"/api/posts/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Post not found"

    malformed = client.get("/api/posts/not-an-id")
    assert malformed.status_code == 404
    assert malformed.json()["message"] == "Resource not found"


def test_update_post_by_author(client, alice, create_post):
    post = create_post(alice)
    response = client.put(
        f"/api/posts/{post['id']}",
        json={"title": "Edited title", "tags": ["edited"]},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    updated = response.json()["data"]["post"]
    assert updated["title"] == "Edited title"
    assert updated["content"] == post["content"]
    assert updated["tags"] == ["edited"]
    assert updated["author"]["id"] == alice["user"]["id"]


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"isPublished": None}, "Published flag must be true or false"),
        ({"title": None}, "Title is required"),
    ],
)
def test_update_post_rejects_null_fields(client, alice, create_post, payload, message):
    post = create_post(alice)
    response = client.put(f"/api/posts/{post['id']}", json=payload, headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["message"] == message

    unchanged = client.get(f"/api/posts/{post['id']}").json()["data"]["post"]
    assert unchanged["isPublished"] is True
    assert unchanged["title"] == post["title"]


def test_update_post_by_other_user_is_forbidden(client, alice, bob, create_post):
    post = create_post(alice)
    response = client.put(
        f"/api/posts/{post['id']}", json={"title": "Mine now"}, headers=bob["headers"]
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Not authorized to update this post"

    unchanged = client.get(f"/api/posts/{post['id']}").json()["data"]["post"]
    assert unchanged["title"] == post["title"]


def test_update_missing_post(client, alice):
    response = client.put(
        f"/api/posts/{uuid.uuid4()}", json={"title": "x"}, headers=alice["headers"]
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Post not found"


def test_delete_post(client, alice, bob, create_post):
    post = create_post(alice)

    forbidden = client.delete(f"/api/posts/{post['id']}", headers=bob["headers"])
    assert forbidden.status_code == 403
    assert forbidden.json()["message"] == "Not authorized to delete this post"

    deleted = client.delete(f"/api/posts/{post['id']}", headers=alice["headers"])
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Post deleted successfully"
    assert client.get(f"/api/posts/{post['id']}").status_code == 404


def test_like_toggle(client, alice, bob, create_post):
    post = create_post(alice)
    url = f"/api/posts/{post['id']}/like"

    liked = client.post(url, headers=bob["headers"]).json()
    assert liked["message"] == "Post liked"
    assert liked["data"] == {"liked": True, "likeCount": 1}

    also_liked = client.post(url, headers=alice["headers"]).json()
    assert also_liked["data"] == {"liked": True, "likeCount": 2}

    unliked = client.post(url, headers=bob["headers"]).json()
    assert unliked["message"] == "Post unliked"
    assert unliked["data"] == {"liked": False, "likeCount": 1}

    detail = client.get(f"/api/posts/{post['id']}").json()["data"]["post"]
    assert detail["likeCount"] == 1
    assert detail["likes"] == [alice["user"]["id"]]


def test_like_missing_post(client, alice):
    response = client.post(f"/api/posts/{uuid.uuid4()}/like", headers=alice["headers"])
    assert response.status_code == 404


def test_comment(client, alice, bob, create_post):
    post = create_post(alice)
    url = f"/api/posts/{post['id']}/comment"

    response = client.post(url, json={"content": "Nice one"}, headers=bob["headers"])
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Comment added successfully"
    assert body["data"]["commentCount"] == 1
    assert body["data"]["comment"]["content"] == "Nice one"
    assert body["data"]["comment"]["user"]["username"] == "bob"

    client.post(url, json={"content": "Thanks"}, headers=alice["headers"])
    detail = client.get(f"/api/posts/{post['id']}").json()["data"]["post"]
    assert detail["commentCount"] == 2
    assert [c["content"] for c in detail["comments"]] == ["Nice one", "Thanks"]


def test_comment_validation(client, alice, create_post):
    post = create_post(alice)
    url = f"/api/posts/{post['id']}/comment"

    too_long = client.post(url, json={"content": "x" * 501}, headers=alice["headers"])
    assert too_long.status_code == 400
    assert too_long.json()["message"] == "Comment cannot exceed 500 characters"

    empty = client.post(url, json={"content": ""}, headers=alice["headers"])
    assert empty.status_code == 400
    assert empty.json()["message"] == "Comment content is required"
