from __future__ import annotations

import io


def test_feed_starts_empty_without_seeding(client):
    data = client.get("/api/v1/community/posts").get_json()["data"]
    assert data["items"] == []


def test_seeded_feed(container, client):
    container.community_service.seed_if_empty()

    items = client.get("/api/v1/community/posts").get_json()["data"]["items"]

    assert [item["id"] for item in items] == ["1", "2"]
    assert items[0]["time_since"] == "2 ساعت پیش"
    assert items[0]["comments"][0]["author_name"] == "دوستدار طبیعت"


def test_create_like_and_comment(client):
    created = client.post("/api/v1/community/posts", json={"text": "My first harvest of basil"})
    assert created.status_code == 201
    post = created.get_json()["data"]
    assert post["likes"] == 0
    assert post["time_since"] == "همین الان"
    assert post["author_name"]

    liked = client.post(f"/api/v1/community/posts/{post['id']}/like").get_json()["data"]
    assert liked["likes"] == 1

    commented = client.post(f"/api/v1/community/posts/{post['id']}/comments", json={"text": "Looks great!"})
    assert commented.status_code == 201
    comments = commented.get_json()["data"]["comments"]
    assert [comment["text"] for comment in comments] == ["Looks great!"]


def test_create_post_with_image_url(client):
    response = client.post(
        "/api/v1/community/posts", json={"text": "Greenhouse", "image": "https://example.com/greenhouse.jpg"}
    )
    assert response.get_json()["data"]["image_ref"] == "https://example.com/greenhouse.jpg"


def test_create_post_with_uploaded_image(client):
    response = client.post(
        "/api/v1/community/posts",
        data={"text": "Cucumbers", "image": (io.BytesIO(b"\x89PNG\r\n"), "c.png", "image/png")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 201
    assert response.get_json()["data"]["image_ref"].startswith("data:image/png;base64,")


def test_create_post_with_bad_data_uri(client):
    response = client.post("/api/v1/community/posts", json={"text": "x", "image": "data:image/png;base64,!!"})
    assert response.status_code == 400


def test_blank_post_and_comment_rejected(client):
    assert client.post("/api/v1/community/posts", json={"text": "  "}).status_code == 400

    post = client.post("/api/v1/community/posts", json={"text": "hello"}).get_json()["data"]
    assert client.post(f"/api/v1/community/posts/{post['id']}/comments", json={"text": ""}).status_code == 400


def test_unknown_post(client):
    assert client.post("/api/v1/community/posts/missing/like").status_code == 404
    assert client.post("/api/v1/community/posts/missing/comments", json={"text": "hi"}).status_code == 404


def test_feed_pagination(client):
    for index in range(3):
        client.post("/api/v1/community/posts", json={"text": f"post {index}"})

    data = client.get("/api/v1/community/posts?limit=2").get_json()["data"]

    assert len(data["items"]) == 2
    assert data["pagination"]["has_next"] is True
    assert client.get("/api/v1/community/posts?limit=abc").status_code == 400
