"""Tests for comment endpoints."""

from fastapi import status


def _comment(client, post_id, headers, content="Nice post", parent_id=None):
    body = {"content": content}
    if parent_id is not None:
        body["parentId"] = parent_id
    r = client.post(f"/api/v1/posts/{post_id}/comments", json=body, headers=headers)
    assert r.status_code == status.HTTP_201_CREATED
    return r.json()


def test_create_and_list_comments(client, test_post, other_user, auth_token, notifier) -> None:
    top = _comment(client, test_post.id, auth_token, "first")
    reply = _comment(client, test_post.id, auth_token, "second", parent_id=top["id"])

    assert reply["parentId"] == top["id"]
    r = client.get(f"/api/v1/posts/{test_post.id}/comments", params={"repliesLimit": 1})
    assert r.status_code == status.HTTP_200_OK
    [entry] = r.json()["data"]
    assert entry["id"] == top["id"]
    assert [c["id"] for c in entry["replies"]] == [reply["id"]]
    assert entry["repliesCount"] == 1
    assert entry["hasMoreReplies"] is False


def test_replies_limit_out_of_range(client, test_post) -> None:
    r = client.get(f"/api/v1/posts/{test_post.id}/comments", params={"repliesLimit": 500})
    assert r.status_code == status.HTTP_400_BAD_REQUEST


def test_comment_on_missing_post(client, auth_token) -> None:
    r = client.post("/api/v1/posts/999999/comments", json={"content": "hi"}, headers=auth_token)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_replies_and_thread(client, test_post, auth_token) -> None:
    root = _comment(client, test_post.id, auth_token, "root")
    child = _comment(client, test_post.id, auth_token, "child", parent_id=root["id"])
    _comment(client, test_post.id, auth_token, "grandchild", parent_id=child["id"])

    replies = client.get(f"/api/v1/comments/{root['id']}/replies").json()
    assert [c["id"] for c in replies["data"]] == [child["id"]]

    thread = client.get(f"/api/v1/comments/{root['id']}/thread", params={"maxDepth": 1}).json()
    assert thread["depth"] == 0
    assert thread["replies"][0]["id"] == child["id"]
    assert thread["replies"][0]["replies"] == []
    assert thread["replies"][0]["repliesCount"] == 1

    too_deep = client.get(f"/api/v1/comments/{root['id']}/thread", params={"maxDepth": 9})
    assert too_deep.status_code == status.HTTP_400_BAD_REQUEST


def test_edit_and_delete_comment(client, test_post, auth_token, other_auth_token) -> None:
    comment = _comment(client, test_post.id, auth_token)

    forbidden = client.put(
        f"/api/v1/comments/{comment['id']}", json={"content": "x"}, headers=other_auth_token
    )
    assert forbidden.status_code == status.HTTP_403_FORBIDDEN

    edited = client.put(
        f"/api/v1/comments/{comment['id']}", json={"content": "edited"}, headers=auth_token
    )
    assert edited.json()["content"] == "edited"

    r = client.delete(f"/api/v1/comments/{comment['id']}", headers=auth_token)
    assert r.json() == {"message": "Comment deleted successfully"}
    assert client.get(f"/api/v1/posts/{test_post.id}/comments").json()["total"] == 0


def test_comment_likes(client, test_post, auth_token, other_auth_token) -> None:
    comment = _comment(client, test_post.id, auth_token)
    url = f"/api/v1/comments/{comment['id']}/like"

    liked = client.post(url, headers=other_auth_token)
    assert liked.status_code == status.HTTP_201_CREATED
    assert liked.json() == {"message": "Comment liked"}
    assert client.post(url, headers=other_auth_token).status_code == status.HTTP_409_CONFLICT

    assert client.delete(url, headers=other_auth_token).json() == {"message": "Comment unliked"}

    toggled = client.post(
        f"/api/v1/comments/{comment['id']}/toggle-like", headers=other_auth_token
    )
    assert toggled.json() == {"liked": True}
