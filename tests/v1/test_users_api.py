"""Tests for user profile endpoints."""

from fastapi import status


def test_get_me(client, test_user, auth_token) -> None:
    r = client.get("/api/v1/users/me", headers=auth_token)

    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["id"] == test_user.id
    assert data["email"] == test_user.email
    assert data["isActive"] is True
    assert data["followersCount"] == 0


def test_update_me_changes_only_sent_fields(client, auth_token) -> None:
    r = client.put("/api/v1/users/me", json={"bio": "Now about coffee"}, headers=auth_token)

    assert r.status_code == status.HTTP_200_OK
    assert r.json()["bio"] == "Now about coffee"
    assert r.json()["firstName"] == "Alice"
    assert client.get("/api/v1/users/me", headers=auth_token).json()["bio"] == "Now about coffee"


def test_update_me_validates_lengths(client, auth_token) -> None:
    r = client.put("/api/v1/users/me", json={"bio": "x" * 501}, headers=auth_token)
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_public_profile(client, test_user, other_user, make_post, auth_headers) -> None:
    make_post(test_user, "hello")
    client.post(f"/api/v1/social/follow/{test_user.id}", headers=auth_headers(other_user))

    r = client.get(f"/api/v1/users/{test_user.id}")

    data = r.json()
    assert data["username"] == "alice"
    assert (data["followersCount"], data["postsCount"]) == (1, 1)
    assert "email" not in data


def test_profile_hidden_from_blocked_viewer(
    client, test_user, auth_token, other_auth_token
) -> None:
    other = client.get("/api/v1/users/me", headers=other_auth_token).json()
    client.post(f"/api/v1/social/block/{other['id']}", headers=auth_token)

    r = client.get(f"/api/v1/users/{test_user.id}", headers=other_auth_token)
    assert r.status_code == status.HTTP_404_NOT_FOUND


def test_delete_me(client, test_user, test_post, auth_token) -> None:
    r = client.delete("/api/v1/users/me", headers=auth_token)
    assert r.json() == {"message": "Account deleted successfully"}

    assert client.get(f"/api/v1/users/{test_user.id}").status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"/api/v1/posts/{test_post.id}").status_code == status.HTTP_404_NOT_FOUND
    # The token still decodes but its account is closed.
    assert client.get("/api/v1/users/me", headers=auth_token).status_code == 401
