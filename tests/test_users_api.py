"""
Tests for /api/users.
"""


class TestListUsers:
    def test_admin_only(self, client, viewer_headers, editor_headers):
        assert client.get("/api/users").status_code == 401
        assert client.get("/api/users", headers=viewer_headers).status_code == 403
        assert client.get("/api/users", headers=editor_headers).status_code == 403

    def test_filters(self, client, admin_headers, editor, viewer, make_user):
        make_user(name="Dormant", is_active=False)

        def listed(**params):
            body = client.get("/api/users", params=params, headers=admin_headers).json()
            return sorted(u["name"] for u in body["items"])

        assert listed(role="editor") == ["Editor"]
        assert listed(active="false") == ["Dormant"]
        assert listed(search="viewer@") == ["Viewer"]
        assert len(listed()) == 4

    def test_password_hash_never_listed(self, client, admin_headers):
        body = client.get("/api/users", headers=admin_headers).json()

        assert all("passwordHash" not in u for u in body["items"])


class TestCreateUser:
    def test_admin_can_choose_role(self, client, admin_headers):
        response = client.post(
            "/api/users",
            json={"name": "New Editor", "email": "new@folio.dev", "password": "secret1", "role": "editor"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["role"] == "editor"

    def test_duplicate_email(self, client, admin, admin_headers):
        response = client.post(
            "/api/users",
            json={"name": "Dup", "email": admin.email, "password": "secret1"},
            headers=admin_headers,
        )

        assert response.status_code == 400


class TestPublicProfile:
    def test_profile_with_recent_work(self, client, editor, make_post, make_project):
        for i in range(7):
            make_post(f"post-{i}", owner=editor)
        make_post("draft", owner=editor, is_published=False)
        make_project("site", owner=editor)

        response = client.get(f"/api/users/{editor.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Editor"
        assert "passwordHash" not in body
        assert [p["slug"] for p in body["posts"]] == ["post-6", "post-5", "post-4", "post-3", "post-2"]
        assert [p["slug"] for p in body["projects"]] == ["site"]

    def test_unknown_user(self, client):
        assert client.get("/api/users/999").status_code == 404


class TestUpdateUser:
    def test_self_update_ignores_admin_fields(self, client, viewer, viewer_headers):
        response = client.put(
            f"/api/users/{viewer.id}",
            json={"bio": "Hi", "role": "admin", "isActive": False},
            headers=viewer_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["bio"] == "Hi"
        assert body["role"] == "viewer"
        assert body["isActive"] is True

    def test_admin_can_change_role(self, client, viewer, admin_headers):
        response = client.put(
            f"/api/users/{viewer.id}",
            json={"role": "editor", "isActive": False},
            headers=admin_headers,
        )

        assert response.json()["role"] == "editor"
        assert response.json()["isActive"] is False

    def test_cannot_update_someone_else(self, client, editor, viewer_headers):
        response = client.put(f"/api/users/{editor.id}", json={"bio": "x"}, headers=viewer_headers)

        assert response.status_code == 403


class TestDeleteUser:
    def test_admin_deletes_user_and_keeps_content(self, client, editor, admin_headers, make_post):
        make_post("kept", owner=editor)

        assert client.delete(f"/api/users/{editor.id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/users/{editor.id}").status_code == 404

        post = client.get("/api/posts/kept").json()
        assert post["userId"] is None

    def test_admin_cannot_delete_self(self, client, admin, admin_headers):
        response = client.delete(f"/api/users/{admin.id}", headers=admin_headers)

        assert response.status_code == 400

    def test_non_admin_cannot_delete(self, client, viewer, editor_headers):
        assert client.delete(f"/api/users/{viewer.id}", headers=editor_headers).status_code == 403


class TestUserStats:
    def test_stats(self, client, editor, editor_headers, make_post, make_project, make_download):
        make_post("a", owner=editor, view_count=3)
        make_post("b", owner=editor, view_count=4)
        make_project("p", owner=editor)
        make_download("d", owner=editor)

        response = client.get(f"/api/users/{editor.id}/stats", headers=editor_headers)

        assert response.json() == {
            "postsCount": 2,
            "projectsCount": 1,
            "downloadsCount": 1,
            "totalViews": 7,
        }

    def test_stats_are_private(self, client, editor, viewer_headers, admin_headers):
        assert client.get(f"/api/users/{editor.id}/stats", headers=viewer_headers).status_code == 403
        assert client.get(f"/api/users/{editor.id}/stats", headers=admin_headers).status_code == 200
