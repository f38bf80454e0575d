"""
End-to-end API tests through FastAPI's TestClient.
"""

from unittest.mock import patch

import pytest

from auth.routes import LOGIN_FAILED


# ── helpers ────────────────────────────────────────────────────────────────────


def _signup(client, name="Alice", email="alice@x.com", password="secret123"):
    return client.post("/auth/signup", json={"name": name, "email": email, "password": password})


def _login(client, email="alice@x.com", password="secret123"):
    return client.post("/auth/login", json={"email": email, "password": password})


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _token_for(client, name="Alice", email="alice@x.com", password="secret123") -> str:
    res = _signup(client, name, email, password)
    assert res.status_code == 201, res.text
    return res.json()["token"]


def _error_fields(res) -> set:
    return {e["field"] for e in res.json().get("errors", [])}


# ── Auth ───────────────────────────────────────────────────────────────────────


class TestAuthEndpoints:
    def test_signup_returns_user_and_token(self, client):
        res = _signup(client)
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["user"]["name"] == "Alice"
        assert body["user"]["email"] == "alice@x.com"
        assert "password" not in body["user"] and "passwordHash" not in body["user"]
        assert body["token"]

    def test_signup_duplicate_email_any_case(self, client):
        assert _signup(client).status_code == 201
        res = _signup(client, email="ALICE@X.com")
        assert res.status_code == 400
        assert res.json()["success"] is False
        assert "email" in _error_fields(res)

    def test_signup_validation_lists_every_field(self, client):
        res = client.post("/auth/signup", json={"name": "A", "email": "nope", "password": "123"})
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert _error_fields(res) == {"name", "email", "password"}

    @pytest.mark.parametrize("email", ["a@b..c", "no-at-sign.com", "two@@x.com", "alice@x"])
    def test_signup_rejects_malformed_email(self, client, email):
        res = _signup(client, email=email)
        assert res.status_code == 400
        assert _error_fields(res) == {"email"}

    def test_login_and_profile(self, client):
        _signup(client)
        res = _login(client, email="  Alice@X.com ")
        assert res.status_code == 200
        token = res.json()["token"]

        profile = client.get("/auth/profile", headers=_auth(token))
        assert profile.status_code == 200
        assert profile.json()["user"]["email"] == "alice@x.com"

    def test_bad_login_is_uniform(self, client):
        _signup(client)
        wrong_password = _login(client, password="wrong-pass")
        unknown_email = _login(client, email="nobody@x.com")

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {"success": False, "message": LOGIN_FAILED}

    def test_unknown_email_still_checks_a_password_hash(self, client, settings):
        _signup(client)
        with patch("auth.routes.verify_password", return_value=False) as checker:
            res = _login(client, email="nobody@x.com")

        assert res.status_code == 401
        checker.assert_called_once()
        password, stored = checker.call_args.args
        assert password == "secret123"
        assert stored.startswith(f"$2b${settings.bcrypt_rounds:02d}$")

    def test_profile_requires_token(self, client):
        res = client.get("/auth/profile")
        assert res.status_code == 401
        assert res.headers["WWW-Authenticate"] == "Bearer"
        assert res.json()["success"] is False

    def test_invalid_tokens_get_the_same_answer(self, client):
        token = _token_for(client)
        tampered = token[:-1] + ("0" if token[-1] != "0" else "1")
        answers = [
            client.get("/auth/profile", headers=_auth("garbage")).json(),
            client.get("/auth/profile", headers=_auth(tampered)).json(),
            client.get("/auth/profile", headers={"Authorization": token}).json(),
        ]
        assert all(a == answers[0] for a in answers)


# ── Tasks ──────────────────────────────────────────────────────────────────────


class TestTaskEndpoints:
    def test_full_lifecycle(self, client):
        assert _signup(client).status_code == 201
        login = _login(client)
        assert login.status_code == 200
        headers = _auth(login.json()["token"])

        created = client.post("/tasks", json={"title": "Buy milk"}, headers=headers)
        assert created.status_code == 201
        task = created.json()["task"]
        assert task["status"] == "pending"
        assert task["priority"] == "medium"
        task_id = task["id"]

        listed = client.get("/tasks", headers=headers).json()
        assert listed["count"] == 1
        assert [t["id"] for t in listed["tasks"]] == [task_id]

        updated = client.put(f"/tasks/{task_id}", json={"status": "completed"}, headers=headers)
        assert updated.status_code == 200
        assert updated.json()["task"]["status"] == "completed"
        assert updated.json()["task"]["title"] == "Buy milk"

        deleted = client.delete(f"/tasks/{task_id}", headers=headers)
        assert deleted.status_code == 200
        assert deleted.json()["task"]["id"] == task_id

        assert client.get(f"/tasks/{task_id}", headers=headers).status_code == 404
        assert client.delete(f"/tasks/{task_id}", headers=headers).status_code == 404

    def test_tasks_require_auth(self, client):
        assert client.get("/tasks").status_code == 401
        assert client.post("/tasks", json={"title": "Nope"}).status_code == 401

    def test_other_users_tasks_are_invisible(self, client):
        alice = _auth(_token_for(client))
        bob = _auth(_token_for(client, name="Bob", email="bob@x.com"))
        task_id = client.post("/tasks", json={"title": "Alice only"}, headers=alice).json()["task"]["id"]

        missing = client.get("/tasks/00000000-0000-0000-0000-000000000000", headers=bob)
        foreign = client.get(f"/tasks/{task_id}", headers=bob)
        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json()

        assert client.put(f"/tasks/{task_id}", json={"title": "Mine now"}, headers=bob).status_code == 404
        assert client.delete(f"/tasks/{task_id}", headers=bob).status_code == 404
        assert client.get("/tasks", headers=bob).json()["count"] == 0
        assert client.get(f"/tasks/{task_id}", headers=alice).json()["task"]["title"] == "Alice only"

    def test_create_round_trip_with_camel_case_fields(self, client):
        headers = _auth(_token_for(client))
        payload = {
            "title": "  File taxes  ",
            "description": "Before April",
            "status": "in-progress",
            "priority": "high",
            "dueDate": "2026-04-15T00:00:00Z",
        }
        task = client.post("/tasks", json=payload, headers=headers).json()["task"]
        fetched = client.get(f"/tasks/{task['id']}", headers=headers).json()["task"]

        assert fetched["title"] == "File taxes"
        assert fetched["description"] == "Before April"
        assert fetched["status"] == "in-progress"
        assert fetched["priority"] == "high"
        assert fetched["dueDate"].startswith("2026-04-15")
        assert "createdAt" in fetched and "updatedAt" in fetched

    def test_due_date_offset_is_normalised_to_utc(self, client):
        headers = _auth(_token_for(client))
        created = client.post(
            "/tasks", json={"title": "Standup", "dueDate": "2026-04-15T09:00:00+05:00"}, headers=headers
        ).json()["task"]
        fetched = client.get(f"/tasks/{created['id']}", headers=headers).json()["task"]

        assert created["dueDate"] == fetched["dueDate"]
        assert fetched["dueDate"].startswith("2026-04-15T04:00:00")
        assert created["createdAt"] == fetched["createdAt"]
        assert created["updatedAt"] == fetched["updatedAt"]

    def test_due_date_sort_across_offsets(self, client):
        headers = _auth(_token_for(client))
        client.post("/tasks", json={"title": "Later", "dueDate": "2026-04-15T06:00:00Z"}, headers=headers)
        client.post("/tasks", json={"title": "Earlier", "dueDate": "2026-04-15T09:00:00+05:00"}, headers=headers)

        listed = client.get("/tasks", params={"sort": "dueDate"}, headers=headers).json()
        assert [t["title"] for t in listed["tasks"]] == ["Earlier", "Later"]

    def test_update_refreshes_updated_at(self, client):
        headers = _auth(_token_for(client))
        created = client.post("/tasks", json={"title": "Tick me"}, headers=headers).json()["task"]

        updated = client.put(f"/tasks/{created['id']}", json={"status": "completed"}, headers=headers).json()["task"]
        assert updated["updatedAt"] != created["updatedAt"]
        assert updated["createdAt"] == created["createdAt"]

        fetched = client.get(f"/tasks/{created['id']}", headers=headers).json()["task"]
        assert fetched["updatedAt"] == updated["updatedAt"]

    def test_create_validation_reports_every_field(self, client):
        headers = _auth(_token_for(client))
        res = client.post(
            "/tasks",
            json={"title": "ab", "description": "x" * 501, "status": "done", "priority": "urgent"},
            headers=headers,
        )
        assert res.status_code == 400
        assert res.json()["message"] == "Validation failed"
        assert _error_fields(res) == {"title", "description", "status", "priority"}

    def test_update_validation_only_checks_given_fields(self, client):
        headers = _auth(_token_for(client))
        task_id = client.post("/tasks", json={"title": "Valid"}, headers=headers).json()["task"]["id"]

        bad = client.put(f"/tasks/{task_id}", json={"title": "x" * 101, "priority": None}, headers=headers)
        assert bad.status_code == 400
        assert _error_fields(bad) == {"title", "priority"}

        ok = client.put(f"/tasks/{task_id}", json={"priority": "low"}, headers=headers)
        assert ok.status_code == 200
        assert ok.json()["task"]["title"] == "Valid"

    def test_update_unknown_task_is_404(self, client):
        headers = _auth(_token_for(client))
        res = client.put("/tasks/not-a-task-id", json={"title": "Whatever"}, headers=headers)
        assert res.status_code == 404
        assert res.json() == {"success": False, "message": "Task not found"}

    def test_list_filters_and_sort(self, client):
        headers = _auth(_token_for(client))
        client.post("/tasks", json={"title": "Bravo", "priority": "high"}, headers=headers)
        client.post("/tasks", json={"title": "Alpha", "priority": "low"}, headers=headers)
        client.post("/tasks", json={"title": "Charlie", "priority": "high", "dueDate": "2026-05-01T00:00:00Z"}, headers=headers)

        high = client.get("/tasks", params={"priority": "high", "sort": "title"}, headers=headers).json()
        assert [t["title"] for t in high["tasks"]] == ["Bravo", "Charlie"]

        by_due = client.get("/tasks", params={"sort": "dueDate"}, headers=headers).json()
        assert by_due["tasks"][0]["title"] == "Charlie"

        blank = client.get("/tasks", params={"status": "", "priority": ""}, headers=headers).json()
        assert blank["count"] == 3

    def test_list_rejects_unknown_choices(self, client):
        headers = _auth(_token_for(client))
        res = client.get("/tasks", params={"sort": "random"}, headers=headers)
        assert res.status_code == 400
        assert _error_fields(res) == {"sort"}

    def test_search(self, client):
        headers = _auth(_token_for(client))
        client.post("/tasks", json={"title": "Buy milk"}, headers=headers)
        client.post("/tasks", json={"title": "Groceries", "description": "milk, eggs"}, headers=headers)
        client.post("/tasks", json={"title": "Call mom"}, headers=headers)

        res = client.get("/tasks/search", params={"q": "milk"}, headers=headers)
        assert res.status_code == 200
        assert res.json()["count"] == 2
        assert [t["title"] for t in res.json()["tasks"]] == ["Buy milk", "Groceries"]

    def test_search_requires_query(self, client):
        headers = _auth(_token_for(client))
        assert client.get("/tasks/search", headers=headers).status_code == 400
        res = client.get("/tasks/search", params={"q": "  "}, headers=headers)
        assert res.status_code == 400
        assert res.json()["message"] == "Search query is required"

    def test_stats(self, client):
        headers = _auth(_token_for(client))
        client.post("/tasks", json={"title": "One"}, headers=headers)
        client.post("/tasks", json={"title": "Two", "status": "completed"}, headers=headers)

        stats = client.get("/tasks/stats", headers=headers).json()["stats"]
        assert stats == {"total": 2, "pending": 1, "inProgress": 0, "completed": 1}


class TestHealth:
    def test_health_is_public(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        assert res.json() == {"status": "ok"}
        assert "X-Process-Time" in res.headers

    def test_openapi_documents_the_error_body(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/tasks/{task_id}"]["get"]["responses"]
        assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
