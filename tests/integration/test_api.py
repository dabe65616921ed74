from __future__ import annotations

import csv
import io
from datetime import date, timedelta

from fastapi.testclient import TestClient

from backend.app.core.security import SESSION_COOKIE

TEST_USERNAME = "alice"
TEST_PASSWORD = "Secret#123"


def _put_entry(client: TestClient, **overrides) -> dict:
    payload = {
        "entry_date": "2024-01-01",
        "title": "New year",
        "content": "<p>Fresh start</p>",
        "mood": "Positive",
        "tags": ["Work", "Yoga"],
    }
    payload.update(overrides)
    response = client.put("/api/v1/journal", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def test_health_endpoint(app_client: TestClient) -> None:
    response = app_client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0-test"}


def test_readyz_reports_database(app_client: TestClient) -> None:
    response = app_client.get("/readyz")
    assert response.status_code == 200
    body = response.json()
    assert body["ready"] is True
    assert body["db"]["ok"] is True


def test_metrics_endpoint(app_client: TestClient) -> None:
    app_client.get("/healthz")
    response = app_client.get("/metrics")
    assert response.status_code == 200
    assert "daybook_requests_total" in response.text


def test_auth_required_for_protected_routes(app_client: TestClient) -> None:
    for method, path in (
        ("get", "/api/v1/me"),
        ("get", "/api/v1/journal"),
        ("get", "/api/v1/analytics"),
        ("get", "/api/v1/export"),
        ("delete", "/api/v1/journal/1"),
    ):
        response = getattr(app_client, method)(path)
        assert response.status_code == 401, path

    response = app_client.put(
        "/api/v1/journal",
        json={"entry_date": "2024-01-01", "title": "t", "content": "c"},
    )
    assert response.status_code == 401

    response = app_client.get("/api/v1/me", headers={"Authorization": "Bearer unknown"})
    assert response.status_code == 401


def test_register_validation_and_duplicates(app_client: TestClient) -> None:
    invalid = app_client.post(
        "/api/v1/auth/register",
        json={
            "username": "bob",
            "email": "bob@example.com",
            "password": "Secret#123",
            "confirm_password": "Secret#123",
        },
    )
    assert invalid.status_code == 422
    assert invalid.json()["detail"] == "Email must end with @gmail.com."

    mismatch = app_client.post(
        "/api/v1/auth/register",
        json={
            "username": "bob",
            "email": "bob@gmail.com",
            "password": "Secret#123",
            "confirm_password": "Secret#999",
        },
    )
    assert mismatch.status_code == 422
    assert mismatch.json()["detail"] == "Passwords do not match."

    payload = {
        "username": "bob",
        "email": "bob@gmail.com",
        "password": "Secret#123",
        "confirm_password": "Secret#123",
    }
    created = app_client.post("/api/v1/auth/register", json=payload)
    assert created.status_code == 201
    assert created.json()["username"] == "bob"

    duplicate = app_client.post(
        "/api/v1/auth/register",
        json={**payload, "username": "BOB", "email": "other@gmail.com"},
    )
    assert duplicate.status_code == 409


def test_login_failures_and_bearer_session(test_client: TestClient) -> None:
    wrong = test_client.post(
        "/api/v1/auth/login",
        json={"username": TEST_USERNAME, "password": "Wrong#123"},
    )
    assert wrong.status_code == 401

    login = test_client.post(
        "/api/v1/auth/login",
        json={"username": TEST_USERNAME.upper(), "password": TEST_PASSWORD},
    )
    assert login.status_code == 200
    token = login.json()["token"]

    test_client.cookies.clear()
    profile = test_client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    assert profile.json()["username"] == TEST_USERNAME


def test_login_is_rate_limited(app_client: TestClient) -> None:
    statuses = [
        app_client.post(
            "/api/v1/auth/login", json={"username": "ghost", "password": "Nope#1234"}
        ).status_code
        for _ in range(11)
    ]
    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429


def test_profile_and_theme(test_client: TestClient) -> None:
    profile = test_client.get("/api/v1/me")
    assert profile.status_code == 200
    body = profile.json()
    assert body["username"] == TEST_USERNAME
    assert body["theme"] == "light"
    assert "password_hash" not in body

    updated = test_client.put("/api/v1/me/theme", json={"theme": "theme-dark"})
    assert updated.status_code == 200
    assert updated.json() == {"theme": "dark", "css_class": "theme-dark"}

    assert test_client.get("/api/v1/me/theme").json()["theme"] == "dark"
    assert test_client.get("/api/v1/me").json()["theme"] == "dark"

    fallback = test_client.put("/api/v1/me/theme", json={"theme": "neon"})
    assert fallback.json()["theme"] == "light"


def test_journal_upsert_read_and_delete(test_client: TestClient) -> None:
    created = _put_entry(test_client, tags="Work, work, Yoga", secondary_moods=["Calm"])
    assert created["tags"] == ["Work", "Yoga"]
    assert created["secondary_moods"] == ["Calm"]
    assert created["snippet"] == "Fresh start"

    same_day = _put_entry(
        test_client,
        entry_date="2024-01-01T18:45:00",
        title="New year, evening",
        mood="Neutral",
        tags=[],
    )
    assert same_day["id"] == created["id"]
    assert same_day["title"] == "New year, evening"
    assert same_day["tags"] == []

    by_day = test_client.get("/api/v1/journal/day/2024-01-01")
    assert by_day.status_code == 200
    assert by_day.json()["mood"] == "Neutral"

    by_id = test_client.get(f"/api/v1/journal/{created['id']}")
    assert by_id.status_code == 200
    assert by_id.json()["entry_date"] == "2024-01-01"

    deleted = test_client.delete(f"/api/v1/journal/{created['id']}")
    assert deleted.status_code == 204
    assert test_client.get(f"/api/v1/journal/{created['id']}").status_code == 404
    assert test_client.get("/api/v1/journal/day/2024-01-01").status_code == 404


def test_journal_error_statuses(test_client: TestClient) -> None:
    first = _put_entry(test_client, entry_date="2024-01-01")
    second = _put_entry(test_client, entry_date="2024-01-02", title="Second")

    clash = test_client.put(
        "/api/v1/journal",
        json={
            "id": second["id"],
            "entry_date": "2024-01-01",
            "title": "Second",
            "content": "moved",
        },
    )
    assert clash.status_code == 409

    missing = test_client.put(
        "/api/v1/journal",
        json={"id": 9999, "entry_date": "2024-01-05", "title": "Ghost", "content": "boo"},
    )
    assert missing.status_code == 404

    empty = test_client.put(
        "/api/v1/journal",
        json={"entry_date": "2024-01-06", "title": "Blank", "content": "<p><br></p>"},
    )
    assert empty.status_code == 422

    no_title = test_client.put(
        "/api/v1/journal",
        json={"entry_date": "2024-01-06", "title": "   ", "content": "text"},
    )
    assert no_title.status_code == 422

    assert test_client.get(f"/api/v1/journal/{first['id']}").json()["title"] == "New year"


def test_journal_list_range(test_client: TestClient) -> None:
    for day in ("2024-01-01", "2024-01-02", "2024-01-04"):
        _put_entry(test_client, entry_date=day, title=f"Entry {day}")

    listed = test_client.get("/api/v1/journal", params={"from": "2024-01-02", "to": "2024-01-05"})
    assert listed.status_code == 200
    assert [item["entry_date"] for item in listed.json()["items"]] == [
        "2024-01-04",
        "2024-01-02",
    ]

    everything = test_client.get("/api/v1/journal", params={"limit": 2})
    assert len(everything.json()["items"]) == 2


def test_analytics_summary(test_client: TestClient) -> None:
    _put_entry(test_client, entry_date="2024-01-01", mood="Positive", tags=["Work", "Yoga"])
    _put_entry(
        test_client,
        entry_date="2024-01-02",
        mood="Positive",
        tags=["Work"],
        content="<p>Hello, <b>world</b>!</p>",
    )
    _put_entry(test_client, entry_date="2024-01-04", mood="Negative", tags=[])

    response = test_client.get("/api/v1/analytics", params={"from": "2024-01-01", "to": "2024-01-05"})
    assert response.status_code == 200
    body = response.json()

    assert body["from"] == "2024-01-01"
    assert body["to"] == "2024-01-05"
    assert body["total_entries"] == 3
    assert body["mood_counts"] == {"Positive": 2, "Neutral": 0, "Negative": 1}
    assert body["mood_percentages"] == {"Positive": 67, "Neutral": 0, "Negative": 33}
    assert body["most_frequent_mood"] == "Positive"
    assert body["missed_days"] == ["2024-01-03", "2024-01-05"]
    assert body["current_streak"] == 0
    assert body["longest_streak"] == 2
    assert body["top_tags"] == [{"name": "Work", "count": 2}, {"name": "Yoga", "count": 1}]
    assert body["tag_breakdown"] == [
        {"name": "Work", "count": 2, "percent": 67},
        {"name": "Health", "count": 1, "percent": 33},
    ]
    assert body["avg_words_by_day"] == {"2024-01-01": 2, "2024-01-02": 2, "2024-01-04": 2}


def test_analytics_default_range_and_inverted_range(test_client: TestClient) -> None:
    today = date.today()
    _put_entry(test_client, entry_date=today.isoformat())

    response = test_client.get("/api/v1/analytics")
    assert response.status_code == 200
    body = response.json()
    assert body["to"] == today.isoformat()
    assert body["from"] == (today - timedelta(days=29)).isoformat()
    assert body["current_streak"] == 1
    assert len(body["missed_days"]) == 29

    inverted = test_client.get(
        "/api/v1/analytics", params={"from": "2024-02-01", "to": "2024-01-01"}
    )
    assert inverted.status_code == 400


def test_export_csv(test_client: TestClient) -> None:
    _put_entry(test_client, entry_date="2024-01-02", content="<p>Tea &amp; cake</p>")

    response = test_client.get("/api/v1/export", params={"from": "2024-01-01", "to": "2024-01-31"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert (
        response.headers["content-disposition"]
        == "attachment; filename=journal-export_20240101_20240131.csv"
    )
    rows = list(csv.reader(io.StringIO(response.text)))
    assert rows[0][0] == "entry_date"
    assert rows[1][0] == "2024-01-02"
    assert rows[1][5] == "Tea & cake"


def test_logout_revokes_session(test_client: TestClient) -> None:
    token = test_client.cookies.get(SESSION_COOKIE)
    assert token
    assert test_client.get("/api/v1/me").status_code == 200

    response = test_client.post("/api/v1/auth/logout")
    assert response.status_code == 204

    test_client.cookies.clear()
    revoked = test_client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
    assert revoked.status_code == 401


def test_delete_account_removes_data(test_client: TestClient) -> None:
    _put_entry(test_client)

    response = test_client.delete("/api/v1/me")
    assert response.status_code == 204

    test_client.cookies.clear()
    login = test_client.post(
        "/api/v1/auth/login",
        json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
    )
    assert login.status_code == 401


def test_analytics_and_export_reject_oversized_ranges(test_client: TestClient) -> None:
    for path in ("/api/v1/analytics", "/api/v1/export"):
        response = test_client.get(path, params={"from": "0001-01-01", "to": "9999-12-30"})
        assert response.status_code == 400, path
        assert response.json()["detail"] == "range must not exceed 366 days"

    widest = test_client.get("/api/v1/analytics", params={"from": "2024-01-01", "to": "2024-12-31"})
    assert widest.status_code == 200
    assert len(widest.json()["missed_days"]) == 366

    too_wide = test_client.get("/api/v1/analytics", params={"from": "2024-01-01", "to": "2025-01-01"})
    assert too_wide.status_code == 400


def test_analytics_at_calendar_edges(test_client: TestClient) -> None:
    _put_entry(test_client, entry_date="9999-12-31")

    latest = test_client.get("/api/v1/analytics", params={"from": "9999-12-30", "to": "9999-12-31"})
    assert latest.status_code == 200
    assert latest.json()["current_streak"] == 1
    assert latest.json()["missed_days"] == ["9999-12-30"]

    earliest = test_client.get("/api/v1/analytics", params={"to": "0001-01-02"})
    assert earliest.status_code == 200
    assert earliest.json()["from"] == "0001-01-01"
