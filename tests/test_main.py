import pytest


def test_root_lists_endpoints(client):
    res = client.get("/")
    assert res.status_code == 200
    assert "/download" in res.json()["download_endpoints"]


@pytest.mark.parametrize("path", [
    "/books/the-path-to-purpose.pdf",
    "/books/The%20Path%20To%20Purpose%20final.pdf",
])
def test_paid_files_blocked_from_static_path(client, path):
    res = client.get(path)
    assert res.status_code == 403


def test_research_paper_not_blocked_by_guard(client):
    res = client.get("/books/ai-job-security-human-condition.pdf")
    assert res.status_code != 403


def test_validation_errors_are_400(client):
    res = client.post("/verify-payment", json={})
    assert res.status_code == 400
    assert res.json()["success"] is False
    assert "reference" in res.json()["message"]


def test_test_email_hidden_in_production(client, monkeypatch):
    from app.config import settings

    monkeypatch.setattr(settings, "env", "production")
    assert client.get("/test-email", params={"to": "me@example.com"}).status_code == 404


def test_test_email_sends_in_development(client):
    from unittest.mock import patch

    with patch("app.routes.test_email.send_email", return_value=True) as mocked:
        res = client.get("/test-email", params={"to": "me@example.com"})

    assert res.status_code == 200
    assert mocked.call_args.args[0] == "me@example.com"
