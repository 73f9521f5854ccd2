"""Tests for ghoodoo/webhook_server.py."""

import json
from unittest.mock import AsyncMock, patch

import pytest

# Skip if fastapi not available
pytest.importorskip("fastapi")

from fastapi.testclient import TestClient

from ghoodoo import webhook_server
from ghoodoo.config.settings import GhoodooSettings
from ghoodoo.exceptions import ConfigurationError
from ghoodoo.providers.github_rest import GitHubCommentNotifier
from ghoodoo.utils.signature import compute_signature
from ghoodoo.webhook_server import app, create_notifier
from tests.fakes import InMemoryTaskClient, RecordingNotifier, make_commit, pull_request_payload

SECRET = "webhook-secret"


def make_settings(**overrides) -> GhoodooSettings:
    values = {
        "github_webhook_secret": SECRET,
        "github_token": None,
        "odoo_url": "https://odoo.example.com",
        "odoo_database": "testdb",
        "odoo_api_key": "key",
        "odoo_stage_done": "5",
        "odoo_stage_in_progress": "2",
        "odoo_stage_canceled": "6",
    }
    values.update(overrides)
    return GhoodooSettings(**values)


def post_event(client: TestClient, event_type: str | None, payload, secret: str = SECRET, signature: str | None = None):
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    headers = {
        "Content-Type": "application/json",
        "X-Hub-Signature-256": signature if signature is not None else compute_signature(body, secret),
    }
    if event_type is not None:
        headers["X-GitHub-Event"] = event_type
    return client.post("/webhook", content=body, headers=headers)


@pytest.fixture
def fake_tasks() -> InMemoryTaskClient:
    return InMemoryTaskClient(task_ids=[123, 456])


@pytest.fixture
def fake_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(fake_tasks, fake_notifier):
    """TestClient with settings loaded and both remote services faked."""
    with (
        patch.object(webhook_server, "settings", make_settings()),
        patch.object(webhook_server, "create_task_client", return_value=fake_tasks),
        patch.object(webhook_server, "create_notifier", return_value=fake_notifier),
    ):
        yield TestClient(app, raise_server_exceptions=False)


class TestHealthCheck:
    """Tests for health check endpoint."""

    def test_health_check_returns_healthy(self):
        """Should return healthy status."""
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "ghoodoo-webhook"}


class TestWebhookRequestChecks:
    """Tests for header and signature checks."""

    def test_missing_event_header(self, client):
        """Should return 400 without X-GitHub-Event."""
        response = post_event(client, None, {"zen": "hi"})

        assert response.status_code == 400

    def test_invalid_signature(self, client, fake_tasks):
        """Should return 401 and touch nothing when the signature is wrong."""
        response = post_event(client, "push", {"commits": []}, secret="wrong-secret")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid signature"
        assert fake_tasks.calls == []

    def test_missing_signature(self, client):
        """Should return 401 when the signature header is empty."""
        response = post_event(client, "push", {"commits": []}, signature="")

        assert response.status_code == 401

    def test_configuration_error(self):
        """Should return 500 when settings cannot be loaded."""
        with (
            patch.object(webhook_server, "settings", None),
            patch.object(
                GhoodooSettings, "from_env", side_effect=ConfigurationError("Invalid environment configuration")
            ),
        ):
            client = TestClient(app, raise_server_exceptions=False)
            response = post_event(client, "push", {"commits": []})

        assert response.status_code == 500
        assert response.json()["detail"] == "Server configuration error"


class TestWebhookEvents:
    """Tests for event dispatch."""

    def test_ping(self, client):
        response = post_event(client, "ping", {"zen": "Keep it simple."})

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "event": "ping"}

    def test_unhandled_event(self, client, fake_tasks):
        response = post_event(client, "issues", {"action": "opened"})

        assert response.status_code == 200
        assert response.json()["message"] == "Event type not handled"
        assert fake_tasks.calls == []

    def test_push_event(self, client, fake_tasks):
        """Should process commits and report the outcome."""
        payload = {
            "ref": "refs/heads/main",
            "commits": [make_commit("Fix bug\n\nCloses ODP-123"), make_commit("Refs ODP-999", sha="def4567890")],
        }

        response = post_event(client, "push", payload)

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "event": "push",
            "processed": 1,
            "errors": ["ODP-999: Task not found"],
        }
        assert fake_tasks.task_stage == {123: 5}

    def test_pull_request_event(self, client, fake_tasks, fake_notifier):
        """Should update tasks and post the summary comment."""
        response = post_event(client, "pull_request", pull_request_payload(action="opened", title="Refs ODP-456"))

        assert response.status_code == 200
        assert response.json()["processed"] == 1
        assert fake_tasks.task_stage == {456: 2}
        assert fake_notifier.comments == [("owner", "repo", 42, "Updated Odoo tasks: ODP-456")]

    def test_malformed_payload(self, client, fake_tasks):
        """Should return 422 for payloads missing required fields."""
        response = post_event(client, "pull_request", {"action": "opened"})

        assert response.status_code == 422
        assert response.json()["status"] == "error"
        assert fake_tasks.calls == []

    def test_invalid_json(self, client):
        response = post_event(client, "push", b"{not json")

        assert response.status_code == 422

    def test_unexpected_error(self, client, fake_tasks):
        """Should return 500 when processing fails outside per-task handling."""
        with patch.object(webhook_server, "process_event", AsyncMock(side_effect=RuntimeError("boom"))):
            response = post_event(client, "push", {"commits": []})

        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": "boom"}


class TestCreateNotifier:
    def test_no_token(self):
        assert create_notifier(make_settings()) is None

    def test_with_token(self):
        notifier = create_notifier(make_settings(github_token="ghp_test"))

        assert isinstance(notifier, GitHubCommentNotifier)
        assert notifier.token == "ghp_test"
