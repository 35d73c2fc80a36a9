"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation so the top-level modules are importable without install.
2. Shared fixtures: settings, a Flask test client and a fake GitLab trigger API.
"""

import json
import os
import sys

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_ROOT_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT_PATH not in sys.path:
    sys.path.insert(0, _ROOT_PATH)

import trigger_client  # noqa: E402
from app import create_app  # noqa: E402
from models import Settings, TrackedConfig  # noqa: E402


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
class FakeResponse:
    def __init__(self, status_code, reason=""):
        self.status_code = status_code
        self.reason = reason


class FakeGitLab:
    """Stands in for requests.post; records every trigger request."""

    def __init__(self):
        self.calls = []
        self.status_code = 201
        self.reason = "Created"
        self.error = None

    def __call__(self, url, data=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "data": data, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status_code, self.reason)


@pytest.fixture
def fake_gitlab(monkeypatch):
    gitlab = FakeGitLab()
    monkeypatch.setattr(trigger_client.requests, "post", gitlab)
    return gitlab


@pytest.fixture
def tracked_config():
    return TrackedConfig(
        tracked_files=("app/config.yml",),
        tracked_directories=("lib/",),
        separator=",",
    )


@pytest.fixture
def settings(tracked_config):
    return Settings(trigger_token="trigger-abc", tracked=tracked_config)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def make_push_payload():
    """Build a GitLab push event payload; keyword args override fields."""

    def _make(commits=None, **overrides):
        if commits is None:
            commits = [{"added": [], "modified": ["app/config.yml", "lib/util.go", "README.md"], "removed": []}]
        payload = {
            "object_kind": "push",
            "project_id": 15,
            "ref": "refs/heads/main",
            "project": {
                "name": "Diaspora",
                "homepage": "https://gitlab.example.com/mike/diaspora",
                "web_url": "https://gitlab.example.com/mike/diaspora",
            },
            "commits": commits,
            "total_commits_count": len(commits),
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def post_webhook(client):
    """POST a payload (dict or raw str) to the proxy."""

    def _post(payload, path="/", headers=None):
        body = payload if isinstance(payload, str) else json.dumps(payload)
        return client.post(path, data=body, headers=headers or {}, content_type="application/json")

    return _post
