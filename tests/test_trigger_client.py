# tests/test_trigger_client.py
import logging

import pytest
import requests

from errors import DispatchError, HostResolutionError, TriggerRejected
from models import PushEvent
from trigger_client import build_trigger_url, resolve_gitlab_host, trigger_pipeline

VARIABLES = {
    "variables[FILES_CHANGED]": ["app/config.yml"],
    "variables[DIRECTORIES_CHANGED]": ["lib/"],
}


@pytest.fixture
def push_event():
    return PushEvent(
        kind="push",
        project_id=15,
        ref="refs/heads/main",
        project_homepage="https://gitlab.example.com:8443/mike/diaspora",
    )


# -----------------------------------------------------------------------------
# 1. Host Resolution
# -----------------------------------------------------------------------------

def test_host_is_derived_from_project_homepage():
    assert resolve_gitlab_host("", "http://gitlab.local/group/project") == "http://gitlab.local"


def test_derived_host_keeps_port():
    assert resolve_gitlab_host("", "https://gitlab.example.com:8443/a/b") == "https://gitlab.example.com:8443"


def test_explicit_host_overrides_homepage():
    assert resolve_gitlab_host("https://internal.gitlab/", "https://gitlab.example.com/a/b") == "https://internal.gitlab"


def test_explicit_host_is_used_even_if_homepage_is_unusable():
    assert resolve_gitlab_host("https://internal.gitlab", "") == "https://internal.gitlab"


@pytest.mark.parametrize("homepage", ["", "gitlab.example.com/a/b", "/a/b", "http://[::1"])
def test_unusable_homepage_without_override_fails(homepage):
    with pytest.raises(HostResolutionError):
        resolve_gitlab_host("", homepage)


def test_trigger_url():
    assert build_trigger_url("https://gitlab.example.com", 15) == (
        "https://gitlab.example.com/api/v4/projects/15/trigger/pipeline"
    )


# -----------------------------------------------------------------------------
# 2. Dispatch
# -----------------------------------------------------------------------------

def test_trigger_posts_form_with_token_and_ref(fake_gitlab, push_event):
    status = trigger_pipeline(push_event, VARIABLES, "trigger-abc")

    assert status == 201
    assert len(fake_gitlab.calls) == 1
    call = fake_gitlab.calls[0]
    assert call["url"] == "https://gitlab.example.com:8443/api/v4/projects/15/trigger/pipeline"
    assert call["data"] == {
        "variables[FILES_CHANGED]": ["app/config.yml"],
        "variables[DIRECTORIES_CHANGED]": ["lib/"],
        "token": ["trigger-abc"],
        "ref": ["refs/heads/main"],
    }
    assert call["timeout"] is None


def test_trigger_does_not_mutate_variables(fake_gitlab, push_event):
    variables = dict(VARIABLES)
    trigger_pipeline(push_event, variables, "trigger-abc")
    assert variables == VARIABLES


def test_trigger_uses_explicit_host_and_timeout(fake_gitlab, push_event):
    trigger_pipeline(push_event, VARIABLES, "t", gitlab_host="http://override:8080", timeout=5.0)

    call = fake_gitlab.calls[0]
    assert call["url"] == "http://override:8080/api/v4/projects/15/trigger/pipeline"
    assert call["timeout"] == 5.0


def test_success_is_logged(fake_gitlab, push_event, caplog):
    with caplog.at_level(logging.INFO, logger="trigger_client"):
        trigger_pipeline(push_event, VARIABLES, "t")
    assert "response status is 201" in caplog.text


@pytest.mark.parametrize("status", [400, 404, 502])
def test_error_status_is_rejected(fake_gitlab, push_event, status):
    fake_gitlab.status_code = status
    fake_gitlab.reason = "Bad"

    with pytest.raises(TriggerRejected) as excinfo:
        trigger_pipeline(push_event, VARIABLES, "t")

    assert excinfo.value.status_code == status
    assert len(fake_gitlab.calls) == 1  # no retries


def test_transport_failure_is_dispatch_error(fake_gitlab, push_event):
    fake_gitlab.error = requests.ConnectionError("connection refused")

    with pytest.raises(DispatchError):
        trigger_pipeline(push_event, VARIABLES, "t")
    assert len(fake_gitlab.calls) == 1


def test_host_resolution_failure_sends_nothing(fake_gitlab):
    event = PushEvent(kind="push", project_id=1, ref="main", project_homepage="not a url")

    with pytest.raises(HostResolutionError):
        trigger_pipeline(event, VARIABLES, "t")
    assert fake_gitlab.calls == []
