"""
Validate GitLab webhook requests and parse push events.

Handles:
  - Secret token check (X-Gitlab-Token header)
  - JSON decoding and type checks of the push event fields we use
  - Flattening the pushed commits into a list of changed paths
"""

import hmac
import json
import logging

from constants import GITLAB_EVENT_PUSH, GITLAB_MAX_PUSH_COMMITS, GITLAB_TOKEN_HEADER
from errors import AuthError, MalformedPayload, UnsupportedEventKind
from models import Commit, PushEvent

logger = logging.getLogger(__name__)


def _get_header(headers, name):
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _token_matches(received, expected):
    """Constant-time comparison; a missing header never matches."""
    if received is None:
        return False
    return hmac.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


def parse_webhook_request(headers, body, secret_token=""):
    """
    Authenticate a webhook request and parse its body into a PushEvent.

    Args:
        headers (Mapping[str, str]): Request headers.
        body (bytes | str): Raw request body.
        secret_token (str): Configured webhook secret. Empty disables the check.

    Returns:
        PushEvent: The parsed push event.

    Raises:
        AuthError: Secret token configured and header missing or different.
        MalformedPayload: Body is not a JSON object of the expected shape.
        UnsupportedEventKind: object_kind is not "push".
    """
    if secret_token and not _token_matches(_get_header(headers, GITLAB_TOKEN_HEADER), secret_token):
        raise AuthError("webhook secret token does not match")

    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as e:
        raise MalformedPayload(f"invalid JSON payload: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedPayload("webhook payload must be a JSON object")

    if payload.get("object_kind") != GITLAB_EVENT_PUSH:
        raise UnsupportedEventKind("can only handle GitLab push event webhooks")

    event = parse_push_event(payload)

    if event.total_commits_count != len(event.commits):
        logger.warning(
            "total_commits_count (%d) didn't equal the sent commits count (%d). "
            "This can happen if more than %d commits are pushed at once.",
            event.total_commits_count,
            len(event.commits),
            GITLAB_MAX_PUSH_COMMITS,
        )

    return event


def parse_push_event(payload):
    """
    Convert a decoded push event payload into a PushEvent.

    Push event structure (fields we don't need are ignored):
        - payload["object_kind"]          → "push"
        - payload["project_id"]           → int
        - payload["ref"]                  → "refs/heads/{branch}"
        - payload["project"]["homepage"]  → project web URL
        - payload["commits"][i]["added" | "modified" | "removed"] → [path, ...]
        - payload["total_commits_count"]  → int

    Missing fields fall back to empty values; present fields of the wrong
    type raise MalformedPayload.
    """
    project = payload.get("project")
    if project is None:
        project = {}
    if not isinstance(project, dict):
        raise MalformedPayload("'project' must be an object")

    raw_commits = payload.get("commits")
    if raw_commits is None:
        raw_commits = []
    if not isinstance(raw_commits, list):
        raise MalformedPayload("'commits' must be an array")

    commits = tuple(_parse_commit(raw, index) for index, raw in enumerate(raw_commits))

    return PushEvent(
        kind=_field(payload, "object_kind", str, ""),
        project_id=_field(payload, "project_id", int, 0),
        ref=_field(payload, "ref", str, ""),
        project_homepage=_field(project, "homepage", str, ""),
        commits=commits,
        total_commits_count=_field(payload, "total_commits_count", int, 0),
    )


def _field(data, name, expected_type, default):
    value = data.get(name)
    if value is None:
        return default
    # bool is an int subclass, but never a valid id or count
    if not isinstance(value, expected_type) or isinstance(value, bool):
        raise MalformedPayload(f"'{name}' must be of type {expected_type.__name__}")
    return value


def _parse_commit(raw, index):
    if not isinstance(raw, dict):
        raise MalformedPayload(f"commits[{index}] must be an object")

    paths = {}
    for key in ("added", "removed", "modified"):
        value = raw.get(key)
        if value is None:
            value = []
        if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
            raise MalformedPayload(f"commits[{index}].{key} must be an array of strings")
        paths[key] = tuple(value)

    return Commit(**paths)


def get_changed_paths(event):
    """
    Return every path touched by the pushed commits.

    Added, removed and modified paths of each commit are concatenated in
    commit order; the kind of change is not distinguished.
    """
    changed = []
    for commit in event.commits:
        changed.extend(commit.added)
        changed.extend(commit.removed)
        changed.extend(commit.modified)
    return changed
