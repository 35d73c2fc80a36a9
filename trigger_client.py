"""
Trigger GitLab pipelines through the pipeline trigger API.

POST {host}/api/v4/projects/{project_id}/trigger/pipeline
    form data: token, ref, variables[FILES_CHANGED], variables[DIRECTORIES_CHANGED]
"""

import logging
from urllib.parse import urlsplit

import requests

from constants import TRIGGER_PIPELINE_PATH
from errors import DispatchError, HostResolutionError, TriggerRejected

logger = logging.getLogger(__name__)


def resolve_gitlab_host(gitlab_host, project_homepage):
    """
    Pick the GitLab host to send the trigger request to.

    Args:
        gitlab_host (str): Explicit host from the configuration (may be empty).
        project_homepage (str): payload["project"]["homepage"] of the push event.

    Returns:
        str: "scheme://host[:port]" without trailing slash.

    Raises:
        HostResolutionError: No explicit host and the homepage is not a usable URL.
    """
    if gitlab_host:
        return gitlab_host.rstrip("/")

    try:
        url = urlsplit(project_homepage)
    except ValueError as e:
        raise HostResolutionError(
            f"Couldn't parse GitLab instance URL from webhook payload: {project_homepage!r}"
        ) from e

    if not url.scheme or not url.netloc:
        raise HostResolutionError(
            f"Couldn't parse GitLab instance URL from webhook payload: {project_homepage!r}"
        )

    return f"{url.scheme}://{url.netloc}"


def build_trigger_url(gitlab_host, project_id):
    return gitlab_host + TRIGGER_PIPELINE_PATH.format(project_id=project_id)


def trigger_pipeline(event, variables, trigger_token, gitlab_host="", timeout=None):
    """
    Send the pipeline trigger request for a push event.

    Args:
        event (PushEvent): The push that caused the trigger.
        variables (dict): Output of build_trigger_variables(); not modified.
        trigger_token (str): GitLab pipeline trigger token.
        gitlab_host (str): Explicit GitLab host; derived from the event if empty.
        timeout (float, optional): Passed to requests. None waits indefinitely.

    Returns:
        int: HTTP status code of GitLab's response.

    Raises:
        HostResolutionError: See resolve_gitlab_host().
        DispatchError: The request could not be sent or no response arrived.
        TriggerRejected: GitLab answered with status >= 400.
    """
    host = resolve_gitlab_host(gitlab_host, event.project_homepage)
    url = build_trigger_url(host, event.project_id)

    form_data = dict(variables)
    form_data["token"] = [trigger_token]
    form_data["ref"] = [event.ref]

    try:
        response = requests.post(url, data=form_data, timeout=timeout)
    except requests.RequestException as e:
        raise DispatchError(f"Trigger request to {url} failed: {e}") from e

    if response.status_code >= 400:
        raise TriggerRejected(response.status_code, response.reason or "")

    logger.info(
        "Triggered pipeline for project %s on %s, response status is %d %s",
        event.project_id,
        event.ref,
        response.status_code,
        response.reason or "",
    )
    return response.status_code
