"""
Constants used across the trigger proxy.

Centralizing these avoids magic strings and keeps the webhook parsing
and the outbound trigger request consistent with GitLab's API.
"""

# Header GitLab sends with the webhook secret token (if one is configured)
GITLAB_TOKEN_HEADER = "X-Gitlab-Token"

# The only webhook event kind we process (payload["object_kind"])
GITLAB_EVENT_PUSH = "push"

# GitLab truncates the "commits" list of a push event at this many commits,
# while "total_commits_count" still reports the real number
GITLAB_MAX_PUSH_COMMITS = 20

# Trigger variable names as sent in the form-encoded trigger request
VARIABLE_FILES_CHANGED = "variables[FILES_CHANGED]"
VARIABLE_DIRECTORIES_CHANGED = "variables[DIRECTORIES_CHANGED]"

# Pipeline trigger endpoint, relative to the GitLab host
TRIGGER_PIPELINE_PATH = "/api/v4/projects/{project_id}/trigger/pipeline"

# Startup defaults
DEFAULT_LISTEN_ADDRESS = ":8080"
DEFAULT_SEPARATOR = ":"
DEFAULT_LOG_LEVEL = "INFO"
