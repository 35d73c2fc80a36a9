"""
Data structures passed between the proxy's components.

Everything except Settings/TrackedConfig lives for a single webhook request.
Settings and TrackedConfig are built once at startup and never mutated, so
request threads can read them without locking.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Commit:
    """Paths touched by one pushed commit."""

    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    modified: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PushEvent:
    """
    The parts of a GitLab push event webhook the proxy needs.

    total_commits_count is what GitLab declares; commits holds only what it
    actually sent (at most 20), so the two may differ.
    """

    kind: str
    project_id: int
    ref: str
    project_homepage: str
    commits: Tuple[Commit, ...] = ()
    total_commits_count: int = 0


@dataclass(frozen=True)
class TrackedConfig:
    """Files (exact match) and directories (literal prefix) to watch."""

    tracked_files: Tuple[str, ...] = ()
    tracked_directories: Tuple[str, ...] = ()
    separator: str = ":"


@dataclass
class MatchResult:
    # First-seen order, duplicates kept; VariableBuilder dedups.
    matched_files: List[str] = field(default_factory=list)
    matched_directories: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, see config.load_settings()."""

    trigger_token: str
    tracked: TrackedConfig = TrackedConfig()
    secret_token: str = ""
    gitlab_host: str = ""
    listen_host: str = ""
    listen_port: int = 8080
    request_timeout: Optional[float] = None
    log_level: str = "INFO"
