"""
Configuration for the GitLab trigger proxy.

Settings come from environment variables (a local .env file is loaded if
present) and can be overridden on the command line, e.g.:

    gitlab-trigger-proxy --trigger-token abc --file app/config.yml --directory lib/

Never hardcode tokens; use .env (not committed) for local development.
"""

import argparse
import logging
import os

from dotenv import load_dotenv

from constants import DEFAULT_LISTEN_ADDRESS, DEFAULT_LOG_LEVEL, DEFAULT_SEPARATOR
from errors import ConfigError
from models import Settings, TrackedConfig


def _split_list(value):
    """'a, b,,c' → ['a', 'b', 'c'] (used for list-valued env vars)."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_listen_address(address):
    """
    Split a listen address into (host, port).

    Accepts ":8080", "0.0.0.0:8080", "localhost:8080" and "[::1]:8080".
    An empty host means all interfaces.
    """
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ConfigError(f"Invalid listen address {address!r}, expected [host]:port")
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigError(f"Invalid port in listen address {address!r}") from None
    if not 0 <= port_number <= 65535:
        raise ConfigError(f"Port out of range in listen address {address!r}")
    return host.strip("[]") or "0.0.0.0", port_number


def build_arg_parser():
    parser = argparse.ArgumentParser(
        prog="gitlab-trigger-proxy",
        description="Trigger GitLab pipelines when tracked files or directories change.",
    )
    parser.add_argument("--listen", help="Listen address (env LISTEN_ADDRESS, default :8080).")
    parser.add_argument("--trigger-token", help="REQUIRED - GitLab pipeline trigger token (env TRIGGER_TOKEN).")
    parser.add_argument("--secret-token", help="GitLab webhook secret token (env WEBHOOK_SECRET_TOKEN).")
    parser.add_argument(
        "--separator",
        help="Separates paths in the trigger variable values (env SEPARATOR, default ':').",
    )
    parser.add_argument(
        "--gitlab-host",
        help="GitLab host to trigger on (env GITLAB_HOST). "
        "By default the host is parsed from the project's web URL.",
    )
    parser.add_argument(
        "--file",
        action="append",
        default=[],
        help="A file to track for changes. Can be set multiple times (env TRACKED_FILES, comma separated).",
    )
    parser.add_argument(
        "--directory",
        action="append",
        default=[],
        help="A directory to track for changes. Can be set multiple times "
        "(env TRACKED_DIRECTORIES, comma separated).",
    )
    parser.add_argument("--timeout", help="Trigger request timeout in seconds (env TRIGGER_TIMEOUT).")
    parser.add_argument("--log-level", help="Logging level (env LOG_LEVEL, default INFO).")
    return parser


def load_settings(argv=None, environ=None):
    """
    Build the process Settings from the environment and command-line flags.

    Args:
        argv (list[str], optional): Command-line arguments (default: sys.argv[1:]).
        environ (Mapping[str, str], optional): Environment (default: os.environ
            after loading .env).

    Returns:
        Settings: Validated, immutable configuration.

    Raises:
        ConfigError: Missing trigger token, empty separator, bad listen
            address or timeout.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    args = build_arg_parser().parse_args(argv)

    def pick(flag_value, env_name, default):
        if flag_value is not None:
            return flag_value
        return environ.get(env_name, default)

    trigger_token = pick(args.trigger_token, "TRIGGER_TOKEN", "")
    if not trigger_token:
        raise ConfigError("--trigger-token is required")

    separator = pick(args.separator, "SEPARATOR", DEFAULT_SEPARATOR)
    if separator == "":
        raise ConfigError("--separator cannot be empty")

    listen_host, listen_port = parse_listen_address(pick(args.listen, "LISTEN_ADDRESS", DEFAULT_LISTEN_ADDRESS))

    timeout = pick(args.timeout, "TRIGGER_TIMEOUT", "")
    if timeout:
        try:
            timeout = float(timeout)
        except ValueError:
            raise ConfigError(f"Invalid trigger timeout {timeout!r}") from None
        if timeout <= 0:
            raise ConfigError("Trigger timeout must be positive")
    else:
        timeout = None

    tracked = TrackedConfig(
        tracked_files=tuple(_split_list(environ.get("TRACKED_FILES")) + args.file),
        tracked_directories=tuple(_split_list(environ.get("TRACKED_DIRECTORIES")) + args.directory),
        separator=separator,
    )

    log_level = pick(args.log_level, "LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"Unknown log level {log_level!r}")

    return Settings(
        trigger_token=trigger_token,
        tracked=tracked,
        secret_token=pick(args.secret_token, "WEBHOOK_SECRET_TOKEN", ""),
        gitlab_host=pick(args.gitlab_host, "GITLAB_HOST", ""),
        listen_host=listen_host,
        listen_port=listen_port,
        request_timeout=timeout,
        log_level=log_level,
    )


def configure_logging(level=DEFAULT_LOG_LEVEL):
    """Set up root logging once at startup."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
