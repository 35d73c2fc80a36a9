"""
GitLab Trigger Proxy — Flask application entry point.

This app:
  1. Receives GitLab push event webhooks (any path, POST).
  2. Works out which tracked files / directories the pushed commits touched.
  3. Triggers a GitLab pipeline with FILES_CHANGED and DIRECTORIES_CHANGED
     variables (on every valid push, even if nothing tracked changed).

Run locally: gitlab-trigger-proxy --trigger-token ... (or: python app.py ...)
Or with flask: flask --app app run  (settings are read from env / .env)
"""

import logging
import os
import sys
import traceback

from flask import Flask, current_app, jsonify, request

from config import configure_logging, load_settings
from errors import ConfigError, TriggerError, WebhookError
from path_matcher import match_changed_paths
from trigger_client import trigger_pipeline
from trigger_variables import build_trigger_variables
from webhook_parser import get_changed_paths, parse_webhook_request

logger = logging.getLogger(__name__)

SETTINGS_KEY = "TRIGGER_PROXY_SETTINGS"
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
PROJECT_MODULES = frozenset(
    ("app", "config", "constants", "errors", "models", "path_matcher",
     "trigger_client", "trigger_variables", "webhook_parser")
)


def _is_project_frame(filename):
    path = os.path.abspath(filename)
    if os.path.dirname(path) == PROJECT_ROOT:
        return os.path.splitext(os.path.basename(path))[0] in PROJECT_MODULES
    # nested files count unless they belong to an installed library (e.g. a venv)
    nested = path[len(PROJECT_ROOT):]
    return (
        path.startswith(PROJECT_ROOT + os.sep)
        and "site-packages" not in nested
        and "dist-packages" not in nested
    )


def _call_site(exc):
    """
    'function @ file:line' where exc was raised.

    Library and stdlib frames are skipped: the innermost frame inside the
    project directory wins, falling back to the innermost frame overall.
    """
    frames = traceback.extract_tb(exc.__traceback__)
    if not frames:
        return "unknown"
    own_frames = [f for f in frames if _is_project_frame(f.filename)]
    frame = (own_frames or frames)[-1]
    return f"{frame.name} @ {frame.filename}:{frame.lineno}"


def process_webhook(settings, headers, body):
    """
    Run one webhook delivery through validate → match → build → trigger.

    Raises WebhookError / TriggerError subclasses; see errors.py.
    """
    event = parse_webhook_request(headers, body, settings.secret_token)

    changed_paths = get_changed_paths(event)
    match = match_changed_paths(changed_paths, settings.tracked)
    variables = build_trigger_variables(match, settings.tracked.separator)

    logger.debug("Push to %s in project %s: %s", event.ref, event.project_id, variables)

    return trigger_pipeline(
        event,
        variables,
        settings.trigger_token,
        gitlab_host=settings.gitlab_host,
        timeout=settings.request_timeout,
    )


def create_app(settings=None):
    """
    Create the Flask app.

    Args:
        settings (Settings, optional): Process configuration. Loaded from the
            environment when omitted (e.g. for `flask --app app run`).
    """
    if settings is None:
        settings = load_settings(argv=[])
        configure_logging(settings.log_level)

    app = Flask(__name__)
    app.config[SETTINGS_KEY] = settings

    @app.route("/health", methods=["GET"])
    def health():
        """Simple health check for deployment platforms."""
        return jsonify({"status": "ok"}), 200

    @app.route("/", defaults={"path": ""}, methods=["POST"])
    @app.route("/<path:path>", methods=["POST"])
    def handle_webhook(path):
        """
        Receive a GitLab webhook and trigger the pipeline.

        Responses:
          - 200, empty body: pipeline triggered
          - 400, plain-text error: bad token, malformed payload, not a push event
          - 500, empty body: triggering failed or an unexpected error occurred
        """
        try:
            process_webhook(current_app.config[SETTINGS_KEY], request.headers, request.get_data())
        except WebhookError as e:
            logger.warning("Rejected webhook: %s", e)
            return str(e), 400, {"Content-Type": "text/plain; charset=utf-8"}
        except TriggerError as e:
            logger.error("Pipeline trigger failed: %s", e)
            return "", 500
        except Exception as e:
            # Don't expose internal errors to GitLab
            logger.exception("Unexpected error handling webhook: %s @ %s", e, _call_site(e))
            return "", 500

        return "", 200

    return app


def main(argv=None):
    try:
        settings = load_settings(argv)
    except ConfigError as e:
        print(f"gitlab-trigger-proxy: {e}. Exiting now.", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)
    logger.info(
        "Listening on %s:%d, tracking %d file(s) and %d director(y/ies)",
        settings.listen_host,
        settings.listen_port,
        len(settings.tracked.tracked_files),
        len(settings.tracked.tracked_directories),
    )

    app = create_app(settings)
    app.run(host=settings.listen_host, port=settings.listen_port, threaded=True)
    return 0


# -----------------------------------------------------------------------------
# Run with: python app.py --trigger-token ...
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main())
