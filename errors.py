"""
Exception hierarchy for the trigger proxy.

Client-side errors (WebhookError) are answered with 400 and their message;
server-side errors (TriggerError) are answered with 500 and an empty body.
"""


class TriggerProxyError(Exception):
    """Base class for every error raised by the proxy."""


class ConfigError(TriggerProxyError):
    """Invalid or missing startup configuration."""


# -----------------------------------------------------------------------------
# Client-side: the webhook request itself is unacceptable (→ 400)
# -----------------------------------------------------------------------------
class WebhookError(TriggerProxyError):
    """The inbound webhook request was rejected."""


class AuthError(WebhookError):
    pass


class MalformedPayload(WebhookError):
    pass


class UnsupportedEventKind(WebhookError):
    pass


# -----------------------------------------------------------------------------
# Server-side: triggering the pipeline failed (→ 500)
# -----------------------------------------------------------------------------
class TriggerError(TriggerProxyError):
    """The downstream pipeline trigger could not be completed."""


class HostResolutionError(TriggerError):
    pass


class DispatchError(TriggerError):
    pass


class TriggerRejected(TriggerError):
    """GitLab answered the trigger request with an error status."""

    def __init__(self, status_code, reason=""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Triggering pipeline failed with {status_code} {reason}".rstrip())
