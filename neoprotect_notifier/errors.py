"""
Notifier Errors
Exception taxonomy shared by the gateway, the tracker and the channels.
"""

from typing import Optional


class NotifierError(Exception):
    """Base class for all notifier errors."""


class NoActiveAttack(NotifierError):
    """Upstream reported no active attack for an address (HTTP 404).

    This is an expected condition and is never logged.
    """

    def __init__(self, address: str = ""):
        self.address = address
        super().__init__(f"no active attack found for {address}" if address else "no active attack found")


class RequestFailed(NotifierError):
    """Upstream returned an unexpected status or the request could not complete."""

    def __init__(
        self,
        url: str,
        status_code: Optional[int] = None,
        body: str = "",
        reason: Optional[str] = None,
    ):
        self.url = url
        self.status_code = status_code
        self.body = body
        self.reason = reason

        if status_code is not None:
            message = f"API request failed: {url} (status code {status_code}): {body}"
        else:
            message = f"API request failed: {url}: {reason or body}"
        super().__init__(message)


class ConfigError(NotifierError):
    """Configuration is missing or invalid."""


class ChannelError(NotifierError):
    """A notification channel failed to deliver a notification."""

    def __init__(self, channel: str, message: str, status_code: Optional[int] = None):
        self.channel = channel
        self.status_code = status_code
        super().__init__(f"{channel}: {message}")
