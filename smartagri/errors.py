"""Errors raised inside the dashboard. All of them are recovered locally."""


class SmartAgriError(Exception):
    """Base class for dashboard errors."""


class ConfigMissing(SmartAgriError):
    """A required configuration key is not set."""

    def __init__(self, keys):
        self.keys = list(keys)
        super().__init__("Missing configuration: " + ", ".join(self.keys))


class AuthFailure(SmartAgriError):
    """Datastore credentials could not be loaded or were rejected."""


class SubscriptionEmpty(SmartAgriError):
    """The realtime datastore delivered no snapshot."""


class RangeParseInvalid(SmartAgriError):
    """A favorable-range string did not yield exactly two numbers."""


class AdvisoryHttpError(SmartAgriError):
    """The generative-language endpoint failed or returned no text."""

    def __init__(self, message, status=None, body=None):
        self.status = status
        self.body = body
        super().__init__(message)
