"""Exception types raised while fetching and reconciling repositories."""


class AptDriftError(Exception):
    """Base class for all fatal aptdrift errors."""


class ConfigError(AptDriftError):
    """Invalid or missing local configuration, e.g. a missing credential file."""


class TransportError(AptDriftError):
    """An HTTP request failed or returned a non-success status."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{message}: {url}")
        self.url = url
        self.status_code = status_code


class DecodeError(AptDriftError):
    """A fetched listing had invalid compression framing or was not valid UTF-8."""


class ParseError(AptDriftError):
    """A stanza or manifest did not have the expected structure."""


class InvariantViolation(AptDriftError):
    """Archive data broke the one-record-per-kind assumption."""
