"""Custom exception hierarchy for Scene.

All application exceptions inherit from :class:`SceneError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "spotify", "supabase", "musicbrainz") caused the failure.

    SceneError  (base -- catch-all for any Scene error)
    +-- ConfigurationError       (startup / missing config)
    +-- ProviderUnavailableError (external service down / unreachable)
    +-- RateLimitError           (provider rate-limit exceeded)
    +-- AuthenticationError      (credentials rejected by a provider)
    +-- DatastoreError           (artist store query or write failed)

Services catch these at the lowest layer that can degrade gracefully: a
failed lookup becomes "no image for this name", never a user-facing error.
Only :class:`ConfigurationError` is meant to stop the process.
"""

from __future__ import annotations


class SceneError(Exception):
    """Base exception for all Scene errors.

    ``__str__`` prefixes the provider name in brackets for log scanning,
    e.g. ``[spotify] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


class ConfigurationError(SceneError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(SceneError):
    """Raised when an external service is unreachable or returns garbage."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(SceneError):
    """Raised when an API answers with a rate-limit response (HTTP 429).

    ``retry_after`` holds the raw ``Retry-After`` header value (seconds or
    an HTTP-date) when the provider sent one.  The circuit breaker parses
    and clamps it.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
        retry_after: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._retry_after = retry_after

    @property
    def retry_after(self) -> str | None:
        return self._retry_after


class AuthenticationError(SceneError):
    """Raised when a provider rejects our credentials or token exchange."""

    def __init__(
        self,
        message: str = "Authentication with provider failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DatastoreError(SceneError):
    """Raised when the artist datastore cannot be queried or written."""

    def __init__(
        self,
        message: str = "Artist datastore operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
