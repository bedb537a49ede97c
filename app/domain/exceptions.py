"""Centralized exception hierarchy for Flora.

All domain and service exceptions inherit from :class:`FloraError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    FloraError (base: maps to 500)
    ├── ValidationError          (400: bad input from caller)
    ├── NotFoundError            (404: entity does not exist)
    ├── ConflictError            (409: duplicate / state conflict)
    │   └── StaleRequestError    (409: superseded in-flight request)
    ├── UnrecognizedResultError  (422: model answered but could not conclude)
    ├── ServiceError             (500: business-logic failure)
    │   ├── RepositoryError      (500: database / persistence)
    │   └── ExternalServiceError (502: generative backend / network)
    └── ConfigurationError       (503: missing / invalid config)
"""

from __future__ import annotations


class FloraError(Exception):
    """Base exception for all Flora application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(FloraError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class NotFoundError(FloraError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class ConflictError(FloraError):
    """Operation conflicts with existing state (HTTP 409)."""

    http_status: int = 409


class StaleRequestError(ConflictError):
    """A newer request on the same scope superseded this one; its result was discarded."""


class UnrecognizedResultError(FloraError):
    """The generative backend answered but could not produce a confident result (HTTP 422).

    ``str(exc)`` is the user-facing message (the model's own ``error`` text
    when it supplied one).
    """

    http_status: int = 422


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(FloraError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class ExternalServiceError(ServiceError):
    """Generative backend or network dependency failure (HTTP 502)."""

    http_status: int = 502


class ConfigurationError(FloraError):
    """Missing or invalid application configuration (HTTP 503)."""

    http_status: int = 503
