"""Central error taxonomy for the dev server.

Every failure surfaced to an HTTP caller maps to one of three types:

    not-found        missing provider / function / file (404)
    execution-error  provider module load or invocation raised (500)
    build-failure    external build command failed (500)

Nothing is retried; the payload carries enough detail (path attempted,
underlying message, trace) to debug the provider being developed.
"""
from __future__ import annotations

from typing import Any, Dict

_ALLOWED_ERROR_TYPES = {
    "not-found",
    "execution-error",
    "build-failure",
}


def validate_error_type(code: str) -> str:
    assert (
        code in _ALLOWED_ERROR_TYPES
    ), f"Unknown error_type '{code}' (not in taxonomy)"
    return code


class DevServerError(Exception):
    """Base class for errors rendered as JSON responses."""

    error_type = "execution-error"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        validate_error_type(self.error_type)

    def payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class ProviderNotFound(DevServerError):
    """Provider, function or file could not be resolved on disk."""

    error_type = "not-found"
    status_code = 404

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.hint:
            body["hint"] = self.hint
        return body


class ExecutionError(DevServerError):
    """Loading or invoking a provider module raised.

    ``stack`` holds the formatted traceback of the underlying exception.
    """

    error_type = "execution-error"
    status_code = 500

    def __init__(self, message: str, stack: str | None = None) -> None:
        super().__init__(message)
        self.stack = stack

    def payload(self) -> Dict[str, Any]:
        return {"error": self.message, "stack": self.stack}


class BuildFailure(DevServerError):
    error_type = "build-failure"
    status_code = 500

    def payload(self) -> Dict[str, Any]:
        return {"success": False, "error": self.message}


__all__ = [
    "validate_error_type",
    "DevServerError",
    "ProviderNotFound",
    "ExecutionError",
    "BuildFailure",
]
