"""
Error taxonomy for route registration and request handling.

Every error raised by this package carries an explicit ErrorKind so the
error translator dispatches on what the raiser declared, not on the shape
of the object it happens to receive.

Kinds:
- REGISTRATION: developer-time mistakes (bad descriptor, missing router,
  unresolvable schema). Raised during app setup, never per request.
- APPLICATION: per-request errors with an explicit status and safe message.
  CoercionError is the path-parameter flavour (always 400).
- VALIDATION: per-request JSON Schema failures with structured sub-errors.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(Enum):
    """Closed set of error kinds understood by the error translator."""
    REGISTRATION = "registration"
    APPLICATION = "application"
    VALIDATION = "validation"


class RouteSchemaError(Exception):
    """Base class for all routeschema errors."""
    kind: Optional[ErrorKind] = None


class RegistrationError(RouteSchemaError):
    """Raised when a route cannot be registered."""
    kind = ErrorKind.REGISTRATION


class SchemaLoadError(RegistrationError):
    """Raised when a schema reference cannot be resolved or dereferenced."""

    def __init__(self, message: str, name: str = None):
        super().__init__(message)
        self.name = name


class ApplicationError(RouteSchemaError):
    """
    Error raised by handlers (or pipeline stages) with a user-facing message.

    Args:
        status: HTTP status to respond with
        err: Internal diagnostic (exception or string). Logged, never returned.
        safe: Message safe to show the caller
        messages: Optional list of structured sub-errors for the response
        log: Set False to keep this error out of the operator log
    """
    kind = ErrorKind.APPLICATION

    def __init__(
        self,
        status: int,
        err: Any = None,
        safe: str = "",
        messages: Optional[List[Any]] = None,
        log: bool = True,
    ):
        super().__init__(safe or str(err or status))
        self.status = status
        self.err = err
        self.safe = safe
        self.messages = list(messages) if messages else []
        self.log = log

    def __repr__(self):
        return f"{type(self).__name__}(status={self.status}, safe={self.safe!r})"


class CoercionError(ApplicationError):
    """Raised when a path parameter fails its declared type conversion."""

    def __init__(self, param: str, expected: str, safe: str):
        super().__init__(400, None, safe)
        self.param = param
        self.expected = expected


class ValidationError(RouteSchemaError):
    """
    Raised when a request fails its JSON Schema contract.

    validation_errors maps a request location ("body", "query") to the list
    of structured errors collected for it.
    """
    kind = ErrorKind.VALIDATION

    def __init__(self, validation_errors: Dict[str, List[Dict[str, Any]]]):
        count = sum(len(errors) for errors in validation_errors.values())
        super().__init__(f"{count} validation error(s)")
        self.validation_errors = validation_errors

    def collected(self) -> List[Dict[str, Any]]:
        """Body errors followed by query errors, as one ordered list."""
        errors = []
        errors.extend(self.validation_errors.get("body") or [])
        errors.extend(self.validation_errors.get("query") or [])
        return errors
