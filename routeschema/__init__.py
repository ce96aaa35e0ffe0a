"""
routeschema - JSON Schema contracts for Flask routes.

This package provides:
- Route registry binding body/query/response schemas to verb + path
- Path and query param coercion ahead of validation
- Uniform {status, message, messages} error responses
- A self-describing schema listing route
"""

from .contracts import Schemas, SchemaSet, ParamType, RouteContext
from .errors import (
    ApplicationError,
    CoercionError,
    RegistrationError,
    SchemaLoadError,
    ValidationError,
)

__version__ = '1.0.0'

__all__ = [
    'Schemas',
    'SchemaSet',
    'ParamType',
    'RouteContext',
    'ApplicationError',
    'CoercionError',
    'RegistrationError',
    'SchemaLoadError',
    'ValidationError',
]
