"""
Contract enforcement package.

Provides schema loading, param coercion, schema validation and the route
registry that wires them into Flask.
"""

from .registry import (
    Binding,
    SchemaSet,
    Schemas,
    placeholders,
    to_rule,
)
from .loader import SchemaLoader
from .normalize import ParamType, coerce_param, coerce_query
from .pipeline import Pipeline, RouteContext, Stage
from .validate import CompiledContract, SchemaValidator

__all__ = [
    'Binding',
    'SchemaSet',
    'Schemas',
    'placeholders',
    'to_rule',
    'SchemaLoader',
    'ParamType',
    'coerce_param',
    'coerce_query',
    'Pipeline',
    'RouteContext',
    'Stage',
    'CompiledContract',
    'SchemaValidator',
]
