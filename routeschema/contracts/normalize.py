"""
Param normalization - coerces raw request strings to declared types.

Handles:
- Path params: strict, one declared type per placeholder, failure is a 400
- Query params: lenient, types taken from the query schema, failure leaves
  the raw value for the validator to reject
- Query defaults: injected for keys the request did not supply
"""

import copy
import logging
import math
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import CoercionError

logger = logging.getLogger('routeschema.normalize')

_INTEGER_RE = re.compile(r'^\s*[+-]?\d+\s*$')


class ParamType(Enum):
    """Types a path placeholder can be declared as."""
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"

    @classmethod
    def parse(cls, name: Any) -> Optional['ParamType']:
        """Look up a type by its schema name, None if not recognized."""
        try:
            return cls(name)
        except ValueError:
            return None


def parse_integer(value: Any) -> Optional[int]:
    """Parse a base-10 integer. Returns None if value is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INTEGER_RE.match(value):
        return int(value)
    return None


def parse_number(value: Any) -> Optional[float]:
    """Parse a finite number. Returns None if value is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_boolean(value: Any) -> Optional[bool]:
    """Map the literals "true"/"false" to bools. Returns None otherwise."""
    if isinstance(value, bool):
        return value
    if value == 'true':
        return True
    if value == 'false':
        return False
    return None


def coerce_param(params: Dict[str, Any], name: str, param_type: ParamType) -> None:
    """
    Coerce one path param in place.

    Args:
        params: Path params of the current request
        name: Placeholder name (without the leading ':')
        param_type: Declared type

    Raises:
        CoercionError: If the value does not convert
    """
    value = params.get(name)

    if param_type is ParamType.INTEGER:
        coerced = parse_integer(value)
        if coerced is None:
            raise CoercionError(name, param_type.value, f"{name} param must be an integer")
    elif param_type is ParamType.NUMBER:
        coerced = parse_number(value)
        if coerced is None:
            raise CoercionError(name, param_type.value, f"{name} param must be numeric")
    elif param_type is ParamType.BOOLEAN:
        coerced = parse_boolean(value)
        if coerced is None:
            raise CoercionError(name, param_type.value, f"{name} param must be a boolean")
    elif param_type is ParamType.STRING:
        coerced = str(value)
    else:
        raise TypeError(f"Unhandled param type: {param_type!r}")

    params[name] = coerced


def _declared_types(prop: Dict[str, Any]) -> List[str]:
    declared = prop.get('type')
    if declared is None:
        return []
    if isinstance(declared, list):
        return declared
    return [declared]


def _coerce_query_value(value: Any, declared: List[str]) -> Any:
    """Try each declared type in order; first one that applies wins."""
    for type_name in declared:
        if type_name == 'integer':
            coerced = parse_integer(value)
            if coerced is not None:
                return coerced
        elif type_name == 'number':
            coerced = parse_number(value)
            if coerced is not None:
                return coerced
        elif type_name == 'array':
            if isinstance(value, list):
                return value
            if isinstance(value, str):
                return value.split(',')
        elif type_name == 'boolean':
            coerced = parse_boolean(value)
            if coerced is not None:
                return coerced
    return value


def coerce_query(query: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Coerce query values to the types declared in a query schema.

    Never raises. Values that do not convert are left as received and
    the validation stage reports them.

    Args:
        query: Query params of the current request (mutated in place)
        schema: Dereferenced JSON Schema of type object

    Returns:
        The same query dict
    """
    properties = schema.get('properties') or {}

    for key in list(query.keys()):
        prop = properties.get(key)
        if not isinstance(prop, dict):
            continue
        declared = _declared_types(prop)
        if not declared:
            continue
        query[key] = _coerce_query_value(query[key], declared)

    for key, prop in properties.items():
        if key not in query and isinstance(prop, dict) and 'default' in prop:
            query[key] = copy.deepcopy(prop['default'])
            logger.debug(f"Applied default for query param '{key}'")

    return query
