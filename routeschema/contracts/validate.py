"""
Schema validation for request body and query.

Wraps jsonschema with three behaviours applied while validating:
- remove_additional: drop properties not allowed by additionalProperties: false
- use_defaults: fill missing properties from their schema default
- all_errors: collect every error instead of stopping at the first

Both mutating behaviours change the instance in place, so handlers see the
cleaned body/query.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from jsonschema import Draft7Validator, validators
from jsonschema.exceptions import SchemaError

from ..errors import RegistrationError, ValidationError

LOCATIONS = ('body', 'query')


def _apply_defaults(instance: Dict[str, Any], properties: Dict[str, Any]) -> None:
    for name, subschema in properties.items():
        if name not in instance and isinstance(subschema, dict) and 'default' in subschema:
            instance[name] = copy.deepcopy(subschema['default'])


def _additional_keys(instance: Dict[str, Any], schema: Dict[str, Any]) -> List[str]:
    properties = schema.get('properties') or {}
    patterns = list((schema.get('patternProperties') or {}).keys())
    return [
        key for key in instance
        if key not in properties and not any(re.search(p, key) for p in patterns)
    ]


def _extend(base, use_defaults: bool, remove_additional: bool):
    """Build a validator class with the mutating keyword overrides."""
    base_properties = base.VALIDATORS['properties']
    base_required = base.VALIDATORS['required']
    base_additional = base.VALIDATORS['additionalProperties']

    def properties(validator, props, instance, schema):
        if use_defaults and validator.is_type(instance, 'object'):
            _apply_defaults(instance, props)
        yield from base_properties(validator, props, instance, schema)

    def required(validator, names, instance, schema):
        # Defaults count towards required regardless of keyword order
        if use_defaults and validator.is_type(instance, 'object'):
            _apply_defaults(instance, schema.get('properties') or {})
        yield from base_required(validator, names, instance, schema)

    def additional_properties(validator, additional, instance, schema):
        if remove_additional and additional is False and validator.is_type(instance, 'object'):
            for key in _additional_keys(instance, schema):
                del instance[key]
            return
        yield from base_additional(validator, additional, instance, schema)

    return validators.extend(base, {
        'properties': properties,
        'required': required,
        'additionalProperties': additional_properties,
    })


def format_error(error, location: str) -> Dict[str, Any]:
    """Convert a jsonschema error into a JSON-serializable detail dict."""
    instance_path = ''.join(f"/{part}" for part in error.absolute_path)
    schema_path = '#' + ''.join(f"/{part}" for part in error.absolute_schema_path)
    return {
        'location': location,
        'keyword': error.validator,
        'instancePath': instance_path,
        'schemaPath': schema_path,
        'message': error.message,
    }


@dataclass
class CompiledContract:
    """Validators for one binding, keyed by request location."""
    validators: Dict[str, Any] = field(default_factory=dict)
    all_errors: bool = True

    def __bool__(self):
        return bool(self.validators)

    def validate(self, **instances: Any) -> None:
        """
        Validate request parts against their schemas.

        Args:
            **instances: body= and/or query= values to check (mutated in place)

        Raises:
            ValidationError: With every collected error, grouped by location
        """
        collected: Dict[str, List[Dict[str, Any]]] = {}

        for location in LOCATIONS:
            validator = self.validators.get(location)
            if validator is None:
                continue
            errors = self._errors(validator, instances.get(location), location)
            if errors:
                collected[location] = errors
                if not self.all_errors:
                    break

        if collected:
            raise ValidationError(collected)

    def _errors(self, validator, instance: Any, location: str) -> List[Dict[str, Any]]:
        found = []
        for error in validator.iter_errors(instance):
            found.append(format_error(error, location))
            if not self.all_errors:
                break
        return found


class SchemaValidator:
    """
    Compiles dereferenced schemas into request validators.

    Args:
        remove_additional: Strip properties rejected by additionalProperties: false
        use_defaults: Apply schema defaults to missing properties
        all_errors: Report every error rather than the first
    """

    def __init__(self, remove_additional: bool = True, use_defaults: bool = True, all_errors: bool = True):
        self.remove_additional = remove_additional
        self.use_defaults = use_defaults
        self.all_errors = all_errors
        self._classes: Dict[Any, Any] = {}

    def _validator_class(self, schema: Dict[str, Any]):
        base = validators.validator_for(schema, default=Draft7Validator)
        cls = self._classes.get(base)
        if cls is None:
            cls = _extend(base, self.use_defaults, self.remove_additional)
            self._classes[base] = cls
        return cls

    def compile_schema(self, schema: Dict[str, Any]):
        """
        Build a validator for a single schema.

        Raises:
            RegistrationError: If the schema itself is invalid
        """
        cls = self._validator_class(schema)
        try:
            cls.check_schema(schema)
        except SchemaError as e:
            raise RegistrationError(f"Invalid schema: {e.message}") from e
        return cls(schema, format_checker=cls.FORMAT_CHECKER)

    def compile(self, body: Optional[Dict[str, Any]] = None, query: Optional[Dict[str, Any]] = None) -> CompiledContract:
        """Compile the body and query schemas of a binding."""
        compiled = {}
        for location, schema in zip(LOCATIONS, (body, query)):
            if schema is not None:
                compiled[location] = self.compile_schema(schema)
        return CompiledContract(validators=compiled, all_errors=self.all_errors)

