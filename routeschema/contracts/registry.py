"""
Route registry - binds JSON Schema contracts to Flask routes.

Each binding has:
- SchemaSet: optional body/query/response schemas, fully dereferenced
- Params: the declared type of every :name placeholder in its path
- Pipeline: query coercion -> path coercion -> validation -> handlers

Usage:
    schemas = Schemas(app, schemas='/srv/app/schema')

    def get_user(route):
        return jsonify(load_user(route.params['id']))

    schemas.get('/user/:id', {':id': 'integer', 'query': 'user.query.json'}, get_user)
    schemas.error()
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..config import Config
from ..errors import RegistrationError
from ..middleware import setup_error_handlers, setup_request_id_middleware
from .loader import SchemaLoader
from .normalize import ParamType
from .pipeline import Pipeline, param_stage, query_stage, validation_stage
from .validate import SchemaValidator

logger = logging.getLogger('routeschema.registry')

# ":name" terminated by "/", "." or end of path
PLACEHOLDER_RE = re.compile(r'(:.+?)(?=/|\.|$)')
_PARAM_NAME_RE = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

METHODS = ('GET', 'PUT', 'POST', 'PATCH', 'DELETE')
SCHEMA_SLOTS = ('body', 'query', 'response')

# Descriptor keys accepted in place of a slot name
SLOT_ALIASES = {'res': 'response'}


@dataclass(frozen=True)
class SchemaSet:
    """Dereferenced schemas of one binding. Any slot may be None."""
    body: Optional[Dict[str, Any]] = None
    query: Optional[Dict[str, Any]] = None
    response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of all three slots."""
        return {
            'body': copy.deepcopy(self.body),
            'query': copy.deepcopy(self.query),
            'response': copy.deepcopy(self.response),
        }

    def summary(self) -> Dict[str, bool]:
        """Which slots are present, without exposing the documents."""
        return {
            'body': self.body is not None,
            'query': self.query is not None,
            'response': self.response is not None,
        }


@dataclass(frozen=True)
class Binding:
    """A registered verb + path with its schemas and placeholder types."""
    method: str
    path: str
    rule: str
    endpoint: str
    params: Tuple[Tuple[str, ParamType], ...] = ()
    schemas: SchemaSet = field(default_factory=SchemaSet)

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"


def placeholders(path: str) -> List[str]:
    """Placeholder tokens of a path, in order, including the leading ':'."""
    return PLACEHOLDER_RE.findall(path)


def to_rule(path: str) -> str:
    """Rewrite ':name' placeholders as Flask '<name>' variables."""
    return PLACEHOLDER_RE.sub(lambda m: f"<{m.group(1)[1:]}>", path)


class Schemas:
    """
    Registry of schema-validated routes for one Flask app or Blueprint.

    Args:
        router: Flask app or Blueprint routes are registered on
        schemas: Application schema root. Defaults to Config.SCHEMAS_PATH
        validator: SchemaValidator to compile schemas with. Defaults to one
            that strips unknown properties, applies defaults and collects
            all errors.

    Raises:
        RegistrationError: If router is missing
    """

    def __init__(
        self,
        router,
        schemas: Union[str, Path] = None,
        validator: Optional[SchemaValidator] = None,
    ):
        if router is None:
            raise RegistrationError('Router Param Required')

        self.router = router
        self.schemas_path = Path(schemas) if schemas else Config.SCHEMAS_PATH
        self.loader = SchemaLoader(self.schemas_path)
        self.validator = validator or SchemaValidator(
            remove_additional=True,
            use_defaults=True,
            all_errors=True,
        )
        self._bindings: Dict[str, Binding] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def get(self, path: str, schemas: Optional[Dict[str, Any]], *handlers: Callable) -> Binding:
        return self._register('GET', path, schemas, handlers)

    def put(self, path: str, schemas: Optional[Dict[str, Any]], *handlers: Callable) -> Binding:
        return self._register('PUT', path, schemas, handlers)

    def post(self, path: str, schemas: Optional[Dict[str, Any]], *handlers: Callable) -> Binding:
        return self._register('POST', path, schemas, handlers)

    def patch(self, path: str, schemas: Optional[Dict[str, Any]], *handlers: Callable) -> Binding:
        return self._register('PATCH', path, schemas, handlers)

    def delete(self, path: str, schemas: Optional[Dict[str, Any]], *handlers: Callable) -> Binding:
        return self._register('DELETE', path, schemas, handlers)

    def route(self, method: str, path: str, schemas: Optional[Dict[str, Any]] = None) -> Callable:
        """
        Decorator form of the verb methods.

        Usage:
            @registry.route('GET', '/user/:id', {':id': 'integer'})
            def get_user(route):
                ...
        """
        method = str(method).upper()
        if method not in METHODS:
            raise RegistrationError(f"Unsupported method {method}")

        def decorator(fn: Callable) -> Callable:
            self._register(method, path, schemas, (fn,))
            return fn
        return decorator

    def check(
        self,
        path: Any,
        schemas: Any,
        handlers: Sequence[Callable],
    ) -> Tuple[Dict[str, Any], Tuple[Tuple[str, ParamType], ...]]:
        """
        Enforce registration preconditions before anything is loaded.

        Args:
            path: Route path with optional :name placeholders
            schemas: Schema descriptor (dict or None)
            handlers: Handlers for the route

        Returns:
            Tuple of (normalized descriptor, declared placeholder types)

        Raises:
            RegistrationError: If any precondition fails
        """
        if not isinstance(path, str):
            raise RegistrationError('URL should be string')

        if schemas is None:
            schemas = {}
        if not isinstance(schemas, dict):
            raise RegistrationError('Schemas should be object')

        params = []
        for match in placeholders(path):
            if not schemas.get(match):
                raise RegistrationError(f"{match} type is not defined in schema")
            param_type = ParamType.parse(schemas[match])
            if param_type is None:
                raise RegistrationError(f"{schemas[match]} is not a supported type for {match}")
            name = match[1:]
            if not _PARAM_NAME_RE.match(name):
                raise RegistrationError(f"{match} is not a valid param name")
            params.append((name, param_type))

        if not handlers:
            raise RegistrationError('At least 1 route function should be defined')
        for handler in handlers:
            if not callable(handler):
                raise RegistrationError(f"Route function {handler!r} is not callable")

        return schemas, tuple(params)

    def generic(
        self,
        key: str,
        schemas: Optional[Dict[str, Any]],
        handlers: Sequence[Callable],
    ) -> Binding:
        """
        Load schemas, build the pipeline and register it with the router.

        Args:
            key: "<VERB> <PATH>"
            schemas: Schema descriptor
            handlers: Handlers run after validation

        Returns:
            The registered Binding

        Raises:
            RegistrationError: On a malformed key, duplicate registration,
                unresolvable or invalid schema
        """
        parsed = key.split(' ') if isinstance(key, str) else []
        if len(parsed) != 2:
            raise RegistrationError('schema.generic() must be of format "<VERB> <URL>"')
        method, path = parsed[0].upper(), parsed[1]
        key = f"{method} {path}"

        if key in self._bindings:
            raise RegistrationError(f"{key} is already registered")

        descriptor, params = self.check(path, schemas, handlers)
        schema_set = self._load_schema_set(descriptor)

        binding = Binding(
            method=method,
            path=path,
            rule=to_rule(path),
            endpoint=self._endpoint_name(method, path),
            params=params,
            schemas=schema_set,
        )

        stages = []
        if schema_set.query is not None:
            stages.append(query_stage(schema_set.query))
        for name, param_type in params:
            stages.append(param_stage(name, param_type))
        contract = self.validator.compile(body=schema_set.body, query=schema_set.query)
        if contract:
            stages.append(validation_stage(contract))

        pipeline = Pipeline(binding=binding, stages=stages, handlers=list(handlers))

        try:
            self.router.add_url_rule(
                binding.rule,
                endpoint=binding.endpoint,
                view_func=pipeline.as_view(),
                methods=[method],
            )
        except (AssertionError, ValueError) as e:
            raise RegistrationError(f"Router rejected {key}: {e}") from e

        self._bindings[key] = binding
        logger.info(
            f"Registered {key}",
            extra={"event": "route_registered", "route": key, **schema_set.summary()},
        )
        return binding

    def _register(self, method: str, path: Any, schemas: Any, handlers: Sequence[Callable]) -> Binding:
        # Fail on bad input before the key is even built
        self.check(path, schemas, handlers)
        return self.generic(f"{method} {path}", schemas, handlers)

    def _load_schema_set(self, descriptor: Dict[str, Any]) -> SchemaSet:
        names = {}
        for key, value in descriptor.items():
            slot = SLOT_ALIASES.get(key, key)
            if slot in SCHEMA_SLOTS and value:
                names[slot] = value

        return SchemaSet(**{slot: self.loader.load(name) for slot, name in names.items()})

    def _endpoint_name(self, method: str, path: str) -> str:
        slug = re.sub(r'[^A-Za-z0-9_]', '_', path).strip('_') or 'root'
        return f"routeschema_{len(self._bindings)}_{method.lower()}_{slug}"

    # =========================================================================
    # Introspection
    # =========================================================================

    def query(self, method: str, url: str) -> Dict[str, Any]:
        """
        Return all schemas (body, query, response) for a method + url.

        Args:
            method: HTTP method
            url: Path as registered (placeholders included)

        Returns:
            Deep copy of the schemas; every slot None if not registered
        """
        binding = self._bindings.get(f"{str(method).upper()} {url}")
        if binding is None:
            return SchemaSet().to_dict()
        return binding.schemas.to_dict()

    def list(self) -> Dict[str, Dict[str, bool]]:
        """Return every registered binding and which schemas it has."""
        return {key: binding.schemas.summary() for key, binding in self._bindings.items()}

    def bindings(self) -> List[Binding]:
        """Registered bindings in registration order."""
        return list(self._bindings.values())

    def __contains__(self, key: str) -> bool:
        return key in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    # =========================================================================
    # Router setup
    # =========================================================================

    def error(self) -> None:
        """Convert every error raised on the router into the uniform envelope."""
        setup_request_id_middleware(self.router)
        setup_error_handlers(self.router)

    def api(self) -> Binding:
        """Register the self-describing schema listing route."""
        from ..routes.schema import register_schema_routes
        return register_schema_routes(self)
