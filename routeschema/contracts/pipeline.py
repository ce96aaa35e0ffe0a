"""
Request pipeline - the ordered stages a registered route runs.

Order for every binding:
1. Query coercion (only when the binding has a query schema)
2. One path-param coercion per placeholder, in path order
3. Schema validation of body and query
4. The caller's handlers

Stages raise on failure and never build responses; the error translator
turns the raised error into the response. Handlers receive the
RouteContext; returning None hands over to the next handler, anything
else is the response.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from flask import g, request

from .normalize import ParamType, coerce_param, coerce_query
from .validate import CompiledContract

logger = logging.getLogger('routeschema.pipeline')

Handler = Callable[['RouteContext'], Any]


@dataclass
class RouteContext:
    """Per-request state shared by the pipeline stages and handlers."""
    request: Any
    binding: Any
    params: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = None


@dataclass(frozen=True)
class Stage:
    """A named pipeline step that may mutate the context or raise."""
    name: str
    run: Callable[[RouteContext], None]


def query_stage(schema: Dict[str, Any]) -> Stage:
    def run(ctx: RouteContext) -> None:
        coerce_query(ctx.query, schema)
    return Stage('query', run)


def param_stage(name: str, param_type: ParamType) -> Stage:
    def run(ctx: RouteContext) -> None:
        coerce_param(ctx.params, name, param_type)
    return Stage(f'param:{name}', run)


def validation_stage(contract: CompiledContract) -> Stage:
    def run(ctx: RouteContext) -> None:
        contract.validate(body=ctx.body, query=ctx.query)
    return Stage('validate', run)


def _collect_query() -> Dict[str, Any]:
    """Copy request.args; repeated keys become lists."""
    query = {}
    for key, values in request.args.to_dict(flat=False).items():
        query[key] = values[0] if len(values) == 1 else values
    return query


@dataclass
class Pipeline:
    """Stages followed by handlers for one binding."""
    binding: Any
    stages: List[Stage]
    handlers: List[Handler]

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def run(self, ctx: RouteContext) -> Optional[Any]:
        for stage in self.stages:
            stage.run(ctx)

        for handler in self.handlers:
            result = handler(ctx)
            if result is not None:
                return result

        logger.debug(f"No handler responded for {self.binding.key}")
        return None

    def as_view(self) -> Callable:
        """Wrap the pipeline as a Flask view function."""

        def view(**view_args):
            ctx = RouteContext(
                request=request,
                binding=self.binding,
                params=dict(view_args),
                query=_collect_query(),
                body=request.get_json(silent=True),
            )
            g.route = ctx

            result = self.run(ctx)
            if result is None:
                return '', 204
            return result

        view.__name__ = self.binding.endpoint
        view.pipeline = self
        return view
