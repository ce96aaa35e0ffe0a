"""
Schema loader - resolves a schema name to a self-contained JSON Schema.

Names are looked up in two places, in order:
1. The bundled schema directory shipped with this package
2. The application's schema directory

Bundled schemas win so shared fragments resolve the same way for every
application. Every $ref (same-file pointer or relative file reference) is
inlined, so the returned document validates without a resolver.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Tuple, Union
from urllib.parse import urlsplit
from urllib.request import url2pathname

from referencing import Registry, Resource
from referencing.exceptions import CannotDetermineSpecification, Unresolvable
from referencing.jsonschema import DRAFT7

from ..config import BUNDLED_SCHEMAS_PATH
from ..errors import SchemaLoadError

logger = logging.getLogger('routeschema.loader')

# Keywords whose values are instance data, not subschemas
_DATA_KEYWORDS = frozenset({'enum', 'const', 'default', 'examples'})

# Keywords whose values map arbitrary names to subschemas
_SCHEMA_MAP_KEYWORDS = frozenset({'properties', 'patternProperties', 'definitions', '$defs', 'dependencies'})

LOAD_ERRORS = (OSError, ValueError, Unresolvable, CannotDetermineSpecification, SchemaLoadError)


def _retrieve(uri: str) -> Resource:
    """Read a schema document from disk for the referencing registry."""
    parts = urlsplit(uri)
    if parts.scheme != 'file':
        raise SchemaLoadError(f"Only file references are supported, got {uri}")
    path = Path(url2pathname(parts.path))
    contents = json.loads(path.read_text(encoding='utf-8'))
    return Resource.from_contents(contents, default_specification=DRAFT7)


class SchemaLoader:
    """
    Resolves and dereferences schema documents.

    Args:
        schemas_path: Application schema root, searched after the bundled one
    """

    def __init__(self, schemas_path: Union[str, Path] = None):
        self.bundled_path = BUNDLED_SCHEMAS_PATH
        self.schemas_path = Path(schemas_path) if schemas_path else BUNDLED_SCHEMAS_PATH
        self._registry = Registry(retrieve=_retrieve)
        self._cache: Dict[Path, Dict[str, Any]] = {}

    @property
    def search_path(self) -> List[Path]:
        return [self.bundled_path, self.schemas_path]

    def load(self, name: str) -> Dict[str, Any]:
        """
        Resolve a schema name and return a fully dereferenced copy.

        Args:
            name: Schema filename relative to a schema root (e.g. "user.json")

        Returns:
            Self-contained schema dict, owned by the caller

        Raises:
            SchemaLoadError: If neither schema root can resolve the name
        """
        if not isinstance(name, str) or not name:
            raise SchemaLoadError(f"Schema reference must be a non-empty string, got {name!r}", name)

        failures: List[Tuple[Path, Exception]] = []
        for root in self.search_path:
            path = (root / name).resolve()
            try:
                schema = self._load_path(path)
            except LOAD_ERRORS as e:
                failures.append((root, e))
                continue

            logger.debug(f"Resolved schema '{name}' from {root}")
            return copy.deepcopy(schema)

        tried = ", ".join(str(root) for root, _ in failures)
        raise SchemaLoadError(
            f"Unable to resolve schema '{name}' (tried: {tried}): {failures[-1][1]}",
            name,
        ) from failures[-1][1]

    def _load_path(self, path: Path) -> Dict[str, Any]:
        cached = self._cache.get(path)
        if cached is not None:
            return cached

        uri = path.as_uri()
        resolved = self._registry.resolver(base_uri=uri).lookup(uri)
        if not isinstance(resolved.contents, dict):
            raise SchemaLoadError(f"Schema is not an object: {path}")

        schema = self._inline(resolved.contents, resolved.resolver, frozenset({id(resolved.contents)}))
        self._cache[path] = schema
        return schema

    def _inline(self, node: Any, resolver, stack: FrozenSet[int]) -> Any:
        """Return a copy of node with every $ref replaced by its target."""
        if isinstance(node, list):
            return [self._inline(item, resolver, stack) for item in node]
        if not isinstance(node, dict):
            return node

        if isinstance(node.get('$id'), str):
            resolver = resolver.in_subresource(
                Resource.from_contents(node, default_specification=DRAFT7)
            )

        ref = node.get('$ref')
        if isinstance(ref, str):
            resolved = resolver.lookup(ref)
            marker = id(resolved.contents)
            if marker in stack:
                raise SchemaLoadError(f"Circular $ref '{ref}'")
            target = self._inline(resolved.contents, resolved.resolver, stack | {marker})

            siblings = {
                key: self._inline_keyword(key, value, resolver, stack)
                for key, value in node.items() if key != '$ref'
            }
            if siblings and isinstance(target, dict):
                merged = dict(target)
                merged.update(siblings)
                return merged
            return target

        return {
            key: self._inline_keyword(key, value, resolver, stack)
            for key, value in node.items()
        }

    def _inline_keyword(self, key: str, value: Any, resolver, stack: FrozenSet[int]) -> Any:
        if key in _DATA_KEYWORDS:
            return copy.deepcopy(value)
        if key in _SCHEMA_MAP_KEYWORDS and isinstance(value, dict):
            return {name: self._inline(sub, resolver, stack) for name, sub in value.items()}
        return self._inline(value, resolver, stack)
