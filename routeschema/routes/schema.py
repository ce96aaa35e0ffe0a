"""
Schema listing route - lets clients discover registered contracts.

GET /schema                          -> every binding with body/query/response flags
GET /schema?method=GET&url=/user/:id -> the dereferenced schemas of one binding
"""

from flask import jsonify

from ..config import Config


def register_schema_routes(registry, prefix: str = None):
    """
    Register the listing route through the registry itself.

    Args:
        registry: Schemas instance to describe
        prefix: Route path, defaults to Config.SCHEMA_ROUTE_PREFIX

    Returns:
        The registered Binding
    """

    def schema_listing(route):
        if route.query.get('method') and route.query.get('url'):
            return jsonify(registry.query(route.query['method'], route.query['url']))
        return jsonify(registry.list())

    return registry.get(
        prefix or Config.SCHEMA_ROUTE_PREFIX,
        {'query': 'schema.query.json', 'res': 'schema.json'},
        schema_listing,
    )
