from .schema import register_schema_routes

__all__ = ['register_schema_routes']
