"""
Pytest configuration for routeschema tests.

Provides:
- schema_dir: application schema root with user/query fixtures
- app, schemas, client: a Flask app with a registry and error envelope
"""

import json

import pytest
from flask import Flask

from routeschema.contracts import Schemas


def write_schema(root, name, doc):
    """Write a JSON schema document under root, creating subdirectories."""
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(doc), encoding='utf-8')
    return path


@pytest.fixture
def schema_dir(tmp_path):
    root = tmp_path / 'schema'

    write_schema(root, 'defs/name.json', {
        'type': 'string',
        'minLength': 1,
    })
    write_schema(root, 'user.body.json', {
        'type': 'object',
        'required': ['name'],
        'additionalProperties': False,
        'properties': {
            'name': {'$ref': 'defs/name.json'},
            'age': {'type': 'integer', 'minimum': 0},
            'role': {'type': 'string', 'default': 'member'},
        },
    })
    write_schema(root, 'user.query.json', {
        'type': 'object',
        'additionalProperties': False,
        'properties': {
            'limit': {'type': 'integer', 'default': 10},
            'ratio': {'type': 'number'},
            'tags': {'type': 'array', 'items': {'type': 'string'}},
            'active': {'type': 'boolean'},
            'ref': {'type': ['integer', 'string']},
        },
    })
    write_schema(root, 'user.json', {
        'type': 'object',
        'properties': {
            'id': {'type': 'integer'},
            'name': {'$ref': 'defs/name.json'},
        },
    })
    return root


@pytest.fixture
def app():
    app = Flask(__name__)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def schemas(app, schema_dir):
    schemas = Schemas(app, schemas=schema_dir)
    schemas.error()
    return schemas


@pytest.fixture
def client(app, schemas):
    return app.test_client()
