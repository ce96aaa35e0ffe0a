"""
Unit tests for routeschema/contracts/loader.py

Covers:
- Search order (bundled directory before the application directory)
- $ref inlining: cross-file, same-file pointers, sibling keywords
- Failure modes (missing files, circular references)
"""

import json

import pytest

from routeschema.config import BUNDLED_SCHEMAS_PATH
from routeschema.contracts.loader import SchemaLoader
from routeschema.errors import RegistrationError, SchemaLoadError

from .conftest import write_schema


class TestSearchOrder:
    """Tests for bundled-first resolution"""

    def test_application_schema(self, schema_dir):
        schema = SchemaLoader(schema_dir).load('user.json')
        assert schema['properties']['id'] == {'type': 'integer'}

    def test_bundled_schema_wins(self, schema_dir):
        write_schema(schema_dir, 'schema.query.json', {'type': 'object', 'title': 'override'})

        schema = SchemaLoader(schema_dir).load('schema.query.json')

        assert 'title' not in schema
        assert 'method' in schema['properties']

    def test_default_root_is_bundled(self):
        loader = SchemaLoader()
        assert loader.search_path == [BUNDLED_SCHEMAS_PATH, BUNDLED_SCHEMAS_PATH]


class TestDereference:
    """Tests for $ref inlining"""

    def test_cross_file_ref_inlined(self, schema_dir):
        schema = SchemaLoader(schema_dir).load('user.body.json')

        assert schema['properties']['name'] == {'type': 'string', 'minLength': 1}
        assert '$ref' not in json.dumps(schema)

    def test_bundled_cross_file_ref_inlined(self):
        schema = SchemaLoader().load('schema.query.json')
        method = schema['properties']['method']
        assert method['enum'] == ['GET', 'PUT', 'POST', 'PATCH', 'DELETE']

    def test_internal_pointer(self, schema_dir):
        write_schema(schema_dir, 'pointer.json', {
            'definitions': {'id': {'type': 'integer', 'minimum': 1}},
            'type': 'object',
            'properties': {
                'id': {'$ref': '#/definitions/id'},
                'parent': {'$ref': '#/definitions/id'},
            },
        })

        schema = SchemaLoader(schema_dir).load('pointer.json')

        assert schema['properties']['id'] == {'type': 'integer', 'minimum': 1}
        assert schema['properties']['parent'] == {'type': 'integer', 'minimum': 1}

    def test_nested_file_refs(self, schema_dir):
        write_schema(schema_dir, 'nested/outer.json', {
            'type': 'object',
            'properties': {'user': {'$ref': '../user.json'}},
        })

        schema = SchemaLoader(schema_dir).load('nested/outer.json')

        assert schema['properties']['user']['properties']['name']['minLength'] == 1

    def test_ref_siblings_merged(self, schema_dir):
        write_schema(schema_dir, 'described.json', {
            'type': 'object',
            'properties': {
                'name': {'$ref': 'defs/name.json', 'description': 'Display name'},
            },
        })

        schema = SchemaLoader(schema_dir).load('described.json')

        assert schema['properties']['name'] == {
            'type': 'string',
            'minLength': 1,
            'description': 'Display name',
        }

    def test_default_values_left_alone(self, schema_dir):
        write_schema(schema_dir, 'defaults.json', {
            'type': 'object',
            'properties': {'filter': {'type': 'object', 'default': {'$ref': 'not-a-ref'}}},
        })

        schema = SchemaLoader(schema_dir).load('defaults.json')

        assert schema['properties']['filter']['default'] == {'$ref': 'not-a-ref'}

    def test_property_named_like_keyword(self, schema_dir):
        write_schema(schema_dir, 'keywords.json', {
            'type': 'object',
            'properties': {'default': {'$ref': 'defs/name.json'}},
        })

        schema = SchemaLoader(schema_dir).load('keywords.json')

        assert schema['properties']['default'] == {'type': 'string', 'minLength': 1}

    def test_returns_independent_copies(self, schema_dir):
        loader = SchemaLoader(schema_dir)

        first = loader.load('user.json')
        first['properties']['id']['type'] = 'string'

        assert loader.load('user.json')['properties']['id'] == {'type': 'integer'}


class TestFailures:
    """Tests for unresolvable schemas"""

    def test_missing_file(self, schema_dir):
        with pytest.raises(SchemaLoadError) as exc:
            SchemaLoader(schema_dir).load('missing.json')

        message = str(exc.value)
        assert 'missing.json' in message
        assert str(BUNDLED_SCHEMAS_PATH) in message
        assert str(schema_dir) in message
        assert exc.value.name == 'missing.json'

    def test_is_registration_error(self, schema_dir):
        with pytest.raises(RegistrationError):
            SchemaLoader(schema_dir).load('missing.json')

    def test_missing_cross_file_ref(self, schema_dir):
        write_schema(schema_dir, 'broken.json', {
            'type': 'object',
            'properties': {'x': {'$ref': 'defs/nope.json'}},
        })

        with pytest.raises(SchemaLoadError):
            SchemaLoader(schema_dir).load('broken.json')

    def test_invalid_json(self, schema_dir):
        (schema_dir / 'garbage.json').write_text('{not json', encoding='utf-8')

        with pytest.raises(SchemaLoadError):
            SchemaLoader(schema_dir).load('garbage.json')

    def test_circular_ref(self, schema_dir):
        write_schema(schema_dir, 'tree.json', {
            'definitions': {
                'node': {
                    'type': 'object',
                    'properties': {'child': {'$ref': '#/definitions/node'}},
                },
            },
            '$ref': '#/definitions/node',
        })

        with pytest.raises(SchemaLoadError) as exc:
            SchemaLoader(schema_dir).load('tree.json')
        assert 'Circular' in str(exc.value.__cause__)

    def test_empty_name(self, schema_dir):
        with pytest.raises(SchemaLoadError):
            SchemaLoader(schema_dir).load('')
