"""
Tests for routeschema/routes/schema.py and the app factory.
"""

import pytest
from flask import jsonify

from routeschema.app import create_app


@pytest.fixture
def factory_app(schema_dir):
    app = create_app(schema_dir)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def registry(factory_app):
    return factory_app.extensions['routeschema']


class TestSchemaListing:
    """Tests for GET /schema"""

    def test_lists_itself(self, factory_app):
        response = factory_app.test_client().get('/schema')

        assert response.status_code == 200
        assert response.get_json() == {
            'GET /schema': {'body': False, 'query': True, 'response': True},
        }

    def test_lists_registered_routes(self, factory_app, registry):
        registry.post('/user', {'body': 'user.body.json'}, lambda route: jsonify({}))

        listing = factory_app.test_client().get('/schema').get_json()

        assert listing['POST /user'] == {'body': True, 'query': False, 'response': False}

    def test_single_route_schemas(self, factory_app, registry):
        registry.post('/user', {'body': 'user.body.json'}, lambda route: jsonify({}))

        result = factory_app.test_client().get('/schema?method=POST&url=/user').get_json()

        assert result['body']['properties']['name'] == {'type': 'string', 'minLength': 1}
        assert result['query'] is None
        assert result['response'] is None

    def test_unregistered_route(self, factory_app):
        result = factory_app.test_client().get('/schema?method=GET&url=/missing').get_json()
        assert result == {'body': None, 'query': None, 'response': None}

    def test_invalid_method(self, factory_app):
        response = factory_app.test_client().get('/schema?method=TRACE&url=/user')

        assert response.status_code == 400
        assert response.get_json()['message'] == 'validation error'

    def test_method_requires_url(self, factory_app):
        response = factory_app.test_client().get('/schema?method=GET')

        assert response.status_code == 400
        assert response.get_json()['messages'][0]['keyword'] == 'dependencies'

    def test_custom_prefix(self, schema_dir, app):
        from routeschema.contracts import Schemas
        from routeschema.routes import register_schema_routes

        registry = Schemas(app, schemas=schema_dir)
        binding = register_schema_routes(registry, prefix='/_schemas')

        assert binding.key == 'GET /_schemas'
        assert app.test_client().get('/_schemas').status_code == 200


class TestCreateApp:
    """Tests for create_app()"""

    def test_registry_attached(self, factory_app, schema_dir):
        registry = factory_app.extensions['routeschema']
        assert registry.schemas_path == schema_dir

    def test_error_envelope_installed(self, factory_app):
        response = factory_app.test_client().get('/nowhere')
        assert response.get_json()['status'] == 404
