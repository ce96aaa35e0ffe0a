from flask import Flask

from .config import Config, configure_logging
from .contracts import Schemas


def create_app(schemas_path=None):
    """
    Build a Flask app with a route registry attached.

    The registry is available as app.extensions['routeschema']; the error
    envelope and the schema listing route are installed.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    configure_logging(app.config['LOG_LEVEL'])

    schemas = Schemas(app, schemas=schemas_path or app.config['SCHEMAS_PATH'])
    schemas.error()
    schemas.api()

    app.extensions['routeschema'] = schemas
    return app
