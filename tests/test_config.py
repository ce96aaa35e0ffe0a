import logging

from routeschema.config import (
    BUNDLED_SCHEMAS_PATH,
    Config,
    _get_schemas_path,
    configure_logging,
)


def test_schemas_path_defaults_to_bundled(monkeypatch):
    monkeypatch.delenv('ROUTESCHEMA_SCHEMAS_PATH', raising=False)
    assert _get_schemas_path() == BUNDLED_SCHEMAS_PATH


def test_schemas_path_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv('ROUTESCHEMA_SCHEMAS_PATH', str(tmp_path))
    assert _get_schemas_path() == tmp_path.resolve()


def test_bundled_schemas_shipped():
    assert (BUNDLED_SCHEMAS_PATH / 'schema.query.json').is_file()
    assert (BUNDLED_SCHEMAS_PATH / 'defs' / 'method.json').is_file()


def test_client_error_statuses():
    assert Config.CLIENT_ERROR_STATUSES == {400, 401, 402, 403, 404}


def test_configure_logging_once():
    logger = logging.getLogger('routeschema')
    configure_logging('DEBUG')
    configure_logging('WARNING')

    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
