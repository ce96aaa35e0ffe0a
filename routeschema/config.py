import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Schemas shipped with the package. Shared fragments live here and always
# resolve ahead of the application's own schema directory.
BUNDLED_SCHEMAS_PATH = Path(__file__).resolve().parent / 'schema'


def _get_schemas_path() -> Path:
    """
    Get the application schema root.

    Falls back to the bundled directory so a registry can be built without
    any configuration (tests, the schema listing route).
    """
    raw = os.getenv('ROUTESCHEMA_SCHEMAS_PATH')
    if not raw:
        return BUNDLED_SCHEMAS_PATH
    return Path(raw).expanduser().resolve()


class Config:
    SCHEMAS_PATH = _get_schemas_path()
    LOG_LEVEL = os.getenv('ROUTESCHEMA_LOG_LEVEL', 'INFO').upper()

    # Prefix for the self-describing schema listing route
    SCHEMA_ROUTE_PREFIX = os.getenv('ROUTESCHEMA_ROUTE_PREFIX', '/schema')

    # Expected client-facing outcomes, kept out of the operator log
    CLIENT_ERROR_STATUSES = frozenset({400, 401, 402, 403, 404})


def configure_logging(level: str = None) -> None:
    """
    Attach a stream handler to the routeschema logger hierarchy.

    Safe to call more than once; only the first call adds a handler.
    """
    logger = logging.getLogger('routeschema')
    logger.setLevel(level or Config.LOG_LEVEL)
    if logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s [%(name)s] %(message)s'
    ))
    logger.addHandler(handler)
