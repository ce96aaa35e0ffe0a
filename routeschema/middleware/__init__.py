"""
Middleware for registered routes.

Provides:
- Error envelope standardization (uniform {status, message, messages})
- Request ID injection (X-Request-ID) for log correlation
"""

from .error_envelope import setup_error_handlers, translate, respond
from .request_id import setup_request_id_middleware

__all__ = [
    'setup_error_handlers',
    'setup_request_id_middleware',
    'translate',
    'respond',
]
