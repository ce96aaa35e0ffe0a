"""
Request ID middleware - correlates error log records with requests.

The error translator reads g.request_id for its log records and echoes it
in the X-Request-ID header of error responses.
"""

import uuid

from flask import g, request


def setup_request_id_middleware(router) -> None:
    """
    Inject a request ID for every request handled by router.

    Uses the incoming X-Request-ID header when present, otherwise a new
    UUID4. Works on apps and blueprints.

    Args:
        router: Flask app or Blueprint
    """

    @router.before_request
    def inject_request_id():
        request_id = request.headers.get('X-Request-ID')
        if not request_id:
            request_id = str(uuid.uuid4())
        g.request_id = request_id

    @router.after_request
    def add_request_id_header(response):
        if hasattr(g, 'request_id'):
            response.headers['X-Request-ID'] = g.request_id
        return response
