"""
Error taxonomy for the registry API.
Every error carries a machine-readable kind so clients can branch on it
(e.g. re-login on `unauthorized`, show "not permitted" on `forbidden`).
"""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException


class RegistryError(Exception):
    status_code = 500
    kind = 'error'
    default_message = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class ValidationError(RegistryError):
    status_code = 400
    kind = 'validation_error'
    default_message = 'Invalid request'


class Unauthorized(RegistryError):
    status_code = 401
    kind = 'unauthorized'
    default_message = 'Unauthorized'


class Forbidden(RegistryError):
    status_code = 403
    kind = 'forbidden'
    default_message = 'Access denied'


class NotFound(RegistryError):
    status_code = 404
    kind = 'not_found'
    default_message = 'Not found'


class Conflict(RegistryError):
    status_code = 409
    kind = 'conflict'
    default_message = 'Conflict'


class StorageFailure(RegistryError):
    status_code = 500
    kind = 'storage_failure'
    default_message = 'Storage unavailable'


def register_error_handlers(app):
    """Render registry errors and stray HTTP errors under /api as JSON"""

    @app.errorhandler(RegistryError)
    def handle_registry_error(error):
        if error.status_code >= 500:
            app.logger.error(f"{error.kind}: {error.message} - {request.path}")
        else:
            app.logger.warning(f"{error.kind}: {error.message} - {request.path}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        if error.code == 404:
            return jsonify({'error': 'API route not found', 'kind': NotFound.kind}), 404
        if error.code == 413:
            return jsonify({'error': 'Payload too large', 'kind': ValidationError.kind}), 413
        if error.code == 400:
            return jsonify({'error': 'Malformed request', 'kind': ValidationError.kind}), 400
        return jsonify({'error': error.description, 'kind': 'error'}), error.code
