"""
Error taxonomy shared by the portal.

Every class is a werkzeug HTTPException so a failure raised deep inside a
service surfaces with the right status code; `app.create_app` registers a
handler for each class that turns them into `{"error": ...}` for /api/ and
an HTML page or flash banner elsewhere.
"""
from werkzeug.exceptions import HTTPException


class PortalError(HTTPException):
    code = 500
    description = "Unexpected error."

    def __init__(self, description=None, **extra):
        super().__init__(description or self.description)
        self.extra = extra

    def to_dict(self):
        body = {"error": self.description}
        body.update(self.extra)
        return body


class ValidationError(PortalError):
    """Bad form / JSON input, caught before any write."""
    code = 400
    description = "Invalid input."


class AuthenticationError(PortalError):
    code = 401
    description = "Not authenticated - please log in again."


class AuthorizationError(PortalError):
    code = 403
    description = "Insufficient permissions."


class NotFoundError(PortalError):
    code = 404
    description = "Record not found."


class ConflictError(PortalError):
    code = 409
    description = "Conflicting update."


class BackendError(PortalError):
    """The row store failed; message is the backend's own text."""
    code = 500
    description = "Backend failure."
