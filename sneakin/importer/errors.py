"""
Caller errors for the import endpoint. All are terminal: no write has happened
and retrying the same request cannot succeed.
"""

MISSING_FIELDS_MESSAGE = "Missing required fields: row.title, row.goat_url"


class ImportRejected(Exception):
    """Base class: carries the HTTP status and the stable reason string."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthorized(ImportRejected):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class Forbidden(ImportRejected):
    status_code = 403

    def __init__(self, message: str = "Forbidden: admins only"):
        super().__init__(message)


class BadRequest(ImportRejected):
    status_code = 400
