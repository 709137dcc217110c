"""Application exceptions.

Services raise these; ``dental_portal.main`` renders them into the JSON
envelope with the matching HTTP status.
"""


class PortalError(Exception):
    """Base exception for all portal errors."""

    status_code = 500
    code = "PORTAL_ERROR"

    def __init__(self, message: str = ""):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class UnauthorizedError(PortalError):
    """Missing, invalid or expired session token."""

    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(UnauthorizedError):
    """Valid session whose role is not allowed here."""

    status_code = 403
    code = "FORBIDDEN"


class InvalidTokenError(PortalError):
    """Token is malformed, expired, or minted for another purpose."""

    status_code = 400
    code = "INVALID_TOKEN"


class NotFoundError(PortalError):
    """Raised when a referenced row does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")


class ConflictError(PortalError):
    """Raised when a row would violate a uniqueness rule."""

    status_code = 409
    code = "CONFLICT"


class InvalidInputError(PortalError):
    """Raised when a payload is missing data or carries a malformed value."""

    status_code = 400
    code = "INVALID_INPUT"


class ConfigurationError(PortalError):
    """Raised at startup when configuration is missing or unsafe."""

    code = "CONFIGURATION_ERROR"
