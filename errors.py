"""Error taxonomy for the bloglist API.

Every error carries the HTTP status it maps to and a fixed client-facing
message. The app-level handler turns any of them into ``{"error": message}``.
"""

from typing import Optional


class BlogApiError(Exception):
    """Base exception for all API errors."""

    http_status = 500

    def __init__(self, message: str, http_status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status

    def to_response(self) -> dict:
        return {"error": self.message}


# --- 400 -----------------------------------------------------------

class MalformedIdError(BlogApiError):
    http_status = 400

    def __init__(self):
        super().__init__("malformatted id")


class ValidationError(BlogApiError):
    """A request field is missing, too short, or collides with a stored value."""

    http_status = 400


# --- 401 -----------------------------------------------------------

class TokenMissingError(BlogApiError):
    http_status = 401

    def __init__(self):
        super().__init__("token missing")


class InvalidTokenError(BlogApiError):
    http_status = 401

    def __init__(self):
        super().__init__("invalid token")


class TokenExpiredError(BlogApiError):
    http_status = 401

    def __init__(self):
        super().__init__("token expired")


class UnauthorizedError(BlogApiError):
    http_status = 401


# --- 404 -----------------------------------------------------------

class NotFoundError(BlogApiError):
    http_status = 404

    def __init__(self, resource: str):
        super().__init__(f"{resource} not found")
        self.resource = resource
