"""
Custom error classes for the application
"""


class RelayError(Exception):
    """Base exception for request failures surfaced to the caller"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(RelayError):
    """Malformed or missing request fields"""
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(RelayError):
    """Missing or unrecognized credential"""
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(RelayError):
    """Signature or channel mismatch"""
    status_code = 403
    default_message = "Forbidden"


class ServiceUnavailable(RelayError):
    """Required server-side configuration is missing"""
    status_code = 503
    default_message = "Server not configured"


class PublishFailed(RelayError):
    """Broadcast provider call failed"""
    status_code = 500
    default_message = "Failed to publish message"


class MalformedToken(ValueError):
    """Session token could not be split or decoded"""
    pass


class SessionError(Exception):
    """Client could not obtain or use a session token"""
    pass


class WorkflowError(Exception):
    """Client could not deliver a message to the workflow webhook"""
    pass
