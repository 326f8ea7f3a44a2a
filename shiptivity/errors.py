"""
Error kinds surfaced by the lane engine.

Every error carries a short ``message`` and a ``long_message`` so the HTTP
layer can hand them back to clients verbatim.
"""


class ShiptivityError(Exception):
    """Base class for all board errors."""

    def __init__(self, message: str, long_message: str = ""):
        super().__init__(message)
        self.message = message
        self.long_message = long_message

    def to_dict(self) -> dict:
        return {"message": self.message, "long_message": self.long_message}


class InvalidIdError(ShiptivityError):
    """Raised when a client id cannot be parsed as an integer."""
    pass


class NotFoundError(ShiptivityError):
    """Raised when a client id does not resolve to a stored client."""
    pass


class InvalidStatusError(ShiptivityError):
    """Raised when a requested status is not one of the lane names."""
    pass


class InvalidPriorityError(ShiptivityError):
    """Raised when a requested priority is not a non-negative integer."""
    pass


class OperationFailedError(ShiptivityError):
    """Raised when storage fails mid-move. The move has been rolled back."""
    pass


class InvalidBodyError(ShiptivityError):
    """Raised when a request body is not a JSON object."""
    pass
