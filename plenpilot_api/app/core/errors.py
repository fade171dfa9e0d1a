"""
Error types shared by the service layer.

Services raise ``ValueError`` for missing records or invalid state and
``PermissionError`` for role violations.  Failures of the underlying
record store are wrapped in ``ServiceError`` carrying a human-readable
message that is returned to the client as is.
"""


class ServiceError(RuntimeError):
    """A store operation failed; ``message`` is safe to show to users."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
