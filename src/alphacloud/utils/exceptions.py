"""Custom exception hierarchy for AlphaCloud."""


class AlphaCloudError(Exception):
    """Base exception for all AlphaCloud errors."""

    pass


class ConfigurationError(AlphaCloudError):
    """Error in application configuration."""

    pass


class APIError(AlphaCloudError):
    """A request to the AlphaCloud API ended in an error state."""

    def __init__(self, message: str, code: int | None = None) -> None:
        """Initialize API error.

        Args:
            message: Error message.
            code: The ErrorCode the request finished with, if available.
        """
        super().__init__(message)
        self.code = code
