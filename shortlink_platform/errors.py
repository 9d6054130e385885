"""
Error taxonomy for Shortlink Platform.

Every failure the registry and analytics engine raise derives from
`ShortlinkError` and carries the HTTP status the presentation layer should
answer with. Validation errors are also `ValueError`s and lookup failures are
also `LookupError`s, so callers that only know the builtin hierarchy still work.
"""


class ShortlinkError(Exception):
    """Base class for all registry/analytics failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAliasError(ShortlinkError, ValueError):
    status_code = 400


class InvalidUrlError(ShortlinkError, ValueError):
    status_code = 400


class InvalidExpirationError(ShortlinkError, ValueError):
    status_code = 400


class AliasInUseError(ShortlinkError):
    status_code = 409


class NotFoundError(ShortlinkError, LookupError):
    status_code = 404


class CodeSpaceExhaustedError(ShortlinkError):
    """Raised when generated codes keep colliding past the retry cap."""

    status_code = 503
