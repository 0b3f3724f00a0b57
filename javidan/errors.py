"""
Error taxonomy for the archive API.

Every error carries the HTTP status it maps to; the handlers registered in
javidan.main render them as {"success": false, "error": message}.
"""


class ArchiveError(Exception):
    """Base class for errors that surface to the client"""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ArchiveError):
    status_code = 400


class UnauthorizedError(ArchiveError):
    status_code = 401


class ForbiddenError(ArchiveError):
    status_code = 403


class ConflictError(ArchiveError):
    """Field already holds a value"""
    status_code = 403


class NotFoundError(ArchiveError):
    status_code = 404


class RateLimitError(ArchiveError):
    status_code = 429


class StorageError(ArchiveError):
    """Object storage failed; detail is logged, not returned"""
    status_code = 500


class UpstreamError(ArchiveError):
    """A third-party fetch failed"""
    status_code = 500
