# flavatix_backend/app/services/errors.py
from __future__ import annotations

from fastapi import status


class FlavatixError(Exception):
    """Base for errors a service raises on purpose; main.py maps them to JSON responses."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(FlavatixError):
    status_code = status.HTTP_400_BAD_REQUEST

class Unauthorized(FlavatixError):
    status_code = status.HTTP_401_UNAUTHORIZED

class Forbidden(FlavatixError):
    status_code = status.HTTP_403_FORBIDDEN

class NotFound(FlavatixError):
    status_code = status.HTTP_404_NOT_FOUND

class Conflict(FlavatixError):
    status_code = status.HTTP_409_CONFLICT
