from fastapi import status


class StoreError(Exception):
    """Base class for failures raised by the data-access layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StoreError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "not found"):
        super().__init__(message)


class InvalidReference(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidProduct(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST


class UploadFailed(Exception):
    """Raised when the media host rejects or times out an upload."""
