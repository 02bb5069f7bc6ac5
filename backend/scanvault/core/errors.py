"""Service-layer errors. The HTTP layer renders them as {"detail": message} with status_code."""
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 400
    code = "service_error"

    def __init__(self, message: str = "", *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message or self.code.replace("_", " ").capitalize()

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message}


class Unauthenticated(ServiceError):  status_code = 401; code = "not_authenticated"
class MissingPayload(ServiceError):   status_code = 400; code = "no_file_uploaded"
class NotFound(ServiceError):         status_code = 404; code = "not_found"
class UploadTooLarge(ServiceError):   status_code = 413; code = "upload_too_large"
class RateLimited(ServiceError):      status_code = 429; code = "too_many_requests"
class StorageFailure(ServiceError):   status_code = 500; code = "storage_failure"


class CleanupFailure(ServiceError):
    """Staged file could not be removed. Logged by callers, never surfaced."""
    status_code = 500
    code = "cleanup_failure"


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Translate database errors raised inside the block into StorageFailure."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("Database error during %s", action)
        raise StorageFailure("Internal storage error") from e
