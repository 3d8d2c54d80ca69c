import asyncio
import functools
import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class APIException(Exception):
    """Base class for errors surfaced to API callers."""
    def __init__(self, message: str, status_code: int = 400, code: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.code:
            body["code"] = self.code
        return body


class ValidationError(APIException):
    """Required field missing or malformed."""
    def __init__(self, message: str = "Missing fields"):
        super().__init__(message, 400)


class InvalidStatus(APIException):
    def __init__(self, status: str):
        super().__init__(f"Invalid status '{status}'. Expected 'Pending' or 'Paid'", 400)


class DuplicateId(APIException):
    def __init__(self, violation_id: str):
        super().__init__(f"Challan with id '{violation_id}' already exists", 400)


class NotFound(APIException):
    def __init__(self, message: str = "Challan not found"):
        super().__init__(message, 404)


class OwnershipConflict(APIException):
    """Vehicle number already registered to a different account."""
    def __init__(self, message: str = "This vehicle number is already registered with another email ID."):
        super().__init__(message, 409)


class ForbiddenOtherOwner(APIException):
    """Lookup of a vehicle owned by a different account."""
    def __init__(self, message: str = "This vehicle number is already registered with another email ID."):
        super().__init__(message, 403, code="VEHICLE_OWNED_BY_OTHER")


class StoreFailure(APIException):
    """Underlying store unreachable or returned an unexpected error."""
    def __init__(self, message: str = "Storage backend error"):
        super().__init__(message, 500)


def store_operation(func: Callable) -> Callable:
    """Translate store-level errors raised by an async service method into StoreFailure."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.exception(f"Store failure in {func.__qualname__}: {e}")
            raise StoreFailure() from e
    return wrapper
