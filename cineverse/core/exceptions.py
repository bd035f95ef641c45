import functools
import logging
import traceback

from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError
from sqlalchemy.exc import InterfaceError, OperationalError


class BookingError(Exception):
    def __init__(self, message: str, status_code: int = 400, stack_trace: bool = False):
        self.message = message
        self.status_code = status_code
        self.stack_trace = traceback.format_exc() if stack_trace else None
        super().__init__(self.message)


class NotFoundError(BookingError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", status_code=404)


class ValidationError(BookingError):
    def __init__(self, message: str):
        super().__init__(message, status_code=422)


class ForbiddenError(BookingError):
    def __init__(self, message: str = "Not allowed"):
        super().__init__(message, status_code=403)


class SeatConflictError(BookingError):
    def __init__(self, seat_ids: list[str] | None = None):
        self.seat_ids = seat_ids or []
        super().__init__(
            "One or more seats are already booked, refresh the seat map and select again",
            status_code=409)


class StoreUnavailableError(BookingError):
    def __init__(self, message: str = "Backing store unavailable"):
        super().__init__(message, status_code=503, stack_trace=True)


# failures of the database or redis connection, as opposed to domain errors
STORE_ERRORS = (OperationalError, InterfaceError, RedisConnectionError, RedisTimeoutError, OSError)


def store_guard(func):
    """Translate store connectivity failures into StoreUnavailableError.

    Domain errors raised by the wrapped coroutine pass through untouched.
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except BookingError:
            raise
        except STORE_ERRORS as e:
            logging.error(f"store failure in {func.__qualname__}: {e}", exc_info=True)
            raise StoreUnavailableError() from e
    return wrapper
