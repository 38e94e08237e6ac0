import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

from reservations.core.errors import BookingError, ErrorCode
from reservations.schemas.common import ApiResponse

logger = logging.getLogger(__name__)


def as_envelope(failure_message: str):
    """
    Turn a workflow method into one that always returns an ``ApiResponse``.

    ``BookingError`` becomes a failed envelope carrying its code and message.
    Anything else is an infrastructure fault: the session is rolled back, the
    traceback is logged and the caller gets ``failure_message`` only.
    The decorated method's instance must expose the session as ``self.db``.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except BookingError as exc:
                self.db.rollback()
                logger.info("%s rejected: %s", func.__qualname__, exc)
                return ApiResponse.from_error(exc)
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception("%s failed on a database error", func.__qualname__)
                return ApiResponse.fail(ErrorCode.INTERNAL_ERROR, failure_message)
            except Exception:
                self.db.rollback()
                logger.exception("%s failed unexpectedly", func.__qualname__)
                return ApiResponse.fail(ErrorCode.INTERNAL_ERROR, failure_message)

        return wrapper

    return decorator
