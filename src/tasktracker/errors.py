from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """
    Base class for every error the service layer reports to its callers.

    Subclasses carry a short default message that the HTTP layer returns as-is.
    """

    default_message = "service error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class InvalidInputError(ServiceError):
    """A required field is missing or blank after normalization."""

    default_message = "invalid input"


class InvalidCredentialsError(ServiceError):
    """Unknown email or wrong password. The two cases are not distinguished."""

    default_message = "invalid credentials"


class AlreadyExistsError(ServiceError):
    default_message = "user already exists"


class InvalidIDError(ServiceError):
    default_message = "invalid todo id"


class NotFoundError(ServiceError):
    """Raised by repositories when no record matches the given key."""

    default_message = "not found"


class StoreError(ServiceError):
    """The backing store failed, timed out, or the call was cancelled."""

    default_message = "storage error"


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """
    Re-raise anything a repository throws that is not a ServiceError as a
    StoreError, chained to the original exception.
    """
    try:
        yield
    except ServiceError:
        raise
    except Exception as exc:
        logger.error("Store failure while trying to %s", action, exc_info=True)
        raise StoreError(f"could not {action}") from exc
