from __future__ import annotations

import logging
from typing import List

from .errors import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidInputError,
    NotFoundError,
    store_errors,
)
from .models import PublicUser, User
from .repositories import UserRepository
from .utils import normalize_email, normalize_text

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class UserService:
    """
    Registration, login and administration of users.

    The service owns normalization and validation; the repository only stores.
    Every method makes at most the repository calls it needs and keeps no state
    between calls.
    """

    def __init__(self, repository: UserRepository) -> None:
        self._repo = repository

    def register(self, user: User) -> None:
        """
        Normalize and store a new user.

        Raises:
            InvalidInputError: email or password is blank after normalization.
            AlreadyExistsError: the normalized email is already registered.
            StoreError: the repository failed.
        """
        email = normalize_email(user.email)
        password = normalize_text(user.password)
        if not email or not password:
            logger.info("Rejected registration with blank email or password")
            raise InvalidInputError("email and password are required")

        with store_errors("register user"):
            try:
                self._repo.find_by_email(email)
            except NotFoundError:
                pass
            else:
                logger.info("Registration refused, %s already exists", email)
                raise AlreadyExistsError()

            self._repo.insert(User(email=email, password=password))
        logger.info("Registered user %s", email)

    def login(self, email: str, password: str) -> None:
        """
        Check an email/password pair.

        Blank input, an unknown email and a wrong password all raise the same
        InvalidCredentialsError so callers cannot tell which emails exist.

        Raises:
            InvalidCredentialsError: the credentials do not match a stored user.
            StoreError: the repository failed.
        """
        email = normalize_email(email)
        password = normalize_text(password)
        if not email or not password:
            raise InvalidCredentialsError()

        with store_errors("authenticate user"):
            try:
                user = self._repo.find_by_email(email)
            except NotFoundError:
                logger.info("Failed login for unknown email")
                raise InvalidCredentialsError() from None

        if user.password != password:
            logger.info("Failed login for %s", email)
            raise InvalidCredentialsError()
        logger.debug("User %s logged in", email)

    def list(self) -> List[PublicUser]:
        """Return every user without passwords."""
        with store_errors("list users"):
            users = self._repo.list()
        return [u.to_public() for u in users]

    def clear(self) -> None:
        with store_errors("clear users"):
            self._repo.clear()
        logger.info("Cleared all users")
