"""Account registration, login and API key lookup."""

import sqlite3
from typing import Optional, Tuple

from common.logging_config import get_logger
from hub.auth import generate_api_key, hash_password, verify_password
from hub.exceptions import InvalidCredentialsError, InvalidInputError, UserAlreadyExistsError
from hub.repositories.user_repository import UserRepository
from hub.utils import generate_uuid, utc_now

logger = get_logger(__name__)


class AuthService:
    """
    Issues and checks API keys.

    Each account holds exactly one live key: registering issues the first,
    every successful login replaces it.
    """

    def __init__(self, user_repo: Optional[UserRepository] = None):
        self.user_repo = user_repo or UserRepository()

    def register_user(self, username: str, password: str) -> Tuple[str, str]:
        """
        Returns:
            ``(api_key, user_id)`` of the new account

        Raises:
            InvalidInputError: If the username or password is blank
            UserAlreadyExistsError: If the username is taken
        """
        if not username or not username.strip() or not password:
            raise InvalidInputError("Username and password are required")

        if self.user_repo.get_by_username(username) is not None:
            logger.warning(f"Registration refused, '{username}' is taken")
            raise UserAlreadyExistsError(f"Username '{username}' already exists")

        user_id = generate_uuid()
        api_key = generate_api_key()
        try:
            self.user_repo.create_user(
                user_id=user_id,
                username=username,
                password_hash=hash_password(password),
                api_key=api_key,
                created_at=utc_now(),
            )
        except sqlite3.IntegrityError:
            # lost a race with a concurrent registration of the same name
            logger.warning(f"Registration refused, '{username}' was taken concurrently")
            raise UserAlreadyExistsError(f"Username '{username}' already exists")

        logger.info(f"Registered '{username}' [user_id={user_id}]")
        return api_key, user_id

    def login_user(self, username: str, password: str) -> Tuple[str, str]:
        """
        Returns:
            ``(api_key, user_id)`` with a newly issued key

        Raises:
            InvalidCredentialsError: If the username is unknown or the password is wrong
        """
        user = self.user_repo.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Login refused for '{username}'")
            raise InvalidCredentialsError("Invalid username or password")

        api_key = generate_api_key()
        self.user_repo.update_api_key(user.user_id, api_key, utc_now())
        logger.info(f"Issued a new API key for '{username}' [user_id={user.user_id}]")
        return api_key, user.user_id

    def validate_api_key(self, api_key: str) -> Optional[str]:
        user = self.user_repo.get_by_api_key(api_key)
        if user is None:
            logger.warning("Rejected unknown API key")
            return None
        return user.user_id
