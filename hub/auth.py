"""Authentication and security utilities."""

import uuid
from typing import Optional

import bcrypt
from fastapi import Header

from hub.config import API_KEY_PREFIX
from hub.exceptions import InvalidAPIKeyError


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Bcrypt hash of the password
    """
    password_bytes = password.encode('utf-8')
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt())
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Returns:
        True if password matches hash, False otherwise
    """
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


def generate_api_key() -> str:
    """
    Generate a new API Key in format {prefix}{uuid4}.
    """
    return f"{API_KEY_PREFIX}{uuid.uuid4()}"


def extract_api_key(authorization: Optional[str]) -> str:
    """
    Pull the API key out of a ``Bearer`` Authorization header.

    Raises:
        InvalidAPIKeyError: If the header is missing or malformed
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise InvalidAPIKeyError("Missing or malformed Authorization header")

    api_key = authorization[len("Bearer "):].strip()
    if not api_key.startswith(API_KEY_PREFIX):
        raise InvalidAPIKeyError("Invalid API key")
    return api_key


async def get_current_user(authorization: Optional[str] = Header(None)) -> str:
    """
    FastAPI dependency to validate API Key and extract user_id.

    Args:
        authorization: Authorization header value (format: "Bearer <api_key>")

    Returns:
        user_id of the authenticated user

    Raises:
        InvalidAPIKeyError: If the API Key is missing, malformed or unknown
    """
    from hub.services.auth_service import AuthService

    api_key = extract_api_key(authorization)
    user_id = AuthService().validate_api_key(api_key)
    if user_id is None:
        raise InvalidAPIKeyError("Invalid API key")
    return user_id
