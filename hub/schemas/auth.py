"""Pydantic schemas for the account endpoints."""

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    """Username and password, sent to both register and login."""
    username: str = Field(..., description="Account name shown as the uploader of files")
    password: str = Field(..., description="Plain password, hashed with bcrypt before storage")


class ApiKeyResponse(BaseModel):
    """A freshly issued API key. Any key issued earlier to the account stops working."""
    api_key: str = Field(..., description="Bearer token with the 'lsk_' prefix")
    user_id: str
