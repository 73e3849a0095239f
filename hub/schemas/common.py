"""Error body shared by every endpoint."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human readable explanation")
    code: str = Field(..., description="Stable machine readable code, e.g. FILE_NOT_FOUND")


def error_responses(*status_codes: int) -> dict:
    """OpenAPI ``responses`` entries documenting the error body for each status."""
    return {code: {"model": ErrorResponse} for code in status_codes}
