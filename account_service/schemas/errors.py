# account_service/schemas/errors.py
"""
Pydantic schema for error responses.

Every error, including request validation and rate limiting, uses the same
envelope. Built by the global exception handlers in main.py.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error envelope: {"status": "fail", "message": "..."}."""

    status: str = Field(default="fail")
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
