from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    message: str
    error: Optional[str] = None
