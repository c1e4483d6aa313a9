"""Pydantic schemas for API responses."""

from pydantic import BaseModel


class StatusMessage(BaseModel):
    message: str
