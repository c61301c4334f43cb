"""Pydantic schemas for settings module."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SettingResponse(BaseModel):
    """Schema for setting response."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    value: str
    description: str | None = None
    updated_at: datetime


class SettingUpdate(BaseModel):
    """Schema for updating a setting value."""

    value: str = Field(..., max_length=5000)
    description: str | None = Field(default=None, max_length=500)
