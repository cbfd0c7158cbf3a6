"""API response models."""

from pydantic import BaseModel, Field


class IPResponse(BaseModel):
    ip: str = Field(description="Resolved client address")
