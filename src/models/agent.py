"""Agent models - field agents that receive distributed tasks."""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator


PHONE_PATTERN = r"^\+[1-9]\d{1,14}$"


class Agent(BaseModel):
    """Agent record as stored in the agents table."""
    agent_id: str = Field(..., description="Agent ID (ULID text)")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Contact e-mail (unique)")
    phone: str = Field(..., description="Phone number with country code")
    password_hash: Optional[str] = Field(None, exclude=True, repr=False, description="Credential hash")
    created_at: Optional[str] = None

    def to_response(self) -> dict:
        return {
            "id": self.agent_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "createdAt": self.created_at,
        }


class AgentCreate(BaseModel):
    """Input for registering a new agent."""
    name: str = Field(..., min_length=3, description="Name must be at least 3 characters")
    email: EmailStr = Field(..., description="Contact e-mail")
    phone: str = Field(
        ...,
        pattern=PHONE_PATTERN,
        description="Mobile number including country code, e.g. +911234567890"
    )
    password: str = Field(..., min_length=8, repr=False, description="Initial credential")

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_whitespace(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value
