"""
Client Schemas.

Request/response schemas for clients and allies.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clinic.backend.core.utils import utc_today

FundsManagement = Literal["Self-Managed", "Advisor-Managed", "Custodian-Managed"]
OnboardingStatus = Literal["incomplete", "complete"]


def _not_in_future(value: date | None) -> date | None:
    if value is not None and value > utc_today():
        raise ValueError("Date of birth cannot be in the future")
    return value


class ClientCreate(BaseModel):
    """Schema for creating a client."""

    name: str = Field(..., min_length=1, max_length=255, examples=["Ava Thompson"])
    date_of_birth: date | None = Field(default=None, examples=["2018-04-12"])
    gender: str | None = Field(default=None, max_length=50)
    preferred_language: str | None = Field(default=None, max_length=100)
    contact_email: str | None = Field(default=None, max_length=255)
    contact_phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=2000)
    medical_history: str | None = Field(default=None, max_length=10000)
    communication_needs: str | None = Field(default=None, max_length=10000)
    therapy_preferences: str | None = Field(default=None, max_length=10000)
    funds_management: FundsManagement | None = None
    onboarding_status: OnboardingStatus = "incomplete"

    @field_validator("date_of_birth")
    @classmethod
    def check_date_of_birth(cls, value: date | None) -> date | None:
        return _not_in_future(value)


class ClientUpdate(BaseModel):
    """Schema for updating a client. Only supplied fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=50)
    preferred_language: str | None = Field(default=None, max_length=100)
    contact_email: str | None = Field(default=None, max_length=255)
    contact_phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=2000)
    medical_history: str | None = Field(default=None, max_length=10000)
    communication_needs: str | None = Field(default=None, max_length=10000)
    therapy_preferences: str | None = Field(default=None, max_length=10000)
    funds_management: FundsManagement | None = None
    onboarding_status: OnboardingStatus | None = None

    @field_validator("date_of_birth")
    @classmethod
    def check_date_of_birth(cls, value: date | None) -> date | None:
        return _not_in_future(value)


class ClientResponse(BaseModel):
    """Schema for a client in API responses."""

    id: str
    name: str
    date_of_birth: date | None
    gender: str | None
    preferred_language: str | None
    contact_email: str | None
    contact_phone: str | None
    address: str | None
    medical_history: str | None
    communication_needs: str | None
    therapy_preferences: str | None
    funds_management: str | None
    onboarding_status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientListResponse(BaseModel):
    """Schema for listing clients."""

    id: str
    name: str
    date_of_birth: date | None
    funds_management: str | None
    onboarding_status: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Allies
# =============================================================================


class AllyCreate(BaseModel):
    """Schema for adding an ally to a client."""

    name: str = Field(..., min_length=1, max_length=255)
    relationship: str | None = Field(default=None, max_length=100, examples=["Mother"])
    preferred_language: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=10000)
    access_therapeutics: bool = True
    access_financials: bool = False

    @model_validator(mode="after")
    def require_access(self) -> "AllyCreate":
        if not (self.access_therapeutics or self.access_financials):
            raise ValueError("An ally needs therapeutic or financial access")
        return self


class AllyUpdate(BaseModel):
    """Schema for updating an ally."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    relationship: str | None = Field(default=None, max_length=100)
    preferred_language: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=10000)
    access_therapeutics: bool | None = None
    access_financials: bool | None = None
    is_archived: bool | None = None


class AllyResponse(BaseModel):
    """Schema for an ally in API responses."""

    id: str
    client_id: str
    name: str
    relationship: str | None
    preferred_language: str | None
    email: str | None
    phone: str | None
    notes: str | None
    access_therapeutics: bool
    access_financials: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
