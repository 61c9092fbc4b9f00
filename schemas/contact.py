"""
Contact Pydantic schemas for request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime


def _strip_required(value):
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
    return value


class ContactBase(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )


class ContactCreate(ContactBase):
    name: str = Field(..., min_length=1, max_length=255)
    receiver_address: str = Field(..., min_length=1, max_length=255)

    @field_validator("name", "receiver_address", mode="before")
    @classmethod
    def _not_blank(cls, v):
        return _strip_required(v)


class ContactUpdate(ContactBase):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    receiver_address: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("name", "receiver_address", mode="before")
    @classmethod
    def _not_blank(cls, v):
        return _strip_required(v)


class ContactResponse(ContactBase):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    receiver_address: str
    created_at: datetime
    updated_at: datetime
    version: int
