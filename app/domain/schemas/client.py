"""Pydantic schemas for Client domain."""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional


class ClientBase(BaseModel):
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    birthday: Optional[date] = None


class ClientCreate(ClientBase):
    pass


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    birthday: Optional[date] = None

    @field_validator("name")
    @classmethod
    def reject_null_name(cls, value):
        if value is None:
            raise ValueError("nome não pode ser nulo")
        return value


class ClientRead(ClientBase):
    id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ClientFilter(BaseModel):
    search: Optional[str] = None
    limit: int = 1000
    offset: int = 0
