"""Pydantic schemas for Policy (renewal) domain."""

from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Literal, Optional

from app.domain.schemas.client import ClientRead

PolicyStatus = Literal["active", "renewed", "lost"]


class PolicyBase(BaseModel):
    client_id: int
    policy_number: Optional[str] = None
    insurer: Optional[str] = None
    product: Optional[str] = None
    due_date: date
    premium: Optional[float] = None
    status: PolicyStatus = "active"
    notes: Optional[str] = None
    iof: Optional[float] = None
    net_premium: Optional[float] = None
    commission: Optional[float] = None
    plate: Optional[str] = None


class PolicyCreate(PolicyBase):
    pass


class PolicyUpdate(BaseModel):
    client_id: Optional[int] = None
    policy_number: Optional[str] = None
    insurer: Optional[str] = None
    product: Optional[str] = None
    due_date: Optional[date] = None
    premium: Optional[float] = None
    status: Optional[PolicyStatus] = None
    notes: Optional[str] = None
    iof: Optional[float] = None
    net_premium: Optional[float] = None
    commission: Optional[float] = None
    plate: Optional[str] = None

    @field_validator("client_id", "due_date", "status")
    @classmethod
    def reject_null(cls, value):
        # Omit the field to leave it unchanged; these columns are NOT NULL
        if value is None:
            raise ValueError("campo obrigatório não pode ser nulo")
        return value


class PolicyRead(PolicyBase):
    id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RenewalRead(PolicyRead):
    """Policy with its owning client embedded."""
    client: ClientRead


class PolicyFilter(BaseModel):
    client_id: Optional[int] = None
    status: Optional[PolicyStatus] = None
    due_date_from: Optional[date] = None
    due_date_to: Optional[date] = None
    limit: int = 1000
    offset: int = 0
