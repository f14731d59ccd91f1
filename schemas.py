from datetime import datetime
from enum import Enum
from pydantic import BaseModel, EmailStr, Field, StrictInt, StrictStr
from pydantic.alias_generators import to_camel
from typing import Optional, Union

# Integer ids on the REST backend, uuid strings for Supabase auth users
RecordId = Union[int, str]


class CamelModel(BaseModel):
    """Accepts both the REST camelCase keys and the Supabase snake_case columns."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# -----------------------------
# Status / Role Enumerations
# -----------------------------
class Role(str, Enum):
    user = "user"
    admin = "admin"


class ComplaintStatus(str, Enum):
    pending = "pending"
    assigned = "assigned"
    completed = "completed"
    cancelled = "cancelled"


class ReportStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    resolved = "resolved"


# -----------------------------
# Entity Schemas
# -----------------------------
class ProfileSchema(CamelModel):
    id: RecordId
    name: str
    email: str
    role: Role = Role.user
    credits: int = Field(default=0, ge=0)


class WorkerSchema(CamelModel):
    id: RecordId
    name: str
    phone: str
    area: str


class ComplaintSchema(CamelModel):
    id: RecordId
    user_id: RecordId
    name: str
    location: str
    description: str
    photo: Optional[str] = None
    status: ComplaintStatus = ComplaintStatus.pending
    assigned_worker: Optional[WorkerSchema] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReportSchema(CamelModel):
    id: RecordId
    user_id: RecordId
    complaint_id: RecordId
    description: str
    status: ReportStatus = ReportStatus.pending
    created_at: Optional[datetime] = None


class RedeemCodeSchema(CamelModel):
    id: RecordId
    code: str
    user_id: RecordId
    created_at: Optional[datetime] = None
    redeemed: bool = False


# -----------------------------
# Registration/Login Schemas
# -----------------------------
class RegisterSchema(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginSchema(CamelModel):
    email: str
    password: str


class LoginResponse(CamelModel):
    success: bool
    user: ProfileSchema
    token: str


# -----------------------------
# Complaint / Report Requests
# -----------------------------
class ComplaintCreateSchema(CamelModel):
    user_id: int
    name: str
    location: str
    description: str
    photo: Optional[str] = None


class AssignWorkerSchema(CamelModel):
    worker_id: int


class ComplaintStatusSchema(CamelModel):
    status: ComplaintStatus


class ReportCreateSchema(CamelModel):
    user_id: int
    complaint_id: int
    description: str = Field(min_length=1)


class ReportStatusSchema(CamelModel):
    status: ReportStatus


class AddCreditsSchema(CamelModel):
    credits: int = Field(gt=0)


class RedeemCodeCreateSchema(CamelModel):
    user_id: int


# -----------------------------
# Mutation Envelopes
# -----------------------------
class ComplaintEnvelope(CamelModel):
    success: bool
    complaint: Optional[ComplaintSchema] = None


class UserEnvelope(CamelModel):
    success: bool
    user: Optional[ProfileSchema] = None


class ReportEnvelope(CamelModel):
    success: bool
    report: Optional[ReportSchema] = None


class RedeemCodeEnvelope(CamelModel):
    success: bool
    redeem_code: Optional[RedeemCodeSchema] = None


# -----------------------------
# Dashboard Requests
# -----------------------------
class SignupSchema(CamelModel):
    name: str
    email: str
    password: str


class DashboardAssignSchema(CamelModel):
    # Empty selection is a client-side error, so the field may be missing
    worker_id: Optional[RecordId] = None


class DashboardCreditsSchema(CamelModel):
    # Raw form input; parsed and validated by the credits view
    credits: Union[StrictInt, StrictStr, None] = None
