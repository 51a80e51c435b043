# services/school_management/schemas/schools.py

from pydantic import EmailStr
from typing import Optional
from datetime import datetime

from .base import CamelModel


# Required fields are checked by the controller so a missing one is a 400, not a 422
class SchoolCreate(CamelModel):
    name: Optional[str] = None
    code: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    pincode: Optional[str] = None
    student_count: Optional[int] = None
    is_chained_school: Optional[bool] = False
    admin_name: Optional[str] = None
    admin_email: Optional[EmailStr] = None
    admin_phone: Optional[str] = None


class SchoolUpdate(CamelModel):
    name: Optional[str] = None
    code: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    pincode: Optional[str] = None
    student_count: Optional[int] = None
    is_active: Optional[bool] = None
    is_chained_school: Optional[bool] = None
    admin_name: Optional[str] = None
    admin_email: Optional[EmailStr] = None
    admin_phone: Optional[str] = None


class SchoolAdminOut(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None


class SchoolOut(CamelModel):
    id: str
    name: str
    code: str
    address: Optional[str] = None
    district: Optional[str] = None
    pincode: Optional[str] = None
    student_count: Optional[int] = None
    is_chained_school: bool
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None
    admin: Optional[SchoolAdminOut] = None


class AdminCredentialOut(CamelModel):
    email: str
    role: str


class SchoolCreateResponse(CamelModel):
    school: SchoolOut
    admin: AdminCredentialOut
    temporary_password: str
