# services/school_management/schemas/tutors.py

from pydantic import EmailStr
from typing import Dict, List, Optional
from datetime import datetime

from .base import CamelModel


class TutorCreate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None


class TutorUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None


class TutorOut(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    is_active: bool


class TutorBrief(CamelModel):
    id: str
    name: str
    email: str
    phone: str


class TutorCreateResponse(CamelModel):
    tutor: TutorBrief
    temporary_password: str


class ClassTutorOfOut(CamelModel):
    section_id: str
    section_name: str
    grade_name: str


class TutorSummaryOut(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    is_active: bool
    created_at: datetime
    class_tutor_of: List[ClassTutorOfOut]
    subject_assignments_count: int


class TutorSchoolOut(CamelModel):
    id: str
    name: str
    code: str


class TutorDetailOut(CamelModel):
    id: str
    name: str
    email: str
    phone: str
    is_active: bool
    school: TutorSchoolOut
    class_tutor_of: List[ClassTutorOfOut]
    assignments: Dict[str, List[str]]
    assignments_count: int


class TutorIdentityOut(CamelModel):
    id: str
    name: str
    email: str


class PasswordResetResponse(CamelModel):
    message: str
    tutor: TutorIdentityOut
    temporary_password: str
