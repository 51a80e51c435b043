# services/school_management/schemas/grades.py

from typing import List, Optional

from .base import CamelModel


class SectionInput(CamelModel):
    name: str
    subjects: Optional[List[str]] = None


class GradeCreate(CamelModel):
    grade_name: Optional[str] = None
    order: Optional[int] = None
    sections: Optional[List[SectionInput]] = None


# id present = rename/reconcile an existing section, absent = create one
class SectionUpsert(CamelModel):
    id: Optional[str] = None
    name: str
    subjects: Optional[List[str]] = None


class GradeUpdate(CamelModel):
    name: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None
    sections: Optional[List[SectionUpsert]] = None
    delete_section_ids: Optional[List[str]] = None


class SectionCreate(CamelModel):
    name: Optional[str] = None
    subjects: Optional[List[str]] = None


class SubjectCreate(CamelModel):
    name: Optional[str] = None


class SectionSubjectsUpdate(CamelModel):
    subjects: List[str]


class SubjectOut(CamelModel):
    id: str
    name: str


class SectionSubjectOut(CamelModel):
    id: str
    name: str
    section_id: str
    is_active: bool


class TutorRef(CamelModel):
    id: str
    name: str
    email: Optional[str] = None


class SubjectWithTutorsOut(CamelModel):
    id: str
    name: str
    tutor: Optional[TutorRef] = None
    tutors: List[TutorRef] = []


class SectionDetailOut(CamelModel):
    id: str
    name: str
    class_tutor: Optional[TutorRef] = None
    subjects: List[SubjectWithTutorsOut]


class GradeDetailOut(CamelModel):
    id: str
    name: str
    order: int
    sections_count: int
    sections: List[SectionDetailOut]


class SectionCreatedOut(CamelModel):
    id: str
    name: str
    subjects: List[SubjectOut]


class GradeCreatedOut(CamelModel):
    id: str
    name: str
    order: int
    sections: List[SectionCreatedOut]
    message: str


class SchoolRef(CamelModel):
    id: str
    name: str
    code: str


class GradeWithSchoolOut(GradeDetailOut):
    school: SchoolRef
