# services/school_management/schemas/assignments.py

from typing import Dict, List, Optional

from .base import CamelModel


class SmartAssignRequest(CamelModel):
    """
    Bulk assignment body.

    `assignments` maps a "<grade name>-<section letter>" key (e.g. "Grade 1-A")
    to the subject names the tutor teaches in that section. `class_grade` and
    `class_section` optionally name the section the tutor becomes class tutor of.
    """
    tutor_id: Optional[str] = None
    assignments: Dict[str, List[str]] = {}
    class_grade: Optional[str] = None
    class_section: Optional[str] = None


class ClassTutorRequest(CamelModel):
    tutor_id: Optional[str] = None


class SubjectAssignRequest(CamelModel):
    tutor_id: Optional[str] = None
    section_subject_id: Optional[str] = None


class AssignmentItemOut(CamelModel):
    id: str
    grade: str
    section: str
    subject: str
    reactivated: Optional[bool] = None


class SkippedAssignmentOut(CamelModel):
    grade: str
    section: str
    subject: str
    reason: str


class ClassTutorAssignmentOut(CamelModel):
    grade: str
    section: str


class SmartAssignResponse(CamelModel):
    message: str
    tutor_id: str
    tutor_name: str
    created_assignments: List[AssignmentItemOut]
    skipped_assignments: List[SkippedAssignmentOut]
    class_tutor_assignment: Optional[ClassTutorAssignmentOut] = None
    errors: List[str]


class TutorAssignmentsOut(CamelModel):
    id: str
    tutor_id: str
    tutor_name: str
    tutor_email: str
    assignments: Dict[str, List[str]]
    class_grade: Optional[str] = None
    class_section: Optional[str] = None


class GradeRef(CamelModel):
    id: str
    name: str


class TutorContactOut(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None


class SectionTutorAssignmentOut(CamelModel):
    id: str
    tutor: TutorContactOut


class SectionSubjectAssignmentsOut(CamelModel):
    id: str
    name: str
    tutor_assignments: List[SectionTutorAssignmentOut]


class SectionAssignmentsOut(CamelModel):
    id: str
    name: str
    grade: GradeRef
    class_tutor: Optional[TutorContactOut] = None
    subjects: List[SectionSubjectAssignmentsOut]


class ClassTutorSectionOut(CamelModel):
    id: str
    name: str
    grade: GradeRef
    class_tutor: Optional[TutorContactOut] = None


class ClassTutorResponse(CamelModel):
    message: str
    section: ClassTutorSectionOut


class SubjectAssignmentOut(CamelModel):
    id: str
    tutor_id: str
    tutor_name: str
    subject: str
    grade: str
    section: str


class SubjectAssignResponse(CamelModel):
    message: str
    assignment: SubjectAssignmentOut


class ExistingAssignmentOut(CamelModel):
    id: str
    tutor_name: str
    subject: str
    section: str


class DuplicateCheckOut(CamelModel):
    is_duplicate: bool
    message: Optional[str] = None
    existing_assignment: Optional[ExistingAssignmentOut] = None
