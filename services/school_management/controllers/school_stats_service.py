# services/school_management/controllers/school_stats_service.py

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from services.school_management.controllers.grade_service import get_school_subjects, list_grades
from services.school_management.models.grades import Grade, Section, SectionSubject
from services.school_management.models.schools import School
from services.school_management.models.tutors import Tutor, TutorSubjectAssignment
from services.school_management.schemas.grades import GradeDetailOut


async def _get_school_or_404(school_id: str, db: AsyncSession) -> School:
    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")
    return school


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar_one()


def _active_sections(school_id: str):
    return (
        select(func.count(Section.id))
        .join(Grade, Section.grade_id == Grade.id)
        .where(Grade.school_id == school_id, Section.is_active == True)
    )


# --- DASHBOARD (one call for the school landing page) ---
async def get_dashboard_summary(school_id: str, db: AsyncSession):
    school = await _get_school_or_404(school_id, db)

    grades = await list_grades(school_id, db)
    result = await db.execute(
        select(Tutor.id, Tutor.name)
        .where(Tutor.school_id == school_id, Tutor.is_active == True)
        .order_by(Tutor.name)
    )
    tutors = [{"id": tutor_id, "name": name} for tutor_id, name in result.all()]
    section_count = await _count(db, _active_sections(school_id))
    subjects = await get_school_subjects(school_id, db)

    return {
        "school": {
            "id": school.id,
            "name": school.name,
            "code": school.code,
            "district": school.district,
            "isChainedSchool": school.is_chained_school,
            "studentCount": school.student_count,
        },
        "stats": {
            "totalClasses": len(grades),
            "totalSections": section_count,
            "totalTutors": len(tutors),
        },
        "grades": [GradeDetailOut.model_validate(g).model_dump(by_alias=True) for g in grades],
        "tutors": tutors,
        "subjects": subjects,
    }


# --- HEADER ---
async def get_school_header(school_id: str, db: AsyncSession):
    school = await _get_school_or_404(school_id, db)

    grade_count = await _count(
        db, select(func.count(Grade.id)).where(Grade.school_id == school_id, Grade.is_active == True)
    )
    section_count = await _count(db, _active_sections(school_id))
    tutor_count = await _count(
        db, select(func.count(Tutor.id)).where(Tutor.school_id == school_id, Tutor.is_active == True)
    )

    return {
        "id": school.id,
        "name": school.name,
        "code": school.code,
        "district": school.district,
        "isChainedSchool": school.is_chained_school,
        "isActive": school.is_active,
        "totalClasses": grade_count,
        "totalSections": section_count,
        "totalTutors": tutor_count,
        "studentCount": school.student_count or 0,
    }


# --- TOTALS ---
async def get_school_stats(school_id: str, db: AsyncSession):
    school = await _get_school_or_404(school_id, db)

    tutor_count = await _count(db, select(func.count(Tutor.id)).where(Tutor.school_id == school_id))
    active_tutor_count = await _count(
        db, select(func.count(Tutor.id)).where(Tutor.school_id == school_id, Tutor.is_active == True)
    )
    grade_count = await _count(
        db, select(func.count(Grade.id)).where(Grade.school_id == school_id, Grade.is_active == True)
    )
    section_count = await _count(db, _active_sections(school_id))
    subject_count = await _count(
        db,
        select(func.count(SectionSubject.id))
        .join(Section, SectionSubject.section_id == Section.id)
        .join(Grade, Section.grade_id == Grade.id)
        .where(Grade.school_id == school_id, SectionSubject.is_active == True),
    )
    assignment_count = await _count(
        db,
        select(func.count(TutorSubjectAssignment.id))
        .join(Tutor, TutorSubjectAssignment.tutor_id == Tutor.id)
        .where(Tutor.school_id == school_id, TutorSubjectAssignment.is_active == True),
    )
    with_class_tutor = await _count(db, _active_sections(school_id).where(Section.class_tutor_id.isnot(None)))

    return {
        "totalStudents": school.student_count or 0,
        "totalTutors": tutor_count,
        "activeTutors": active_tutor_count,
        "totalGrades": grade_count,
        "totalSections": section_count,
        "totalSubjects": subject_count,
        "totalAssignments": assignment_count,
        "sectionsWithClassTutor": with_class_tutor,
        "sectionsWithoutClassTutor": section_count - with_class_tutor,
    }
