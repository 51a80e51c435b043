# services/school_management/controllers/grade_service.py

import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from services.school_management.controllers.audit_service import log_audit
from services.school_management.models.grades import Grade, Section, SectionSubject
from services.school_management.models.schools import School
from services.school_management.models.tutors import TutorSubjectAssignment
from services.school_management.schemas.grades import (
    GradeCreate,
    GradeUpdate,
    SectionCreate,
    SectionSubjectsUpdate,
    SubjectCreate,
)
from shared.auth import CurrentUser

logger = logging.getLogger(__name__)


# --- LOOKUPS SCOPED TO A SCHOOL ---
async def get_grade_in_school(grade_id: str, school_id: str, db: AsyncSession) -> Grade:
    result = await db.execute(select(Grade).where(Grade.id == grade_id, Grade.school_id == school_id))
    grade = result.scalars().first()
    if not grade:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grade not found")
    return grade


async def get_section_in_school(section_id: str, school_id: str, db: AsyncSession) -> Section:
    result = await db.execute(
        select(Section)
        .join(Grade, Section.grade_id == Grade.id)
        .where(Section.id == section_id, Grade.school_id == school_id)
        .options(selectinload(Section.grade))
    )
    section = result.scalars().first()
    if not section:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")
    return section


async def get_subject_in_school(subject_id: str, school_id: str, db: AsyncSession) -> SectionSubject:
    result = await db.execute(
        select(SectionSubject)
        .join(Section, SectionSubject.section_id == Section.id)
        .join(Grade, Section.grade_id == Grade.id)
        .where(SectionSubject.id == subject_id, Grade.school_id == school_id)
        .options(selectinload(SectionSubject.section).selectinload(Section.grade))
    )
    subject = result.scalars().first()
    if not subject:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")
    return subject


def clean_names(names) -> List[str]:
    """Strip, drop blanks and duplicates, keep first-seen order."""
    seen = []
    for name in names or []:
        name = (name or "").strip()
        if name and name not in seen:
            seen.append(name)
    return seen


async def reconcile_section_subjects(db: AsyncSession, section_id: str, desired) -> List[SectionSubject]:
    """
    Make the section's active subjects exactly `desired`, matched by name.

    Missing names are created, inactive ones are reactivated in place (same id)
    and active ones outside the list are deactivated. Rows are never duplicated.
    """
    wanted = clean_names(desired)
    result = await db.execute(select(SectionSubject).where(SectionSubject.section_id == section_id))
    existing = {subject.name: subject for subject in result.scalars().all()}

    for name in wanted:
        subject = existing.get(name)
        if subject is None:
            subject = SectionSubject(name=name, section_id=section_id, is_active=True)
            db.add(subject)
            existing[name] = subject
        elif not subject.is_active:
            subject.is_active = True

    for name, subject in existing.items():
        if name not in wanted and subject.is_active:
            subject.is_active = False

    await db.flush()
    return sorted((existing[name] for name in wanted), key=lambda s: s.name)


async def _create_section(db: AsyncSession, grade_id: str, name: str, subjects) -> dict:
    section = Section(name=name, grade_id=grade_id, is_active=True)
    db.add(section)
    await db.flush()

    created = []
    for subject_name in clean_names(subjects):
        subject = SectionSubject(name=subject_name, section_id=section.id, is_active=True)
        db.add(subject)
        created.append(subject)
    await db.flush()

    return {
        "id": section.id,
        "name": section.name,
        "subjects": [{"id": s.id, "name": s.name} for s in created],
    }


# --- NESTED READ VIEW ---
def _tutor_ref(tutor):
    if tutor is None:
        return None
    return {"id": tutor.id, "name": tutor.name, "email": tutor.email}


def section_view(section: Section) -> dict:
    subjects = []
    for subject in sorted((s for s in section.subjects if s.is_active), key=lambda s: s.name):
        assignments = sorted(
            (a for a in subject.tutor_assignments if a.is_active),
            key=lambda a: a.created_at,
        )
        tutors = [_tutor_ref(a.tutor) for a in assignments]
        subjects.append({
            "id": subject.id,
            "name": subject.name,
            "tutor": tutors[0] if tutors else None,
            "tutors": tutors,
        })

    return {
        "id": section.id,
        "name": section.name,
        "class_tutor": _tutor_ref(section.class_tutor),
        "subjects": subjects,
    }


def grade_view(grade: Grade) -> dict:
    sections = sorted((s for s in grade.sections if s.is_active), key=lambda s: s.name)
    return {
        "id": grade.id,
        "name": grade.name,
        "order": grade.order,
        "sections_count": len(sections),
        "sections": [section_view(s) for s in sections],
    }


def nested_grade_query():
    # populate_existing so reads after writes in the same session see fresh collections
    return (
        select(Grade)
        .options(
            selectinload(Grade.sections).selectinload(Section.class_tutor),
            selectinload(Grade.sections)
            .selectinload(Section.subjects)
            .selectinload(SectionSubject.tutor_assignments)
            .selectinload(TutorSubjectAssignment.tutor),
        )
        .execution_options(populate_existing=True)
    )


async def load_grade_view(grade_id: str, db: AsyncSession) -> dict:
    result = await db.execute(nested_grade_query().where(Grade.id == grade_id))
    return grade_view(result.scalars().one())


# --- GRADE CREATION ---
async def create_grade(school_id: str, payload: GradeCreate, db: AsyncSession, current_user: CurrentUser):
    """
    Create a grade with its sections and their subjects, all or nothing.

    `order` defaults to one past the highest order in the school.
    """
    if not payload.grade_name or not payload.sections:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields: gradeName and sections array",
        )

    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")

    result = await db.execute(select(Grade).where(Grade.school_id == school_id, Grade.name == payload.grade_name))
    if result.scalars().first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Grade already exists in this school")

    order = payload.order
    if order is None:
        max_order = (await db.execute(
            select(func.max(Grade.order)).where(Grade.school_id == school_id)
        )).scalar_one()
        order = (max_order or 0) + 1

    try:
        grade = Grade(name=payload.grade_name, school_id=school_id, order=order, is_active=True)
        db.add(grade)
        await db.flush()

        sections = []
        for section_data in payload.sections:
            sections.append(await _create_section(db, grade.id, section_data.name, section_data.subjects))

        log_audit(db, current_user, "CREATE_GRADE", "Grade", grade.id, {
            "gradeName": grade.name,
            "sectionsCount": len(sections),
            "schoolId": school_id,
        })
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Duplicate grade, section or subject name")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Create grade failed in school %s", school_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create grade")

    return {
        "id": grade.id,
        "name": grade.name,
        "order": grade.order,
        "sections": sections,
        "message": "Grade created successfully",
    }


# --- GRADE READS ---
async def list_grades(school_id: str, db: AsyncSession):
    result = await db.execute(
        nested_grade_query()
        .where(Grade.school_id == school_id, Grade.is_active == True)
        .order_by(Grade.order)
    )
    return [grade_view(grade) for grade in result.scalars().all()]


async def get_grade(school_id: str, grade_id: str, db: AsyncSession):
    result = await db.execute(
        nested_grade_query()
        .where(Grade.id == grade_id, Grade.school_id == school_id)
        .options(selectinload(Grade.school))
    )
    grade = result.scalars().first()
    if not grade:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grade not found")

    view = grade_view(grade)
    view["school"] = {"id": grade.school.id, "name": grade.school.name, "code": grade.school.code}
    return view


# --- GRADE UPDATE ---
async def update_grade(school_id: str, grade_id: str, payload: GradeUpdate, db: AsyncSession, current_user: CurrentUser):
    grade = await get_grade_in_school(grade_id, school_id, db)

    if payload.name and payload.name != grade.name:
        result = await db.execute(select(Grade).where(Grade.school_id == school_id, Grade.name == payload.name))
        if result.scalars().first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Grade already exists in this school")

    # Sections referenced by id must belong to this grade
    existing_sections = {}
    section_ids = [s.id for s in payload.sections or [] if s.id]
    if section_ids:
        result = await db.execute(
            select(Section).where(Section.id.in_(section_ids), Section.grade_id == grade.id)
        )
        existing_sections = {s.id: s for s in result.scalars().all()}
        if len(existing_sections) != len(set(section_ids)):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")

    try:
        for field in ("name", "order", "is_active"):
            value = getattr(payload, field)
            if value is not None:
                setattr(grade, field, value)

        if payload.delete_section_ids:
            await db.execute(
                delete(Section)
                .where(Section.id.in_(payload.delete_section_ids), Section.grade_id == grade.id)
                .execution_options(synchronize_session=False)
            )

        for section_data in payload.sections or []:
            if section_data.id:
                section = existing_sections[section_data.id]
                section.name = section_data.name
                if section_data.subjects is not None:
                    await reconcile_section_subjects(db, section.id, section_data.subjects)
            else:
                await _create_section(db, grade.id, section_data.name, section_data.subjects)

        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Section already exists in this grade")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Update grade %s failed", grade_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update grade")

    return await load_grade_view(grade.id, db)


# --- GRADE DELETION ---
async def delete_grade(school_id: str, grade_id: str, db: AsyncSession, current_user: CurrentUser):
    grade = await get_grade_in_school(grade_id, school_id, db)
    grade_name = grade.name

    try:
        # Sections, subjects and assignments cascade
        await db.execute(delete(Grade).where(Grade.id == grade.id))
        log_audit(db, current_user, "DELETE_GRADE", "Grade", grade_id, {"gradeName": grade_name})
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Delete grade %s failed", grade_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete grade")

    return {"message": "Grade deleted successfully"}


# --- SECTIONS ---
async def add_section(school_id: str, grade_id: str, payload: SectionCreate, db: AsyncSession):
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Section name is required")

    grade = await get_grade_in_school(grade_id, school_id, db)

    result = await db.execute(select(Section).where(Section.grade_id == grade.id, Section.name == name))
    if result.scalars().first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Section already exists in this grade")

    try:
        created = await _create_section(db, grade.id, name, payload.subjects)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Section already exists in this grade")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Add section to grade %s failed", grade_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add section")

    return created


async def delete_section(school_id: str, section_id: str, db: AsyncSession):
    section = await get_section_in_school(section_id, school_id, db)

    try:
        await db.execute(delete(Section).where(Section.id == section.id))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Delete section %s failed", section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete section")

    return {"message": "Section deleted successfully"}


# --- SECTION SUBJECTS ---
async def add_subject_to_section(school_id: str, section_id: str, payload: SubjectCreate, db: AsyncSession):
    """Returns (subject, created); an inactive subject of the same name is revived instead."""
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Subject name is required")

    section = await get_section_in_school(section_id, school_id, db)

    result = await db.execute(
        select(SectionSubject).where(SectionSubject.section_id == section.id, SectionSubject.name == name)
    )
    subject = result.scalars().first()
    if subject and subject.is_active:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject already exists in this section")

    created = subject is None
    try:
        if created:
            subject = SectionSubject(name=name, section_id=section.id, is_active=True)
            db.add(subject)
        else:
            subject.is_active = True
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Subject already exists in this section")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Add subject to section %s failed", section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to add subject")

    return subject, created


async def update_section_subjects(school_id: str, section_id: str, payload: SectionSubjectsUpdate, db: AsyncSession):
    section = await get_section_in_school(section_id, school_id, db)

    try:
        active = await reconcile_section_subjects(db, section.id, payload.subjects)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Update subjects of section %s failed", section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update subjects")

    return active


async def delete_subject_from_section(school_id: str, subject_id: str, db: AsyncSession):
    subject = await get_subject_in_school(subject_id, school_id, db)

    try:
        # Tutor assignments to this subject cascade
        await db.execute(delete(SectionSubject).where(SectionSubject.id == subject.id))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Delete subject %s failed", subject_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete subject")

    return {"message": "Subject deleted successfully"}


async def get_school_subjects(school_id: str, db: AsyncSession) -> List[str]:
    result = await db.execute(
        select(SectionSubject.name)
        .join(Section, SectionSubject.section_id == Section.id)
        .join(Grade, Section.grade_id == Grade.id)
        .where(Grade.school_id == school_id, SectionSubject.is_active == True)
        .distinct()
        .order_by(SectionSubject.name)
    )
    return list(result.scalars().all())
