# services/school_management/controllers/assignment_service.py

import logging
import re
from typing import Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from services.school_management.controllers.audit_service import log_audit
from services.school_management.controllers.grade_service import (
    clean_names,
    get_section_in_school,
    get_subject_in_school,
)
from services.school_management.models.grades import Grade, Section, SectionSubject
from services.school_management.models.tutors import Tutor, TutorSubjectAssignment
from services.school_management.schemas.assignments import (
    ClassTutorRequest,
    SmartAssignRequest,
    SubjectAssignRequest,
)
from shared.auth import CurrentUser

logger = logging.getLogger(__name__)

# "Grade 1-A" -> ("Grade 1", "A"); the grade part is greedy, so only the last
# hyphen splits and the section must be a single capital letter
ASSIGNMENT_KEY = re.compile(r"^(.+)-([A-Z])$")


def parse_assignment_key(key: str) -> Optional[Tuple[str, str]]:
    match = ASSIGNMENT_KEY.match(key or "")
    if not match:
        return None
    return match.group(1), match.group(2)


def _tutor_contact(tutor):
    if tutor is None:
        return None
    return {"id": tutor.id, "name": tutor.name, "email": tutor.email, "phone": tutor.phone}


async def _get_school_tutor(tutor_id: str, school_id: str, db: AsyncSession, detail: str) -> Tutor:
    result = await db.execute(select(Tutor).where(Tutor.id == tutor_id, Tutor.school_id == school_id))
    tutor = result.scalars().first()
    if not tutor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return tutor


async def _find_active_section(db: AsyncSession, school_id: str, grade_name: str, section_name: str):
    """Returns (grade, section); either may be None."""
    result = await db.execute(
        select(Grade).where(Grade.school_id == school_id, Grade.name == grade_name, Grade.is_active == True)
    )
    grade = result.scalars().first()
    if not grade:
        return None, None

    result = await db.execute(
        select(Section).where(Section.grade_id == grade.id, Section.name == section_name, Section.is_active == True)
    )
    return grade, result.scalars().first()


async def _find_or_create_subject(db: AsyncSession, section_id: str, name: str) -> SectionSubject:
    result = await db.execute(
        select(SectionSubject).where(SectionSubject.section_id == section_id, SectionSubject.name == name)
    )
    subject = result.scalars().first()
    if subject is None:
        subject = SectionSubject(name=name, section_id=section_id, is_active=True)
        db.add(subject)
        await db.flush()
    elif not subject.is_active:
        subject.is_active = True
    return subject


async def _class_tutor_name(db: AsyncSession, section_id: str) -> Optional[str]:
    result = await db.execute(
        select(Tutor.name).join(Section, Section.class_tutor_id == Tutor.id).where(Section.id == section_id)
    )
    return result.scalar_one_or_none()


async def claim_class_tutor(db: AsyncSession, section_id: str, tutor_id: str) -> bool:
    """
    Make `tutor_id` the class tutor of the section unless another active tutor holds it.

    Check and write are a single UPDATE so concurrent claims cannot both win;
    the affected row count tells whether this claim did.
    """
    inactive_tutors = select(Tutor.id).where(Tutor.is_active == False)
    result = await db.execute(
        update(Section)
        .where(
            Section.id == section_id,
            or_(
                Section.class_tutor_id.is_(None),
                Section.class_tutor_id == tutor_id,
                Section.class_tutor_id.in_(inactive_tutors),
            ),
        )
        .values(class_tutor_id=tutor_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _clear_tutor_assignments(db: AsyncSession, tutor_id: str):
    await db.execute(
        delete(TutorSubjectAssignment)
        .where(TutorSubjectAssignment.tutor_id == tutor_id)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Section)
        .where(Section.class_tutor_id == tutor_id)
        .values(class_tutor_id=None)
        .execution_options(synchronize_session=False)
    )


async def _apply_assignments(db: AsyncSession, school_id: str, tutor: Tutor, payload: SmartAssignRequest) -> dict:
    """
    Apply a smart-assign body inside the caller's transaction.

    Problems with one key or with the class tutor request are collected in
    `errors` and the rest of the batch still goes through.
    """
    created, skipped, errors = [], [], []

    for key, subject_names in (payload.assignments or {}).items():
        parsed = parse_assignment_key(key)
        if not parsed:
            errors.append(f'Invalid key format: {key}. Expected format: "Grade X-A"')
            continue
        grade_name, section_name = parsed

        grade, section = await _find_active_section(db, school_id, grade_name, section_name)
        if not grade:
            errors.append(f"Grade not found: {grade_name}")
            continue
        if not section:
            errors.append(f"Section {section_name} not found in {grade_name}")
            continue

        for subject_name in clean_names(subject_names):
            subject = await _find_or_create_subject(db, section.id, subject_name)
            item = {"grade": grade_name, "section": section_name, "subject": subject_name}

            result = await db.execute(
                select(TutorSubjectAssignment).where(
                    TutorSubjectAssignment.tutor_id == tutor.id,
                    TutorSubjectAssignment.section_subject_id == subject.id,
                )
            )
            existing = result.scalars().first()

            if existing and existing.is_active:
                skipped.append({**item, "reason": "Already assigned"})
            elif existing:
                existing.is_active = True
                created.append({"id": existing.id, **item, "reactivated": True})
            else:
                assignment = TutorSubjectAssignment(tutor_id=tutor.id, section_subject_id=subject.id, is_active=True)
                db.add(assignment)
                await db.flush()
                created.append({"id": assignment.id, **item})

    class_tutor_assignment = None
    class_grade, class_section = payload.class_grade, payload.class_section
    if class_grade and class_section:
        grade, section = await _find_active_section(db, school_id, class_grade, class_section)
        if not grade:
            errors.append(f"Grade {class_grade} not found for class tutor assignment")
        elif not section:
            errors.append(f"Section {class_section} not found in {class_grade} for class tutor assignment")
        elif await claim_class_tutor(db, section.id, tutor.id):
            class_tutor_assignment = {"grade": class_grade, "section": class_section}
        else:
            holder = await _class_tutor_name(db, section.id)
            errors.append(f"Section {class_grade}-{class_section} already has {holder or 'another tutor'} as class tutor")

    return {
        "created_assignments": created,
        "skipped_assignments": skipped,
        "class_tutor_assignment": class_tutor_assignment,
        "errors": errors,
    }


# --- SMART ASSIGN ---
async def smart_assign_tutor(
    school_id: str,
    payload: SmartAssignRequest,
    db: AsyncSession,
    current_user: CurrentUser,
    replace: bool = False,
):
    """
    Assign a tutor to subjects across sections, and optionally as class tutor.

    With `replace`, the tutor's existing assignments and class sections are
    dropped first, in the same transaction.
    """
    if not payload.tutor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tutorId is required")

    tutor = await _get_school_tutor(payload.tutor_id, school_id, db, "Tutor not found in this school")

    try:
        if replace:
            await _clear_tutor_assignments(db, tutor.id)

        outcome = await _apply_assignments(db, school_id, tutor, payload)

        log_audit(db, current_user, "ASSIGN_TUTOR", "TutorAssignment", tutor.id, {
            "tutorName": tutor.name,
            "assignmentsCount": len(outcome["created_assignments"]),
            "skippedCount": len(outcome["skipped_assignments"]),
            "classTutor": outcome["class_tutor_assignment"],
            "replaced": replace,
        })
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This tutor is already assigned to one or more of these subjects",
        )
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Smart assign failed for tutor %s", tutor.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to assign tutor")

    if outcome["errors"]:
        logger.info("Smart assign for tutor %s finished with %d errors", tutor.id, len(outcome["errors"]))

    return {
        "message": "Tutor assignments updated successfully" if replace else "Tutor assigned successfully",
        "tutor_id": tutor.id,
        "tutor_name": tutor.name,
        **outcome,
    }


async def update_tutor_assignments(school_id: str, payload: SmartAssignRequest, db: AsyncSession, current_user: CurrentUser):
    return await smart_assign_tutor(school_id, payload, db, current_user, replace=True)


# --- GROUPED VIEWS ---
def _tutor_assignment_record(tutor: Tutor) -> dict:
    grouped = {}
    for assignment in tutor.subject_assignments:
        if not assignment.is_active:
            continue
        section = assignment.section_subject.section
        names = grouped.setdefault(f"{section.grade.name}-{section.name}", [])
        if assignment.section_subject.name not in names:
            names.append(assignment.section_subject.name)

    class_sections = [s for s in tutor.class_sections if s.is_active]
    class_section = class_sections[0] if class_sections else None

    return {
        "id": tutor.id,
        "tutor_id": tutor.id,
        "tutor_name": tutor.name,
        "tutor_email": tutor.email,
        "assignments": grouped,
        "class_grade": class_section.grade.name if class_section else None,
        "class_section": class_section.name if class_section else None,
    }


def _tutor_with_assignments_query():
    return (
        select(Tutor)
        .options(
            selectinload(Tutor.subject_assignments)
            .selectinload(TutorSubjectAssignment.section_subject)
            .selectinload(SectionSubject.section)
            .selectinload(Section.grade),
            selectinload(Tutor.class_sections).selectinload(Section.grade),
        )
        .execution_options(populate_existing=True)
    )


async def list_assignments_grouped(school_id: str, db: AsyncSession):
    result = await db.execute(
        _tutor_with_assignments_query()
        .where(Tutor.school_id == school_id, Tutor.is_active == True)
        .order_by(Tutor.name)
    )
    records = [_tutor_assignment_record(t) for t in result.scalars().all()]
    return [r for r in records if r["assignments"] or r["class_section"]]


async def list_tutor_assignments(school_id: str, tutor_id: str, db: AsyncSession):
    result = await db.execute(
        _tutor_with_assignments_query().where(Tutor.id == tutor_id, Tutor.school_id == school_id)
    )
    tutor = result.scalars().first()
    if not tutor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tutor not found")
    return _tutor_assignment_record(tutor)


async def delete_all_tutor_assignments(school_id: str, tutor_id: str, db: AsyncSession, current_user: CurrentUser):
    tutor = await _get_school_tutor(tutor_id, school_id, db, "Tutor not found")

    try:
        await _clear_tutor_assignments(db, tutor.id)
        log_audit(db, current_user, "DELETE_ALL_TUTOR_ASSIGNMENTS", "TutorAssignment", tutor.id, {
            "tutorName": tutor.name,
        })
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Removing assignments of tutor %s failed", tutor_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove assignments")

    return {"message": "All assignments removed successfully"}


# --- SECTION VIEW ---
async def list_section_assignments(school_id: str, section_id: str, db: AsyncSession):
    result = await db.execute(
        select(Section)
        .join(Grade, Section.grade_id == Grade.id)
        .where(Section.id == section_id, Grade.school_id == school_id)
        .options(
            selectinload(Section.grade),
            selectinload(Section.class_tutor),
            selectinload(Section.subjects)
            .selectinload(SectionSubject.tutor_assignments)
            .selectinload(TutorSubjectAssignment.tutor),
        )
        .execution_options(populate_existing=True)
    )
    section = result.scalars().first()
    if not section:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Section not found")

    subjects = []
    for subject in sorted((s for s in section.subjects if s.is_active), key=lambda s: s.name):
        subjects.append({
            "id": subject.id,
            "name": subject.name,
            "tutor_assignments": [
                {"id": a.id, "tutor": _tutor_contact(a.tutor)}
                for a in subject.tutor_assignments
                if a.is_active
            ],
        })

    return {
        "id": section.id,
        "name": section.name,
        "grade": {"id": section.grade.id, "name": section.grade.name},
        "class_tutor": _tutor_contact(section.class_tutor),
        "subjects": subjects,
    }


# --- CLASS TUTOR ---
async def assign_class_tutor(school_id: str, section_id: str, payload: ClassTutorRequest, db: AsyncSession):
    if not payload.tutor_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tutorId is required")

    section = await get_section_in_school(section_id, school_id, db)
    tutor = await _get_school_tutor(payload.tutor_id, school_id, db, "Tutor not found")
    label = f"{section.grade.name}-{section.name}"

    try:
        claimed = await claim_class_tutor(db, section.id, tutor.id)
        if not claimed:
            holder = await _class_tutor_name(db, section.id)
            await db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Section {label} already has {holder or 'another tutor'} as class tutor",
            )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Assign class tutor to section %s failed", section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to assign class tutor")

    return {
        "message": "Class tutor assigned successfully",
        "section": {
            "id": section.id,
            "name": section.name,
            "grade": {"id": section.grade.id, "name": section.grade.name},
            "class_tutor": _tutor_contact(tutor),
        },
    }


async def remove_class_tutor(school_id: str, section_id: str, db: AsyncSession):
    section = await get_section_in_school(section_id, school_id, db)

    try:
        await db.execute(
            update(Section)
            .where(Section.id == section.id)
            .values(class_tutor_id=None)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Remove class tutor from section %s failed", section_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove class tutor")

    return {"message": "Class tutor removed successfully"}


# --- SINGLE SUBJECT ASSIGNMENT ---
async def assign_subject_to_tutor(school_id: str, payload: SubjectAssignRequest, db: AsyncSession, current_user: CurrentUser):
    """Returns (body, created): 201 for a new assignment, 200 when an inactive one is revived."""
    if not payload.tutor_id or not payload.section_subject_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tutorId and sectionSubjectId are required")

    tutor = await _get_school_tutor(payload.tutor_id, school_id, db, "Tutor not found in this school")
    subject = await get_subject_in_school(payload.section_subject_id, school_id, db)
    grade_name, section_name = subject.section.grade.name, subject.section.name

    result = await db.execute(
        select(TutorSubjectAssignment).where(
            TutorSubjectAssignment.tutor_id == tutor.id,
            TutorSubjectAssignment.section_subject_id == subject.id,
        )
    )
    assignment = result.scalars().first()
    if assignment and assignment.is_active:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{tutor.name} is already assigned to teach {subject.name} in {grade_name}-{section_name}",
        )

    created = assignment is None
    try:
        if created:
            assignment = TutorSubjectAssignment(tutor_id=tutor.id, section_subject_id=subject.id, is_active=True)
            db.add(assignment)
            await db.flush()
            log_audit(db, current_user, "ASSIGN_SUBJECT_TO_TUTOR", "TutorSubjectAssignment", assignment.id, {
                "tutorName": tutor.name,
                "subject": subject.name,
                "section": f"{grade_name}-{section_name}",
            })
        else:
            assignment.is_active = True
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This tutor is already assigned to this subject")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Assign subject %s to tutor %s failed", subject.id, tutor.id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to assign subject")

    body = {
        "message": "Subject assigned to tutor successfully" if created else "Assignment reactivated",
        "assignment": {
            "id": assignment.id,
            "tutor_id": tutor.id,
            "tutor_name": tutor.name,
            "subject": subject.name,
            "grade": grade_name,
            "section": section_name,
        },
    }
    return body, created


async def check_duplicate_assignment(school_id: str, tutor_id: Optional[str], section_subject_id: Optional[str], db: AsyncSession):
    if not tutor_id or not section_subject_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tutorId and sectionSubjectId are required")

    result = await db.execute(
        select(TutorSubjectAssignment)
        .join(Tutor, TutorSubjectAssignment.tutor_id == Tutor.id)
        .where(
            TutorSubjectAssignment.tutor_id == tutor_id,
            TutorSubjectAssignment.section_subject_id == section_subject_id,
            TutorSubjectAssignment.is_active == True,
            Tutor.school_id == school_id,
        )
        .options(
            selectinload(TutorSubjectAssignment.tutor),
            selectinload(TutorSubjectAssignment.section_subject)
            .selectinload(SectionSubject.section)
            .selectinload(Section.grade),
        )
    )
    existing = result.scalars().first()
    if not existing:
        return {"is_duplicate": False}

    subject = existing.section_subject
    label = f"{subject.section.grade.name}-{subject.section.name}"
    return {
        "is_duplicate": True,
        "message": f"{existing.tutor.name} is already assigned to {subject.name} in {label}",
        "existing_assignment": {
            "id": existing.id,
            "tutor_name": existing.tutor.name,
            "subject": subject.name,
            "section": label,
        },
    }


async def remove_assignment(school_id: str, assignment_id: str, db: AsyncSession):
    result = await db.execute(
        select(TutorSubjectAssignment.id)
        .join(Tutor, TutorSubjectAssignment.tutor_id == Tutor.id)
        .where(TutorSubjectAssignment.id == assignment_id, Tutor.school_id == school_id)
    )
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")

    try:
        # Class tutor designation is independent of subject assignments
        await db.execute(delete(TutorSubjectAssignment).where(TutorSubjectAssignment.id == assignment_id))
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Remove assignment %s failed", assignment_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to remove assignment")

    return {"message": "Assignment removed successfully"}
