# services/school_management/controllers/tutor_service.py

import logging
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import delete, func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from services.school_management.controllers.audit_service import log_audit
from services.school_management.models.grades import Section, SectionSubject
from services.school_management.models.schools import School
from services.school_management.models.tutors import Tutor, TutorSubjectAssignment
from services.school_management.models.users import User, UserRole
from services.school_management.schemas.tutors import TutorCreate, TutorUpdate
from shared.auth import CurrentUser, generate_temp_password, get_password_hash

logger = logging.getLogger(__name__)


async def get_tutor_in_school(tutor_id: str, school_id: str, db: AsyncSession, *options) -> Tutor:
    """Load a tutor by id, 404 unless it belongs to the school."""
    query = select(Tutor).where(Tutor.id == tutor_id, Tutor.school_id == school_id)
    if options:
        query = query.options(*options)
    result = await db.execute(query)
    tutor = result.scalars().first()
    if not tutor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tutor not found")
    return tutor


def _class_tutor_of(tutor: Tutor):
    return [
        {"section_id": s.id, "section_name": s.name, "grade_name": s.grade.name}
        for s in tutor.class_sections
        if s.is_active
    ]


async def _email_taken(email: str, db: AsyncSession, tutor_id: str = None) -> Optional[str]:
    """Name the table that already holds `email`, ignoring the tutor's own rows."""
    query = select(Tutor.id).where(Tutor.email == email)
    if tutor_id:
        query = query.where(Tutor.id != tutor_id)
    if (await db.execute(query)).first():
        return "Tutor"

    query = select(User.id).where(User.email == email)
    if tutor_id:
        query = query.where(or_(User.tutor_id.is_(None), User.tutor_id != tutor_id))
    if (await db.execute(query)).first():
        return "User"
    return None


# --- TUTOR CREATION ---
async def create_tutor(school_id: str, payload: TutorCreate, db: AsyncSession, current_user: CurrentUser):
    """
    Create a tutor and its TEACHER login in one transaction.

    The generated password is returned once, in plaintext, and only its hash
    is stored.
    """
    if not payload.name or not payload.email or not payload.phone:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields: name, email, phone")

    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")

    taken_by = await _email_taken(payload.email, db)
    if taken_by:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"{taken_by} email already exists")

    temp_password = generate_temp_password()
    tutor = Tutor(name=payload.name, email=payload.email, phone=payload.phone, school_id=school_id, is_active=True)

    try:
        db.add(tutor)
        await db.flush()

        db.add(User(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            hashed_password=get_password_hash(temp_password),
            role=UserRole.TEACHER,
            school_id=school_id,
            tutor_id=tutor.id,
        ))

        log_audit(db, current_user, "CREATE_TUTOR", "Tutor", tutor.id, {
            "tutorName": tutor.name,
            "tutorEmail": tutor.email,
            "schoolId": school_id,
        })
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Tutor email already exists")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Create tutor failed in school %s", school_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create tutor")

    logger.info("Tutor %s created in school %s", tutor.id, school_id)
    return {
        "tutor": {"id": tutor.id, "name": tutor.name, "email": tutor.email, "phone": tutor.phone},
        "temporary_password": temp_password,
    }


# --- TUTOR LISTING ---
async def list_tutors(
    school_id: str,
    db: AsyncSession,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    simple: bool = False,
):
    query = select(Tutor).where(Tutor.school_id == school_id)
    if is_active is not None:
        query = query.where(Tutor.is_active == is_active)
    if search:
        query = query.where(or_(Tutor.name.contains(search), Tutor.email.contains(search)))

    # Dropdown mode
    if simple:
        result = await db.execute(query.order_by(Tutor.name))
        return [{"id": t.id, "name": t.name} for t in result.scalars().all()]

    result = await db.execute(
        query.options(selectinload(Tutor.class_sections).selectinload(Section.grade))
        .order_by(Tutor.created_at.desc())
    )
    tutors = result.scalars().all()

    counts = {}
    if tutors:
        result = await db.execute(
            select(TutorSubjectAssignment.tutor_id, func.count(TutorSubjectAssignment.id))
            .where(
                TutorSubjectAssignment.is_active == True,
                TutorSubjectAssignment.tutor_id.in_([t.id for t in tutors]),
            )
            .group_by(TutorSubjectAssignment.tutor_id)
        )
        counts = dict(result.all())

    return [
        {
            "id": t.id,
            "name": t.name,
            "email": t.email,
            "phone": t.phone,
            "is_active": t.is_active,
            "created_at": t.created_at,
            "class_tutor_of": _class_tutor_of(t),
            "subject_assignments_count": counts.get(t.id, 0),
        }
        for t in tutors
    ]


# --- TUTOR DETAIL ---
async def get_tutor(school_id: str, tutor_id: str, db: AsyncSession):
    tutor = await get_tutor_in_school(
        tutor_id, school_id, db,
        selectinload(Tutor.school),
        selectinload(Tutor.class_sections).selectinload(Section.grade),
        selectinload(Tutor.subject_assignments)
        .selectinload(TutorSubjectAssignment.section_subject)
        .selectinload(SectionSubject.section)
        .selectinload(Section.grade),
    )

    # {"Grade 1-A": ["English", "Maths"]}
    grouped = {}
    active = [a for a in tutor.subject_assignments if a.is_active]
    for assignment in active:
        section = assignment.section_subject.section
        key = f"{section.grade.name}-{section.name}"
        grouped.setdefault(key, []).append(assignment.section_subject.name)

    return {
        "id": tutor.id,
        "name": tutor.name,
        "email": tutor.email,
        "phone": tutor.phone,
        "is_active": tutor.is_active,
        "school": {"id": tutor.school.id, "name": tutor.school.name, "code": tutor.school.code},
        "class_tutor_of": _class_tutor_of(tutor),
        "assignments": grouped,
        "assignments_count": len(active),
    }


# --- TUTOR UPDATE ---
async def update_tutor(school_id: str, tutor_id: str, payload: TutorUpdate, db: AsyncSession, current_user: CurrentUser):
    tutor = await get_tutor_in_school(tutor_id, school_id, db)
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}

    new_email = changes.get("email")
    if new_email and new_email != tutor.email:
        if await _email_taken(new_email, db, tutor_id=tutor.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    try:
        for field, value in changes.items():
            setattr(tutor, field, value)

        # The TEACHER login mirrors the tutor's contact details
        user_changes = {k: v for k, v in changes.items() if k in ("name", "email", "phone")}
        if user_changes:
            await db.execute(
                update(User)
                .where(User.tutor_id == tutor.id)
                .values(**user_changes)
                .execution_options(synchronize_session=False)
            )

        log_audit(db, current_user, "UPDATE_TUTOR", "Tutor", tutor.id, {"changes": changes})
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Update tutor %s failed", tutor_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update tutor")

    return tutor


# --- TUTOR DELETION ---
async def delete_tutor(school_id: str, tutor_id: str, db: AsyncSession, current_user: CurrentUser, force: bool = False):
    tutor = await get_tutor_in_school(tutor_id, school_id, db)

    assignment_count = (await db.execute(
        select(func.count(TutorSubjectAssignment.id))
        .where(TutorSubjectAssignment.tutor_id == tutor.id, TutorSubjectAssignment.is_active == True)
    )).scalar_one()
    class_section_count = (await db.execute(
        select(func.count(Section.id)).where(Section.class_tutor_id == tutor.id)
    )).scalar_one()

    if (assignment_count or class_section_count) and not force:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": (
                    f"Tutor has {assignment_count} subject assignments and is class tutor for "
                    f"{class_section_count} sections. Use ?force=true to delete anyway."
                ),
                "hasAssignments": True,
            },
        )

    tutor_name, tutor_email = tutor.name, tutor.email
    try:
        # Cascades remove the login and assignments; class sections fall back to no tutor
        await db.execute(delete(Tutor).where(Tutor.id == tutor.id))
        log_audit(db, current_user, "DELETE_TUTOR", "Tutor", tutor_id, {
            "tutorName": tutor_name,
            "tutorEmail": tutor_email,
        })
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Delete tutor %s failed", tutor_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete tutor")

    logger.info("Tutor %s deleted from school %s (force=%s)", tutor_id, school_id, force)
    return {"message": "Tutor deleted successfully"}


# --- PASSWORD RESET ---
async def reset_tutor_password(school_id: str, tutor_id: str, db: AsyncSession, current_user: CurrentUser):
    tutor = await get_tutor_in_school(tutor_id, school_id, db)

    result = await db.execute(select(User).where(User.tutor_id == tutor.id))
    user = result.scalars().first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User account not found for this tutor")

    temp_password = generate_temp_password()
    try:
        user.hashed_password = get_password_hash(temp_password)
        log_audit(db, current_user, "RESET_TUTOR_PASSWORD", "Tutor", tutor.id, {"tutorEmail": tutor.email})
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Password reset for tutor %s failed", tutor_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to reset password")

    return {
        "message": "Password reset successful",
        "tutor": {"id": tutor.id, "name": tutor.name, "email": tutor.email},
        "temporary_password": temp_password,
    }
