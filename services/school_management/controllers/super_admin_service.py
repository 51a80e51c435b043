# services/school_management/controllers/super_admin_service.py

import logging

from fastapi import HTTPException, status
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from services.school_management.controllers.audit_service import log_audit
from services.school_management.models.schools import School
from services.school_management.models.users import User, UserRole
from services.school_management.schemas.schools import SchoolCreate, SchoolUpdate
from shared.auth import CurrentUser, generate_temp_password, get_password_hash

logger = logging.getLogger(__name__)

SCHOOL_FIELDS = (
    "name", "code", "address", "district", "pincode",
    "student_count", "is_active", "is_chained_school",
)
# Columns that can't take an explicit null from a patch
NON_NULLABLE_SCHOOL_FIELDS = {"name", "code", "is_active", "is_chained_school"}
ADMIN_FIELDS = {"admin_name": "name", "admin_email": "email", "admin_phone": "phone"}


def _admin_to_dict(admin: User):
    if admin is None:
        return None
    return {"id": admin.id, "name": admin.name, "email": admin.email, "phone": admin.phone}


def _school_to_dict(school: School, admin: User = None) -> dict:
    return {
        "id": school.id,
        "name": school.name,
        "code": school.code,
        "address": school.address,
        "district": school.district,
        "pincode": school.pincode,
        "student_count": school.student_count,
        "is_chained_school": school.is_chained_school,
        "is_active": school.is_active,
        "created_at": school.created_at,
        "updated_at": school.updated_at,
        "admin": _admin_to_dict(admin),
    }


async def _get_school_or_404(school_id: str, db: AsyncSession) -> School:
    school = await db.get(School, school_id)
    if not school:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="School not found")
    return school


async def _find_school_admin(school_id: str, db: AsyncSession):
    result = await db.execute(
        select(User)
        .where(User.school_id == school_id, User.role == UserRole.SCHOOL_ADMIN)
        .order_by(User.created_at)
    )
    return result.scalars().first()


# --- SCHOOL REGISTRATION ---
async def create_school(payload: SchoolCreate, db: AsyncSession, current_user: CurrentUser):
    """
    Register a school together with its SCHOOL_ADMIN account.

    Uniqueness of the school code and the admin email is checked before any
    write. The admin's temporary password is returned here and nowhere else.
    """
    if not payload.name or not payload.code or not payload.admin_name or not payload.admin_email or not payload.admin_phone:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required fields")

    result = await db.execute(select(School).where(School.code == payload.code))
    if result.scalars().first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="School code already exists")

    result = await db.execute(select(User).where(User.email == payload.admin_email))
    if result.scalars().first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Admin email already exists")

    temp_password = generate_temp_password()

    school = School(
        name=payload.name,
        code=payload.code,
        address=payload.address,
        district=payload.district,
        pincode=payload.pincode,
        student_count=payload.student_count,
        is_chained_school=bool(payload.is_chained_school),
        is_active=True,
    )
    try:
        db.add(school)
        await db.flush()

        admin = User(
            name=payload.admin_name,
            email=payload.admin_email,
            phone=payload.admin_phone,
            hashed_password=get_password_hash(temp_password),
            role=UserRole.SCHOOL_ADMIN,
            school_id=school.id,
        )
        db.add(admin)

        log_audit(db, current_user, "CREATE_SCHOOL", "School", school.id, {
            "schoolName": school.name,
            "schoolCode": school.code,
            "adminEmail": admin.email,
        })
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="School code or admin email already exists")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Create school failed for code %s", payload.code)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create school")

    logger.info("School %s (%s) created with admin %s", school.id, school.code, admin.email)
    return {
        "school": _school_to_dict(school, admin),
        "admin": {"email": admin.email, "role": admin.role.value},
        "temporary_password": temp_password,
    }


# --- SCHOOL LISTING ---
async def list_schools(db: AsyncSession):
    result = await db.execute(select(School).order_by(School.created_at.desc()))
    schools = result.scalars().all()

    admins_by_school = {}
    if schools:
        result = await db.execute(
            select(User)
            .where(User.role == UserRole.SCHOOL_ADMIN, User.school_id.in_([s.id for s in schools]))
            .order_by(User.created_at)
        )
        for admin in result.scalars().all():
            admins_by_school.setdefault(admin.school_id, admin)

    return [_school_to_dict(school, admins_by_school.get(school.id)) for school in schools]


# --- SCHOOL UPDATE ---
async def update_school(school_id: str, payload: SchoolUpdate, db: AsyncSession, current_user: CurrentUser):
    if not payload.model_fields_set:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is required")

    school = await _get_school_or_404(school_id, db)
    changes = payload.model_dump(exclude_unset=True)

    new_code = changes.get("code")
    if new_code and new_code != school.code:
        result = await db.execute(select(School).where(School.code == new_code))
        if result.scalars().first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="School code already exists")

    # Any admin key in the body, even an empty one, means the admin is being edited
    admin = None
    if ADMIN_FIELDS.keys() & changes.keys():
        admin = await _find_school_admin(school_id, db)
        new_email = changes.get("admin_email")
        if admin and new_email and new_email != admin.email:
            result = await db.execute(select(User).where(User.email == new_email))
            if result.scalars().first():
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Admin email already exists")

    try:
        for field in SCHOOL_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if value is None and field in NON_NULLABLE_SCHOOL_FIELDS:
                continue
            setattr(school, field, value)

        if admin and any(changes.get(key) for key in ADMIN_FIELDS):
            for key, column in ADMIN_FIELDS.items():
                if changes.get(key) is not None:
                    setattr(admin, column, changes[key])

        log_audit(db, current_user, "UPDATE_SCHOOL", "School", school.id, {
            "updatedFields": sorted(changes.keys()),
        })
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="School code or admin email already exists")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Update school %s failed", school_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update school")

    if admin is None:
        admin = await _find_school_admin(school_id, db)
    return _school_to_dict(school, admin)


# --- SCHOOL DELETION ---
async def delete_school(school_id: str, db: AsyncSession, current_user: CurrentUser):
    school = await _get_school_or_404(school_id, db)
    school_code = school.code

    try:
        # Tutors, grades, sections, subjects and assignments go with the school row
        await db.execute(delete(User).where(User.school_id == school_id))
        await db.execute(delete(School).where(School.id == school_id))
        log_audit(db, current_user, "DELETE_SCHOOL", "School", school_id, {"schoolCode": school_code})
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Delete school %s failed", school_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete school")

    logger.info("School %s (%s) deleted", school_id, school_code)
    return {"message": "School deleted successfully"}
