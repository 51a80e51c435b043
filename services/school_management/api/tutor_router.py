# services/school_management/api/tutor_router.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from services.school_management.schemas.tutors import (
    PasswordResetResponse,
    TutorCreate,
    TutorCreateResponse,
    TutorDetailOut,
    TutorOut,
    TutorSummaryOut,
    TutorUpdate,
)
from services.school_management.controllers import tutor_service
from services.school_management.api.deps import school_admins, school_members
from shared.auth import CurrentUser
from shared.db import get_db

router = APIRouter(prefix="/schools/{school_id}/tutors", tags=["Tutors"])

@router.post("", response_model=TutorCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_tutor(
    school_id: str,
    payload: TutorCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await tutor_service.create_tutor(school_id, payload, db, current_user)

# simple=true returns [{id, name}] for dropdowns, otherwise the summary rows
@router.get("")
async def list_tutors(
    school_id: str,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = None,
    simple: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_members),
):
    tutors = await tutor_service.list_tutors(school_id, db, is_active=is_active, search=search, simple=simple)
    if simple:
        return tutors
    return [TutorSummaryOut.model_validate(t).model_dump(by_alias=True) for t in tutors]

@router.get("/{tutor_id}", response_model=TutorDetailOut)
async def get_tutor(
    school_id: str,
    tutor_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_members),
):
    return await tutor_service.get_tutor(school_id, tutor_id, db)

@router.put("/{tutor_id}", response_model=TutorOut)
async def update_tutor(
    school_id: str,
    tutor_id: str,
    payload: TutorUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await tutor_service.update_tutor(school_id, tutor_id, payload, db, current_user)

@router.delete("/{tutor_id}")
async def delete_tutor(
    school_id: str,
    tutor_id: str,
    force: bool = False,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await tutor_service.delete_tutor(school_id, tutor_id, db, current_user, force=force)

@router.post("/{tutor_id}/reset-password", response_model=PasswordResetResponse)
async def reset_tutor_password(
    school_id: str,
    tutor_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await tutor_service.reset_tutor_password(school_id, tutor_id, db, current_user)
