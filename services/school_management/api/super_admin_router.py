# services/school_management/api/super_admin_router.py
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from services.school_management.schemas.schools import SchoolCreate, SchoolCreateResponse, SchoolOut, SchoolUpdate
from services.school_management.controllers.super_admin_service import create_school, list_schools, update_school, delete_school
from services.school_management.controllers.audit_service import list_audit_logs
from services.school_management.api.deps import superadmin_only
from shared.auth import CurrentUser
from shared.db import get_db

router = APIRouter(prefix="/superadmin", tags=["SuperAdmin"])

@router.get("/dashboard")
async def superadmin_dashboard(current_user: CurrentUser = Depends(superadmin_only)):
    return {"message": "Welcome SUPERADMIN"}

@router.get("/audit-logs")
async def read_audit_logs(db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(superadmin_only)):
    return await list_audit_logs(db)

@router.get("/schools", response_model=List[SchoolOut])
async def read_schools(db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(superadmin_only)):
    return await list_schools(db)

@router.post("/schools", response_model=SchoolCreateResponse, status_code=status.HTTP_201_CREATED)
async def register_school(
    payload: SchoolCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(superadmin_only),
):
    return await create_school(payload, db, current_user)

@router.put("/schools/{school_id}", response_model=SchoolOut)
async def edit_school(
    school_id: str,
    payload: SchoolUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(superadmin_only),
):
    return await update_school(school_id, payload, db, current_user)

@router.delete("/schools/{school_id}")
async def remove_school(school_id: str, db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(superadmin_only)):
    return await delete_school(school_id, db, current_user)
