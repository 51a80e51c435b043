# services/school_management/api/school_stats_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from services.school_management.controllers.school_stats_service import get_dashboard_summary, get_school_header, get_school_stats
from services.school_management.api.deps import school_admins
from shared.auth import CurrentUser
from shared.db import get_db

router = APIRouter(prefix="/schools/{school_id}", tags=["School Stats"])

@router.get("/dashboard")
async def school_dashboard(school_id: str, db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(school_admins)):
    return await get_dashboard_summary(school_id, db)

@router.get("/header")
async def school_header(school_id: str, db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(school_admins)):
    return await get_school_header(school_id, db)

@router.get("/stats")
async def school_stats(school_id: str, db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(school_admins)):
    return await get_school_stats(school_id, db)
