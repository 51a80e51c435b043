# services/school_management/api/auth_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from services.school_management.schemas.users import LoginRequest, LoginResponse, MeResponse, RefreshRequest, RefreshResponse
from services.school_management.controllers.auth_service import login, me, refresh
from shared.auth import CurrentUser, get_current_user
from shared.db import get_db

router = APIRouter(prefix="/auth", tags=["Auth"])

@router.post("/login", response_model=LoginResponse)
async def login_user(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    return await login(payload, db)

@router.get("/me", response_model=MeResponse)
async def read_me(current_user: CurrentUser = Depends(get_current_user)):
    return me(current_user)

@router.post("/refresh", response_model=RefreshResponse)
async def refresh_access_token(payload: RefreshRequest, db: AsyncSession = Depends(get_db)):
    return await refresh(payload, db)
