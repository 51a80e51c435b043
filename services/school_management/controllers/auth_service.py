# services/school_management/controllers/auth_service.py

import logging

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from services.school_management.models.users import User
from services.school_management.schemas.users import LoginRequest, RefreshRequest
from shared.auth import (
    CurrentUser,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    verify_password,
)

logger = logging.getLogger(__name__)


def issue_access_token(user: User) -> str:
    return create_access_token({
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
        "school_id": user.school_id,
    })


# --- LOGIN ---
async def login(payload: LoginRequest, db: AsyncSession):
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalars().first()

    # Same message for unknown email and wrong password
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.info("Failed login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return {
        "user": {
            "id": user.id,
            "name": user.name,
            "role": user.role.value,
            "school_id": user.school_id,
        },
        "access_token": issue_access_token(user),
        "refresh_token": create_refresh_token(user.id),
    }


# --- WHO AM I ---
def me(current_user: CurrentUser):
    return {
        "data": {
            "user_id": current_user.user_id,
            "role": current_user.role,
            "email": current_user.email,
            "school_id": current_user.school_id,
        }
    }


# --- REFRESH ---
async def refresh(payload: RefreshRequest, db: AsyncSession):
    claims = decode_refresh_token(payload.refresh_token)
    if not claims:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user_id = claims.get("user_id")
    user = await db.get(User, user_id) if user_id else None
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    return {"access_token": issue_access_token(user)}
