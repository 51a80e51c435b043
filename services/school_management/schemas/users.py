# services/school_management/schemas/users.py
from pydantic import BaseModel
from typing import Optional

from .base import CamelModel


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginUserOut(CamelModel):
    id: str
    name: str
    role: str
    school_id: Optional[str] = None


class LoginResponse(CamelModel):
    user: LoginUserOut
    access_token: str
    refresh_token: str


class RefreshRequest(CamelModel):
    refresh_token: str


class RefreshResponse(CamelModel):
    access_token: str


class MeData(CamelModel):
    user_id: str
    role: str
    email: str
    school_id: Optional[str] = None


class MeResponse(BaseModel):
    data: MeData
