# services/school_management/api/grade_router.py
from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from services.school_management.schemas.grades import (
    GradeCreate,
    GradeCreatedOut,
    GradeDetailOut,
    GradeUpdate,
    GradeWithSchoolOut,
    SectionCreate,
    SectionCreatedOut,
    SectionSubjectOut,
    SectionSubjectsUpdate,
    SubjectCreate,
)
from services.school_management.controllers import grade_service
from services.school_management.api.deps import school_admins, school_members
from shared.auth import CurrentUser
from shared.db import get_db

router = APIRouter(prefix="/schools/{school_id}/grades", tags=["Grades"])

# --- GRADES ---
@router.post("", response_model=GradeCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_grade(
    school_id: str,
    payload: GradeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await grade_service.create_grade(school_id, payload, db, current_user)

@router.get("", response_model=List[GradeDetailOut])
async def list_grades(school_id: str, db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(school_members)):
    return await grade_service.list_grades(school_id, db)

@router.get("/subjects/all", response_model=List[str])
async def list_school_subjects(school_id: str, db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(school_members)):
    return await grade_service.get_school_subjects(school_id, db)

@router.get("/{grade_id}", response_model=GradeWithSchoolOut)
async def get_grade(
    school_id: str,
    grade_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_members),
):
    return await grade_service.get_grade(school_id, grade_id, db)

@router.put("/{grade_id}", response_model=GradeDetailOut)
async def update_grade(
    school_id: str,
    grade_id: str,
    payload: GradeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await grade_service.update_grade(school_id, grade_id, payload, db, current_user)

@router.delete("/{grade_id}")
async def delete_grade(
    school_id: str,
    grade_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await grade_service.delete_grade(school_id, grade_id, db, current_user)

# --- SECTIONS ---
@router.post("/{grade_id}/sections", response_model=SectionCreatedOut, status_code=status.HTTP_201_CREATED)
async def add_section(
    school_id: str,
    grade_id: str,
    payload: SectionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await grade_service.add_section(school_id, grade_id, payload, db)

@router.delete("/sections/{section_id}")
async def delete_section(
    school_id: str,
    section_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await grade_service.delete_section(school_id, section_id, db)

# --- SECTION SUBJECTS ---
@router.post("/sections/{section_id}/subjects", response_model=SectionSubjectOut, status_code=status.HTTP_201_CREATED)
async def add_subject(
    school_id: str,
    section_id: str,
    payload: SubjectCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    subject, created = await grade_service.add_subject_to_section(school_id, section_id, payload, db)
    if not created:
        response.status_code = status.HTTP_200_OK
    return subject

@router.put("/sections/{section_id}/subjects", response_model=List[SectionSubjectOut])
async def update_section_subjects(
    school_id: str,
    section_id: str,
    payload: SectionSubjectsUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await grade_service.update_section_subjects(school_id, section_id, payload, db)

@router.delete("/section-subjects/{subject_id}")
async def delete_subject(
    school_id: str,
    subject_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await grade_service.delete_subject_from_section(school_id, subject_id, db)
