# services/school_management/api/assignment_router.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from services.school_management.schemas.assignments import (
    ClassTutorRequest,
    ClassTutorResponse,
    DuplicateCheckOut,
    SectionAssignmentsOut,
    SmartAssignRequest,
    SmartAssignResponse,
    SubjectAssignRequest,
    SubjectAssignResponse,
    TutorAssignmentsOut,
)
from services.school_management.controllers import assignment_service
from services.school_management.api.deps import school_admins, school_members
from shared.auth import CurrentUser
from shared.db import get_db

router = APIRouter(prefix="/schools/{school_id}/assignments", tags=["Assignments"])

# --- BULK (SMART) ASSIGNMENT ---
@router.post("/tutor-assignments", response_model=SmartAssignResponse, status_code=status.HTTP_201_CREATED)
async def smart_assign_tutor(
    school_id: str,
    payload: SmartAssignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await assignment_service.smart_assign_tutor(school_id, payload, db, current_user)

@router.get("/tutor-assignments", response_model=List[TutorAssignmentsOut])
async def list_assignments_grouped(school_id: str, db: AsyncSession = Depends(get_db), current_user: CurrentUser = Depends(school_admins)):
    return await assignment_service.list_assignments_grouped(school_id, db)

@router.put("/tutor-assignments", response_model=SmartAssignResponse)
async def update_tutor_assignments(
    school_id: str,
    payload: SmartAssignRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await assignment_service.update_tutor_assignments(school_id, payload, db, current_user)

# --- PER TUTOR ---
@router.get("/tutors/{tutor_id}", response_model=TutorAssignmentsOut)
async def list_tutor_assignments(
    school_id: str,
    tutor_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_members),
):
    return await assignment_service.list_tutor_assignments(school_id, tutor_id, db)

@router.delete("/tutors/{tutor_id}")
async def delete_all_tutor_assignments(
    school_id: str,
    tutor_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await assignment_service.delete_all_tutor_assignments(school_id, tutor_id, db, current_user)

# --- PER SECTION ---
@router.get("/sections/{section_id}", response_model=SectionAssignmentsOut)
async def list_section_assignments(
    school_id: str,
    section_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_members),
):
    return await assignment_service.list_section_assignments(school_id, section_id, db)

@router.post("/sections/{section_id}/class-tutor", response_model=ClassTutorResponse)
async def assign_class_tutor(
    school_id: str,
    section_id: str,
    payload: ClassTutorRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await assignment_service.assign_class_tutor(school_id, section_id, payload, db)

@router.delete("/sections/{section_id}/class-tutor")
async def remove_class_tutor(
    school_id: str,
    section_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await assignment_service.remove_class_tutor(school_id, section_id, db)

# --- SINGLE SUBJECT ---
@router.post("/subject", response_model=SubjectAssignResponse, status_code=status.HTTP_201_CREATED)
async def assign_subject_to_tutor(
    school_id: str,
    payload: SubjectAssignRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    body, created = await assignment_service.assign_subject_to_tutor(school_id, payload, db, current_user)
    if not created:
        response.status_code = status.HTTP_200_OK
    return body

@router.get("/check-duplicate", response_model=DuplicateCheckOut, response_model_exclude_none=True)
async def check_duplicate_assignment(
    school_id: str,
    tutor_id: Optional[str] = Query(None, alias="tutorId"),
    section_subject_id: Optional[str] = Query(None, alias="sectionSubjectId"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await assignment_service.check_duplicate_assignment(school_id, tutor_id, section_subject_id, db)

@router.delete("/{assignment_id}")
async def remove_assignment(
    school_id: str,
    assignment_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(school_admins),
):
    return await assignment_service.remove_assignment(school_id, assignment_id, db)
