# services/school_management/models/tutors.py

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import relationship
from shared.db import Base, utcnow
import uuid


class Tutor(Base):
    __tablename__ = "tutors"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    phone = Column(String(20), nullable=False)
    school_id = Column(String, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_tutor_school_id", "school_id"),
    )

    school = relationship("School", back_populates="tutors")
    user = relationship("User", back_populates="tutor", uselist=False, passive_deletes=True)
    class_sections = relationship("Section", back_populates="class_tutor", passive_deletes=True)
    subject_assignments = relationship("TutorSubjectAssignment", back_populates="tutor", passive_deletes=True)


# Join of one tutor to one section subject; deactivated rather than deleted on most flows
class TutorSubjectAssignment(Base):
    __tablename__ = "tutor_subject_assignments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    tutor_id = Column(String, ForeignKey("tutors.id", ondelete="CASCADE"), nullable=False)
    section_subject_id = Column(String, ForeignKey("section_subjects.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("tutor_id", "section_subject_id", name="uq_tutor_section_subject"),
    )

    tutor = relationship("Tutor", back_populates="subject_assignments")
    section_subject = relationship("SectionSubject", back_populates="tutor_assignments")
