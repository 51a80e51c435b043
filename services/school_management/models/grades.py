# services/school_management/models/grades.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from shared.db import Base, utcnow
import uuid


class Grade(Base):
    __tablename__ = "grades"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)            # E.g., "Grade 1", "Nursery"
    school_id = Column(String, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    order = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("school_id", "name", name="uq_grade_school_name"),
        Index("ix_grade_school_id", "school_id"),
    )

    school = relationship("School", back_populates="grades")
    sections = relationship("Section", back_populates="grade", passive_deletes=True)


class Section(Base):
    __tablename__ = "sections"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)            # E.g., "A", "B"
    grade_id = Column(String, ForeignKey("grades.id", ondelete="CASCADE"), nullable=False)
    # At most one class tutor; claimed with a conditional UPDATE, see assignment_service
    class_tutor_id = Column(String, ForeignKey("tutors.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("grade_id", "name", name="uq_section_grade_name"),
        Index("ix_section_class_tutor_id", "class_tutor_id"),
    )

    grade = relationship("Grade", back_populates="sections")
    class_tutor = relationship("Tutor", back_populates="class_sections")
    subjects = relationship("SectionSubject", back_populates="section", passive_deletes=True)


# Subject taught within one section; not shared across sections
class SectionSubject(Base):
    __tablename__ = "section_subjects"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)            # E.g., "Maths", "English"
    section_id = Column(String, ForeignKey("sections.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("section_id", "name", name="uq_section_subject_name"),
    )

    section = relationship("Section", back_populates="subjects")
    tutor_assignments = relationship("TutorSubjectAssignment", back_populates="section_subject", passive_deletes=True)
