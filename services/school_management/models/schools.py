# services/school_management/models/schools.py

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from shared.db import Base, utcnow
import uuid


class School(Base):
    __tablename__ = "schools"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    code = Column(String, unique=True, nullable=False)
    address = Column(String, nullable=True)
    district = Column(String, nullable=True)
    pincode = Column(String, nullable=True)
    student_count = Column(Integer, nullable=True)
    is_chained_school = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Dependents are removed by the database (ON DELETE CASCADE)
    users = relationship("User", back_populates="school", passive_deletes=True)
    tutors = relationship("Tutor", back_populates="school", passive_deletes=True)
    grades = relationship("Grade", back_populates="school", passive_deletes=True)
