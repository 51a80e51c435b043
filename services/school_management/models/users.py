# services/school_management/models/users.py
from sqlalchemy import Column, String, Enum, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from shared.db import Base, utcnow
import enum
import uuid


class UserRole(str, enum.Enum):
    SUPERADMIN = "SUPERADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"
    TEACHER = "TEACHER"


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    phone = Column(String(20), nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(Enum(UserRole, native_enum=False, length=20), nullable=False)
    # SUPERADMIN has no school scope
    school_id = Column(String, ForeignKey("schools.id", ondelete="CASCADE"), nullable=True)
    # Set only for TEACHER accounts
    tutor_id = Column(String, ForeignKey("tutors.id", ondelete="CASCADE"), unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    school = relationship("School", back_populates="users")
    tutor = relationship("Tutor", back_populates="user")

    __table_args__ = (
        Index("idx_user_school_role", "school_id", "role"),  # admin lookup per school
    )
