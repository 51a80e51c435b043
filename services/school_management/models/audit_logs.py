# services/school_management/models/audit_logs.py
from sqlalchemy import Column, DateTime, Index, JSON, String
from shared.db import Base, utcnow
import uuid


# Append-only; no foreign keys so entries outlive the rows they describe
class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String, nullable=False)
    actor_id = Column(String, nullable=False)
    actor_role = Column(String, nullable=False)
    actor_email = Column(String, nullable=False)
    entity = Column(String, nullable=False)
    entity_id = Column(String, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
    )
