# services/school_management/controllers/audit_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from services.school_management.models.audit_logs import AuditLog
from shared.auth import CurrentUser

AUDIT_PAGE_SIZE = 100


def log_audit(db: AsyncSession, actor: CurrentUser, action: str, entity: str, entity_id: str, metadata: dict = None):
    """Stage an audit entry on the caller's session; it lands with the caller's commit."""
    entry = AuditLog(
        action=action,
        actor_id=actor.user_id,
        actor_role=actor.role,
        actor_email=actor.email,
        entity=entity,
        entity_id=entity_id,
        metadata_=metadata,
    )
    db.add(entry)
    return entry


def _audit_to_dict(entry: AuditLog) -> dict:
    return {
        "id": entry.id,
        "action": entry.action,
        "actorId": entry.actor_id,
        "actorRole": entry.actor_role,
        "actorEmail": entry.actor_email,
        "entity": entry.entity,
        "entityId": entry.entity_id,
        "metadata": entry.metadata_,
        "createdAt": entry.created_at,
    }


async def list_audit_logs(db: AsyncSession):
    result = await db.execute(
        select(AuditLog).order_by(AuditLog.created_at.desc()).limit(AUDIT_PAGE_SIZE)
    )
    return {"data": [_audit_to_dict(entry) for entry in result.scalars().all()]}
