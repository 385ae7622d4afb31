"""
Activity log repository.

Entries are append-only and each write commits on its own.
"""
import uuid
from typing import Optional, List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from adstudio.models.activity import ActivityLog
from adstudio.repositories.base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):

    def __init__(self, session: AsyncSession):
        super().__init__(ActivityLog, session)

    async def log(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        meta_data: Optional[dict] = None
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            meta_data=meta_data or {}
        )
        self.session.add(entry)
        await self.session.commit()
        await self.session.refresh(entry)
        return entry

    async def get_by_entity(self, entity_type: str, entity_id: uuid.UUID, limit: int = 50) -> List[ActivityLog]:
        """Trail of one campaign or brand, newest first."""
        result = await self.session.exec(
            select(ActivityLog)
            .where(ActivityLog.entity_type == entity_type, ActivityLog.entity_id == entity_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return result.all()
