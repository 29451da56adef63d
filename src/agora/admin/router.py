"""Administrative endpoints, guarded by the X-Admin-Token header."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from agora.auth.dependencies import require_admin
from agora.auth.service import get_user_by_id
from agora.database import get_session
from agora.db.models import AchievementClaim, User
from agora.errors import UserNotFound

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, db: AsyncSession = Depends(get_session)) -> dict[str, object]:
    """Remove a user and their achievement claims. On-chain objects are untouched."""
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFound(user_id)

    result = await db.execute(delete(AchievementClaim).where(AchievementClaim.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
    logger.warning("user_deleted", user_id=user_id, claims_deleted=result.rowcount)
    return {"success": True, "userId": user_id, "claimsDeleted": result.rowcount}
