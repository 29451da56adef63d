"""Shared FastAPI dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from agora.chain.executor import get_executor
from agora.config import get_settings
from agora.database import get_session
from agora.sponsored.orchestrator import SponsoredActionOrchestrator
from agora.sponsored.store import SqlStatsStore


async def get_orchestrator(db: AsyncSession = Depends(get_session)) -> SponsoredActionOrchestrator:
    """Orchestrator bound to the request's session."""
    return SponsoredActionOrchestrator(SqlStatsStore(db), get_executor(), get_settings())
