"""Task router: /api/tasks/* sponsored actions."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agora.auth.dependencies import get_current_user
from agora.db.models import User
from agora.dependencies import get_orchestrator
from agora.sponsored.orchestrator import SponsoredActionOrchestrator
from agora.tasks.schemas import (
    ActionResponse,
    CommentRequest,
    CreateTaskRequest,
    CreateTaskResponse,
    DonateRequest,
    DonateResponse,
    VoteRequest,
)

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.post("/create-sponsored", response_model=CreateTaskResponse)
async def create_task_sponsored(
    body: CreateTaskRequest,
    user: User = Depends(get_current_user),
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> CreateTaskResponse:
    created = await orchestrator.create_task(
        user.id,
        title=body.title,
        description=body.description,
        task_type=body.task_type,
        budget_amount=body.budget_amount,
        participant_limit=body.participant_limit,
        voting_end_date=body.voting_end_date,
    )
    return CreateTaskResponse(task_id=created.task_id, digest=created.digest, creator=created.creator)


@router.post("/{task_id}/vote-sponsored", response_model=ActionResponse)
async def vote_sponsored(
    task_id: str,
    body: VoteRequest,
    user: User = Depends(get_current_user),
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> ActionResponse:
    result = await orchestrator.vote(user.id, task_id, body.vote_type)
    return ActionResponse(digest=result.digest)


@router.post("/{task_id}/join-sponsored", response_model=ActionResponse)
async def join_sponsored(
    task_id: str,
    user: User = Depends(get_current_user),
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> ActionResponse:
    result = await orchestrator.join(user.id, task_id)
    return ActionResponse(digest=result.digest)


@router.post("/{task_id}/comment-sponsored", response_model=ActionResponse)
async def comment_sponsored(
    task_id: str,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> ActionResponse:
    result = await orchestrator.comment(user.id, task_id, body.content)
    return ActionResponse(digest=result.digest)


@router.post("/{task_id}/donate-sponsored", response_model=DonateResponse)
async def donate_sponsored(
    task_id: str,
    body: DonateRequest,
    user: User = Depends(get_current_user),
    orchestrator: SponsoredActionOrchestrator = Depends(get_orchestrator),
) -> DonateResponse:
    """Record a donation. ``amount`` is in MIST."""
    recorded = await orchestrator.donate(
        user.id,
        task_id,
        body.amount,
        body.message,
        community=body.community,
    )
    return DonateResponse(digest=recorded.digest, sponsor_address=recorded.sponsor_address)
