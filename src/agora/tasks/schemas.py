"""Request/response schemas for sponsored task endpoints.

Fields are optional here; the orchestrator reports every missing or bad
one together.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, StrictBool, StrictInt, StrictStr

from agora.schemas import CamelModel


class CreateTaskRequest(CamelModel):
    title: StrictStr | None = Field(None, max_length=200)
    description: StrictStr | None = Field(None, max_length=5000)
    task_type: StrictInt | None = None
    budget_amount: StrictInt | StrictStr | None = None
    participant_limit: StrictInt | StrictStr | None = None
    voting_end_date: datetime | None = None


class CreateTaskResponse(CamelModel):
    success: bool = True
    task_id: str
    digest: str
    creator: str


class VoteRequest(CamelModel):
    vote_type: StrictInt | None = None


class CommentRequest(CamelModel):
    content: StrictStr | None = Field(None, max_length=2000)


class DonateRequest(CamelModel):
    amount: StrictInt | StrictStr | None = None
    message: StrictStr | None = Field(None, max_length=500)
    community: StrictBool = False


class ActionResponse(CamelModel):
    success: bool = True
    digest: str


class DonateResponse(CamelModel):
    success: bool = True
    digest: str
    sponsor_address: str
