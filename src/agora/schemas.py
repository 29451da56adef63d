"""Shared schema base: snake_case in Python, camelCase on the wire."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatsResponse(CamelModel):
    tasks_created: int
    tasks_participated: int
    votes_count: int
    donations_count: int
    total_donated: str
    reputation_score: int
