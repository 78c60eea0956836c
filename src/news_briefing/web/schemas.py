"""Request payloads."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError
from pydantic.alias_generators import to_camel

from news_briefing.db.models import FollowType, GoalType


class InvalidPayload(Exception):
    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__("invalid request payload")
        self.errors = errors


class Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FollowPayload(Payload):
    follow_type: FollowType
    target_id: StrictInt


class GoalsPayload(Payload):
    # a missing or null list means "no goals"
    goals: list[GoalType] | None = Field(default_factory=list)


def parse_payload(model: type[Payload], raw: bytes | str) -> Payload:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not raw.strip():
        raw = "{}"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidPayload([{"type": "json_invalid", "loc": [], "msg": str(exc)}]) from exc
    if not isinstance(data, dict):
        raise InvalidPayload([{"type": "model_type", "loc": [], "msg": "expected a JSON object"}])
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidPayload(json.loads(exc.json(include_url=False))) from exc
