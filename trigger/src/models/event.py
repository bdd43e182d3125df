"""
Trigger event and rule models.
"""

from pydantic import BaseModel, field_validator
from typing import FrozenSet
from enum import Enum

class EventKind(str, Enum):
    PUSH = "push"
    PULL_REQUEST = "pull_request"
    MANUAL_DISPATCH = "workflow_dispatch"

class TriggerEvent(BaseModel):
    # Kept as a plain string so an unknown kind is rejected by evaluation
    # instead of failing here.
    event_kind: str
    target_branch: str

    class Config:
        frozen = True

    @field_validator("event_kind", mode="before")
    @classmethod
    def _kind_value(cls, value):
        if isinstance(value, EventKind):
            return value.value
        return value

class TriggerRule(BaseModel):
    event_kinds: FrozenSet[EventKind]
    branches: FrozenSet[str] = frozenset()  # empty = any branch

    class Config:
        frozen = True

    @classmethod
    def accept_all(cls) -> "TriggerRule":
        return cls(event_kinds=frozenset(EventKind))
