from trigger.src.models.event import (
    EventKind,
    TriggerEvent,
    TriggerRule,
)

__all__ = [
    "EventKind",
    "TriggerEvent",
    "TriggerRule",
]
