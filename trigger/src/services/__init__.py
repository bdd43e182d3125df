from trigger.src.services.evaluator import evaluate, rule_matches
from trigger.src.services.github import (
    TriggerInputError,
    strip_ref,
    parse_event_payload,
    load_event_payload,
    event_from_environment,
)

__all__ = [
    "evaluate",
    "rule_matches",
    "TriggerInputError",
    "strip_ref",
    "parse_event_payload",
    "load_event_payload",
    "event_from_environment",
]
