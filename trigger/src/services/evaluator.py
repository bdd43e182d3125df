"""
Trigger evaluation - decides whether an event starts a pipeline run.
"""

import logging
from typing import Iterable

from trigger.src.models.event import EventKind, TriggerEvent, TriggerRule

logger = logging.getLogger(__name__)

def rule_matches(rule: TriggerRule, kind: EventKind, branch: str) -> bool:
    """Check a single rule against an event kind and branch."""
    if kind not in rule.event_kinds:
        return False
    return not rule.branches or branch in rule.branches

def evaluate(event: TriggerEvent, rules: Iterable[TriggerRule]) -> bool:
    """
    Return True if any rule accepts the event.
    Unknown event kinds are rejected, never raised.
    """
    try:
        kind = EventKind(event.event_kind)
    except ValueError:
        logger.debug(f"Rejecting unknown event kind '{event.event_kind}'")
        return False

    accepted = any(rule_matches(rule, kind, event.target_branch) for rule in rules)
    logger.debug(
        f"Event {kind.value} on '{event.target_branch}' "
        f"{'accepted' if accepted else 'rejected'}"
    )
    return accepted
