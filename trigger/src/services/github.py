"""
GitHub adapters - build trigger events from data the platform delivers.
"""

import json
import os
from typing import Any, Dict, Mapping, Optional

from trigger.src.models.event import EventKind, TriggerEvent

class TriggerInputError(Exception):
    """Raised when no trigger event can be built from the given input."""
    pass

def strip_ref(ref: str) -> str:
    """refs/heads/main -> main"""
    for prefix in ("refs/heads/", "refs/tags/"):
        if ref.startswith(prefix):
            return ref[len(prefix):]
    return ref

def parse_event_payload(event_name: str, payload: Dict[str, Any]) -> TriggerEvent:
    """Extract the event kind and target branch from a GitHub event payload."""
    if not isinstance(payload, dict):
        raise TriggerInputError("Event payload must be a JSON object")

    if event_name == EventKind.PULL_REQUEST.value:
        # Pull requests are filtered on the branch they merge into
        pull_request = payload.get("pull_request") or {}
        if not isinstance(pull_request, dict):
            raise TriggerInputError("Event payload 'pull_request' must be an object")
        base = pull_request.get("base") or {}
        if not isinstance(base, dict):
            raise TriggerInputError("Event payload 'pull_request.base' must be an object")
        ref = base.get("ref", "")
    else:
        ref = payload.get("ref", "")

    if not isinstance(ref, str):
        raise TriggerInputError(f"Event payload ref must be a string, got {ref!r}")

    branch = ref if event_name == EventKind.PULL_REQUEST.value else strip_ref(ref)
    return TriggerEvent(event_kind=event_name, target_branch=branch)

def load_event_payload(path: str) -> Dict[str, Any]:
    """Read the JSON payload GitHub Actions writes to GITHUB_EVENT_PATH."""
    try:
        with open(path, "r") as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        raise TriggerInputError(f"Cannot read event payload {path}: {e}")

    if not isinstance(payload, dict):
        raise TriggerInputError(f"Event payload {path} must be a JSON object")
    return payload

def event_from_environment(environ: Optional[Mapping[str, str]] = None) -> TriggerEvent:
    """Build a trigger event from the GitHub Actions environment."""
    environ = os.environ if environ is None else environ

    event_name = environ.get("GITHUB_EVENT_NAME")
    if not event_name:
        raise TriggerInputError("GITHUB_EVENT_NAME is not set")

    event_path = environ.get("GITHUB_EVENT_PATH")
    if event_path:
        return parse_event_payload(event_name, load_event_payload(event_path))

    if event_name == EventKind.PULL_REQUEST.value:
        branch = environ.get("GITHUB_BASE_REF", "")
    else:
        branch = environ.get("GITHUB_REF_NAME") or strip_ref(environ.get("GITHUB_REF", ""))

    return TriggerEvent(event_kind=event_name, target_branch=branch)
