from pydantic import BaseModel
from typing import List, Dict

from runner.src.models.stage import Stage
from trigger.src.models.event import TriggerRule

class PipelineConfig(BaseModel):
    name: str
    env: Dict[str, str] = {}
    triggers: List[TriggerRule]
    stages: List[Stage]
