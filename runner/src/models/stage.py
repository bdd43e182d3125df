"""
Stage execution models.
"""

from pydantic import BaseModel
from typing import List, Optional, Dict
from enum import Enum

class StageStatus(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

class Stage(BaseModel):
    name: str
    command: List[str]
    ordinal: int
    timeout: Optional[int] = None  # seconds, None = runner default
    env: Dict[str, str] = {}

    class Config:
        frozen = True

class StageResult(BaseModel):
    stage_name: str
    exit_code: int
    duration_millis: int
    succeeded: bool
    timed_out: bool = False
    fault: Optional[str] = None  # set when the command could not be started
    output: Optional[str] = None

    class Config:
        frozen = True

class RunResult(BaseModel):
    accepted: bool
    stage_results: List[StageResult] = []
    overall_succeeded: bool = False
    halted_early: bool = False

    class Config:
        frozen = True

    @property
    def halted_stage(self) -> Optional[StageResult]:
        """The stage that stopped the run, if any."""
        if self.halted_early and self.stage_results:
            return self.stage_results[-1]
        return None

    @classmethod
    def not_triggered(cls) -> "RunResult":
        return cls(accepted=False)
