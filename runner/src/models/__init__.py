from runner.src.models.stage import (
    StageStatus,
    Stage,
    StageResult,
    RunResult,
)
from runner.src.models.pipeline import PipelineConfig

__all__ = [
    "StageStatus",
    "Stage",
    "StageResult",
    "RunResult",
    "PipelineConfig",
]
