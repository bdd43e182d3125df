"""
Pipeline executor - runs pipeline stages as local processes.
"""

import logging
import os
import subprocess
import time
from typing import Callable, Dict, List, Optional, Sequence, Union

from runner.src.config import get_settings
from runner.src.models.stage import Stage, StageResult, RunResult
from runner.src.services.log_collector import collect_output
from runner.src.services.pipeline_parser import validate_stage_order

logger = logging.getLogger(__name__)
settings = get_settings()

# Synthetic exit codes, following shell conventions
TIMEOUT_EXIT_CODE = 124
CANNOT_EXECUTE_EXIT_CODE = 126
NOT_FOUND_EXIT_CODE = 127

StageCallback = Callable[[Stage, StageResult], None]

class PipelineRunner:
    """
    Executes stages one at a time in ordinal order and stops at the
    first stage that does not exit 0.
    """

    def __init__(
        self,
        default_timeout: Optional[int] = None,
        working_dir: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        tail_lines: Optional[int] = None,
        on_stage_result: Optional[StageCallback] = None,
    ):
        self.default_timeout = default_timeout or settings.stage_timeout
        self.working_dir = working_dir or settings.working_dir
        self.env = env or {}
        self.tail_lines = settings.log_tail_lines if tail_lines is None else tail_lines
        self.on_stage_result = on_stage_result

    def run(self, stages: Sequence[Stage]) -> RunResult:
        """
        Execute a pipeline run.
        Raises ConfigurationError before anything runs if the stage
        sequence is empty or its ordinals are not strictly increasing.
        """
        validate_stage_order(stages)

        logger.info(f"Starting pipeline run with {len(stages)} stages")
        results: List[StageResult] = []

        for stage in stages:
            logger.info(f"Executing stage {stage.ordinal}: {stage.name}")

            result = self.execute_stage(stage)
            results.append(result)

            if self.on_stage_result:
                self.on_stage_result(stage, result)

            if result.succeeded:
                logger.info(f"Stage {stage.ordinal} ({stage.name}) succeeded in {result.duration_millis} ms")
                continue

            logger.error(f"Stage {stage.ordinal} ({stage.name}) failed with exit code {result.exit_code}")
            logger.info("Pipeline run halted")
            return RunResult(
                accepted=True,
                stage_results=results,
                overall_succeeded=False,
                halted_early=True,
            )

        logger.info("Pipeline run succeeded")
        return RunResult(
            accepted=True,
            stage_results=results,
            overall_succeeded=True,
            halted_early=False,
        )

    def execute_stage(self, stage: Stage) -> StageResult:
        """
        Execute a single stage and wait for it to finish.
        Interruptions propagate with no result recorded.
        """
        timeout = stage.timeout or self.default_timeout
        env = {**os.environ, **self.env, **stage.env}
        started = time.monotonic()

        try:
            completed = subprocess.run(
                stage.command,
                cwd=self.working_dir,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.error(f"Stage {stage.name} timed out after {timeout}s")
            return self._result(
                stage, started, TIMEOUT_EXIT_CODE,
                output=e.output,
                timed_out=True,
            )
        except FileNotFoundError as e:
            logger.error(f"Stage {stage.name} could not start: {e}")
            return self._result(stage, started, NOT_FOUND_EXIT_CODE, fault=str(e))
        except OSError as e:
            logger.error(f"Stage {stage.name} could not start: {e}")
            return self._result(stage, started, CANNOT_EXECUTE_EXIT_CODE, fault=str(e))

        return self._result(stage, started, completed.returncode, output=completed.stdout)

    def _result(
        self,
        stage: Stage,
        started: float,
        exit_code: int,
        output: Optional[Union[bytes, str]] = None,
        timed_out: bool = False,
        fault: Optional[str] = None,
    ) -> StageResult:
        duration_millis = int((time.monotonic() - started) * 1000)
        return StageResult(
            stage_name=stage.name,
            exit_code=exit_code,
            duration_millis=duration_millis,
            succeeded=exit_code == 0 and not timed_out and fault is None,
            timed_out=timed_out,
            fault=fault,
            output=collect_output(output, self.tail_lines) if fault is None else None,
        )
