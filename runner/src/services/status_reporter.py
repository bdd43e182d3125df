"""
Record pipeline and stage status to a database.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import create_engine, update
from sqlalchemy.orm import sessionmaker

from runner.src.models.db import Base, PipelineRun, PipelineStage
from runner.src.models.stage import RunResult, StageResult, StageStatus
from trigger.src.models.event import TriggerEvent

logger = logging.getLogger(__name__)

class StatusReporter:
    """Writes run history; one row per run and one per executed stage."""

    def __init__(self, database_url: str):
        self.engine = create_engine(database_url)
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def start_run(self, pipeline_name: str, event: TriggerEvent) -> str:
        run_id = str(uuid.uuid4())

        with self.SessionLocal() as session:
            session.add(PipelineRun(
                id=run_id,
                pipeline_name=pipeline_name,
                event_kind=event.event_kind,
                branch=event.target_branch,
                status=StageStatus.RUNNING.value,
                started_at=datetime.utcnow(),
            ))
            session.commit()

        logger.info(f"Recording run {run_id} for pipeline '{pipeline_name}'")
        return run_id

    def record_stage(self, run_id: str, ordinal: int, result: StageResult):
        status = StageStatus.SUCCEEDED if result.succeeded else StageStatus.FAILED

        with self.SessionLocal() as session:
            session.add(PipelineStage(
                run_id=run_id,
                name=result.stage_name,
                ordinal=ordinal,
                status=status.value,
                exit_code=result.exit_code,
                duration_millis=result.duration_millis,
                timed_out=result.timed_out,
                fault=result.fault,
                logs=result.output,
            ))
            session.commit()
        logger.debug(f"Recorded stage {ordinal} of run {run_id} as {status.value}")

    def finish_run(self, run_id: str, result: RunResult):
        status = StageStatus.SUCCEEDED if result.overall_succeeded else StageStatus.FAILED

        with self.SessionLocal() as session:
            session.execute(
                update(PipelineRun)
                .where(PipelineRun.id == run_id)
                .values(
                    status=status.value,
                    halted_early=result.halted_early,
                    finished_at=datetime.utcnow(),
                )
            )
            session.commit()
        logger.info(f"Updated run {run_id} status to {status.value}")

    def cancel_run(self, run_id: str):
        """Mark a run that was interrupted before it finished."""
        with self.SessionLocal() as session:
            session.execute(
                update(PipelineRun)
                .where(PipelineRun.id == run_id)
                .values(
                    status=StageStatus.CANCELLED.value,
                    finished_at=datetime.utcnow(),
                )
            )
            session.commit()
        logger.info(f"Updated run {run_id} status to {StageStatus.CANCELLED.value}")

    def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        with self.SessionLocal() as session:
            run = session.get(PipelineRun, run_id)
            if run is None:
                return None
            return {
                "id": run.id,
                "pipeline_name": run.pipeline_name,
                "event_kind": run.event_kind,
                "branch": run.branch,
                "status": run.status,
                "halted_early": run.halted_early,
            }

    def get_run_stages(self, run_id: str) -> List[Dict[str, Any]]:
        """Get all recorded stages for a run, in ordinal order."""
        with self.SessionLocal() as session:
            stages = session.query(PipelineStage).filter(
                PipelineStage.run_id == run_id
            ).order_by(PipelineStage.ordinal).all()

            return [
                {
                    "ordinal": s.ordinal,
                    "name": s.name,
                    "status": s.status,
                    "exit_code": s.exit_code,
                    "duration_millis": s.duration_millis,
                    "timed_out": s.timed_out,
                    "fault": s.fault,
                }
                for s in stages
            ]
