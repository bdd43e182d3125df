"""
Database models for run history.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, Boolean
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

class PipelineRun(Base):
    __tablename__ = "pipeline_runs"

    id = Column(String(36), primary_key=True)
    pipeline_name = Column(String(255), nullable=False)
    event_kind = Column(String(50), nullable=False)
    branch = Column(String(255), nullable=False)
    status = Column(String(50), default="running")
    halted_early = Column(Boolean, default=False)
    started_at = Column(DateTime)
    finished_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())

class PipelineStage(Base):
    __tablename__ = "pipeline_stages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(String(36), ForeignKey("pipeline_runs.id"), nullable=False)
    name = Column(String(255), nullable=False)
    ordinal = Column(Integer, nullable=False)
    status = Column(String(50), nullable=False)
    exit_code = Column(Integer, nullable=False)
    duration_millis = Column(Integer, nullable=False)
    timed_out = Column(Boolean, default=False)
    fault = Column(Text)
    logs = Column(Text)
    created_at = Column(DateTime, server_default=func.now())
