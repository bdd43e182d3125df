from runner.src.services.executor import PipelineRunner
from runner.src.services.log_collector import collect_output
from runner.src.services.pipeline_parser import (
    ConfigurationError,
    find_pipeline_file,
    load_pipeline_file,
    parse_pipeline_config,
    parse_pipeline_dict,
    validate_stage_order,
)
from runner.src.services.report import format_report
from runner.src.services.status_reporter import StatusReporter

__all__ = [
    "PipelineRunner",
    "collect_output",
    "ConfigurationError",
    "find_pipeline_file",
    "load_pipeline_file",
    "parse_pipeline_config",
    "parse_pipeline_dict",
    "validate_stage_order",
    "format_report",
    "StatusReporter",
]
