"""
stagegate - Main entry point.
"""

import argparse
import logging
import os
import signal
import sys
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError

from runner.src.config import Settings, get_settings
from runner.src.models.stage import RunResult
from runner.src.services.executor import PipelineRunner
from runner.src.services.pipeline_parser import (
    ConfigurationError,
    find_pipeline_file,
    load_pipeline_file,
)
from runner.src.services.report import format_report
from runner.src.services.status_reporter import StatusReporter
from trigger.src.models.event import EventKind, TriggerEvent
from trigger.src.services import TriggerInputError, evaluate, event_from_environment

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_STAGE_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_EXECUTION_FAULT = 3
EXIT_HISTORY_ERROR = 4
EXIT_NOT_TRIGGERED = 78

def exit_code_for(result: RunResult) -> int:
    """Map a run result to the process exit code."""
    if result.overall_succeeded:
        return EXIT_SUCCESS
    if not result.accepted:
        return EXIT_NOT_TRIGGERED

    halted = result.halted_stage
    if halted is not None and halted.fault is not None:
        return EXIT_EXECUTION_FAULT
    return EXIT_STAGE_FAILED

def resolve_config_path(args: argparse.Namespace, settings: Settings) -> str:
    path = args.config or settings.pipeline_file
    if path:
        return path

    working_dir = args.workdir or settings.working_dir
    path = find_pipeline_file(working_dir)
    if path is None:
        raise ConfigurationError(f"No pipeline configuration found in {os.path.abspath(working_dir)}")
    return path

def build_event(args: argparse.Namespace) -> TriggerEvent:
    if args.github_env:
        return event_from_environment()
    return TriggerEvent(event_kind=args.event, target_branch=args.branch)

def emit(result: RunResult, args: argparse.Namespace, pipeline_name: str, total_stages: int):
    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(format_report(result, pipeline_name=pipeline_name, total_stages=total_stages))

def run_command(args: argparse.Namespace, settings: Settings) -> int:
    path = resolve_config_path(args, settings)
    config = load_pipeline_file(path)
    logger.info(f"Loaded pipeline '{config.name}' from {path} ({len(config.stages)} stages)")

    event = build_event(args)
    if not evaluate(event, config.triggers):
        logger.info(
            f"Event {event.event_kind} on '{event.target_branch}' matches no trigger, "
            "pipeline not started"
        )
        result = RunResult.not_triggered()
        emit(result, args, config.name, len(config.stages))
        return exit_code_for(result)

    reporter = None
    run_id = None
    on_stage_result = None
    if settings.database_url:
        reporter = StatusReporter(settings.database_url)
        run_id = reporter.start_run(config.name, event)

        def on_stage_result(stage, stage_result):
            try:
                reporter.record_stage(run_id, stage.ordinal, stage_result)
            except SQLAlchemyError as e:
                logger.error(f"Failed to record stage {stage.ordinal} of run {run_id}: {e}")

    runner = PipelineRunner(
        default_timeout=args.timeout or settings.stage_timeout,
        working_dir=args.workdir or settings.working_dir,
        env=config.env,
        tail_lines=settings.log_tail_lines,
        on_stage_result=on_stage_result,
    )
    try:
        result = runner.run(config.stages)
    except (KeyboardInterrupt, SystemExit):
        if reporter:
            try:
                reporter.cancel_run(run_id)
            except SQLAlchemyError as e:
                logger.error(f"Failed to mark run {run_id} as cancelled: {e}")
        raise

    if reporter:
        try:
            reporter.finish_run(run_id, result)
        except SQLAlchemyError as e:
            logger.error(f"Failed to record final status of run {run_id}: {e}")

    emit(result, args, config.name, len(config.stages))

    halted = result.halted_stage
    if halted is not None and halted.fault is not None:
        logger.error(f"Stage '{halted.stage_name}' could not be executed: {halted.fault}")

    return exit_code_for(result)

def validate_command(args: argparse.Namespace, settings: Settings) -> int:
    path = resolve_config_path(args, settings)
    config = load_pipeline_file(path)

    print(f"Pipeline '{config.name}' is valid")
    for stage in config.stages:
        print(f"  {stage.ordinal}. {stage.name}: {' '.join(stage.command)}")
    return EXIT_SUCCESS

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stagegate",
        description="Run build-verification stages in order, stopping at the first failure.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Evaluate triggers and run the pipeline")
    run.add_argument("--config", help="Pipeline file (default: search the working directory)")
    run.add_argument("--workdir", help="Directory stages run in")
    run.add_argument(
        "--event",
        default=EventKind.MANUAL_DISPATCH.value,
        help="Event kind: push, pull_request or workflow_dispatch",
    )
    run.add_argument("--branch", default="master", help="Target branch of the event")
    run.add_argument(
        "--github-env",
        action="store_true",
        help="Read the event from the GitHub Actions environment",
    )
    run.add_argument("--timeout", type=int, help="Default per-stage timeout in seconds")
    run.add_argument("--json", action="store_true", help="Print the result as JSON")
    run.set_defaults(handler=run_command)

    validate = subparsers.add_parser("validate", help="Validate the pipeline file")
    validate.add_argument("--config", help="Pipeline file (default: search the working directory)")
    validate.add_argument("--workdir", help="Directory to search for the pipeline file")
    validate.set_defaults(handler=validate_command)

    return parser

def _handle_sigterm(signum, frame):
    # Unwinds through subprocess.run, which kills the active stage
    raise SystemExit(128 + signum)

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    signal.signal(signal.SIGTERM, _handle_sigterm)

    try:
        return args.handler(args, settings)
    except ConfigurationError as e:
        logger.error(f"Invalid pipeline configuration: {e}")
        return EXIT_CONFIG_ERROR
    except TriggerInputError as e:
        logger.error(f"Cannot determine trigger event: {e}")
        return EXIT_CONFIG_ERROR
    except SQLAlchemyError as e:
        # Only reached before the first stage; later history writes are logged
        logger.error(f"Run history database unavailable: {e}")
        return EXIT_HISTORY_ERROR
    except KeyboardInterrupt:
        logger.info("Pipeline run cancelled")
        return 130

if __name__ == "__main__":
    sys.exit(main())
