"""
Human-readable run reports.
"""

from typing import List, Optional

from runner.src.models.stage import RunResult, StageResult

def format_stage_line(result: StageResult) -> str:
    status = "PASS" if result.succeeded else "FAIL"
    return f"[{status}] {result.stage_name} ({result.duration_millis} ms)"

def describe_halt(result: StageResult) -> str:
    """Say why a stage stopped the run."""
    if result.fault is not None:
        return (
            f"Halted at stage '{result.stage_name}': could not start: "
            f"{result.fault} (exit code {result.exit_code})"
        )
    if result.timed_out:
        return f"Halted at stage '{result.stage_name}': timed out (exit code {result.exit_code})"
    return f"Halted at stage '{result.stage_name}': failed with exit code {result.exit_code}"

def format_report(
    result: RunResult,
    pipeline_name: Optional[str] = None,
    total_stages: Optional[int] = None,
) -> str:
    """Render a RunResult as text, one line per stage plus a summary."""
    title = f"Pipeline '{pipeline_name}'" if pipeline_name else "Pipeline"

    if not result.accepted:
        return f"{title}: not triggered"

    lines: List[str] = [format_stage_line(r) for r in result.stage_results]

    halted = result.halted_stage
    if halted is not None:
        lines.append(describe_halt(halted))
        if halted.output:
            lines.append("--- output ---")
            lines.extend(f"  {line}" for line in halted.output.splitlines())

    passed = sum(1 for r in result.stage_results if r.succeeded)
    total = total_stages if total_stages is not None else len(result.stage_results)
    verdict = "succeeded" if result.overall_succeeded else "failed"
    lines.append(f"{title} {verdict}: {passed}/{total} stages passed")

    return "\n".join(lines)
