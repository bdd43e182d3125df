"""Tests for the pipeline runner."""

import sys

import pytest
from runner.src.models.stage import Stage
from runner.src.services.executor import (
    CANNOT_EXECUTE_EXIT_CODE,
    NOT_FOUND_EXIT_CODE,
    TIMEOUT_EXIT_CODE,
    PipelineRunner,
)
from runner.src.services.pipeline_parser import ConfigurationError

def test_all_stages_pass(ci_stages):
    result = PipelineRunner().run(ci_stages)

    assert result.accepted is True
    assert result.overall_succeeded is True
    assert result.halted_early is False
    assert [r.stage_name for r in result.stage_results] == ["compile", "fmt", "lint", "test"]
    assert all(r.succeeded for r in result.stage_results)
    assert all(r.exit_code == 0 for r in result.stage_results)
    assert result.halted_stage is None

def test_lint_failure_halts_run(make_stage, tmp_path):
    marker = tmp_path / "test-ran"
    stages = [
        make_stage("compile", ordinal=1),
        make_stage("fmt", ordinal=2),
        make_stage("lint", "import sys; sys.exit(1)", ordinal=3),
        make_stage("test", f"open({str(marker)!r}, 'w').close()", ordinal=4),
    ]

    result = PipelineRunner().run(stages)

    assert result.overall_succeeded is False
    assert result.halted_early is True
    assert len(result.stage_results) == 3
    assert result.stage_results[2].stage_name == "lint"
    assert result.stage_results[2].succeeded is False
    assert result.stage_results[2].exit_code == 1
    assert result.halted_stage.stage_name == "lint"
    assert not marker.exists()

@pytest.mark.parametrize("failing", [1, 2, 3, 4])
def test_first_failure_determines_result_length(make_stage, failing):
    stages = [
        make_stage(
            f"stage-{k}",
            "import sys; sys.exit(3)" if k >= failing else "pass",
            ordinal=k,
        )
        for k in range(1, 5)
    ]

    result = PipelineRunner().run(stages)

    assert len(result.stage_results) == failing
    assert result.halted_early is True
    assert result.overall_succeeded is False
    assert result.stage_results[-1].succeeded is False
    assert all(r.succeeded for r in result.stage_results[:-1])

def test_repeated_runs_agree(make_stage):
    stages = [
        make_stage("compile", ordinal=1),
        make_stage("lint", "import sys; sys.exit(2)", ordinal=2),
        make_stage("test", ordinal=3),
    ]
    runner = PipelineRunner()

    first = runner.run(stages)
    second = runner.run(stages)

    assert first.overall_succeeded == second.overall_succeeded
    assert [r.succeeded for r in first.stage_results] == [r.succeeded for r in second.stage_results]

def test_duplicate_ordinal_rejected_before_execution(make_stage, tmp_path):
    marker = tmp_path / "ran"
    stages = [
        make_stage("compile", f"open({str(marker)!r}, 'w').close()", ordinal=1),
        make_stage("fmt", ordinal=1),
    ]

    with pytest.raises(ConfigurationError, match="Duplicate ordinal 1"):
        PipelineRunner().run(stages)
    assert not marker.exists()

def test_empty_stage_list_rejected():
    with pytest.raises(ConfigurationError):
        PipelineRunner().run([])

def test_timeout_halts_run(make_stage):
    stages = [
        make_stage("slow", "import time; time.sleep(30)", ordinal=1, timeout=1),
        make_stage("never", ordinal=2),
    ]

    result = PipelineRunner().run(stages)

    assert len(result.stage_results) == 1
    slow = result.stage_results[0]
    assert slow.timed_out is True
    assert slow.succeeded is False
    assert slow.exit_code == TIMEOUT_EXIT_CODE
    assert slow.duration_millis < 30000
    assert result.halted_early is True

def test_default_timeout_applies(make_stage):
    stage = make_stage("slow", "import time; time.sleep(30)", ordinal=1)

    result = PipelineRunner(default_timeout=1).run([stage])
    assert result.stage_results[0].timed_out is True

def test_missing_executable_is_a_fault(make_stage):
    stages = [
        make_stage("compile", ordinal=1),
        Stage(name="lint", command=["stagegate-no-such-tool-xyz"], ordinal=2),
        make_stage("test", ordinal=3),
    ]

    result = PipelineRunner().run(stages)

    assert len(result.stage_results) == 2
    lint = result.stage_results[1]
    assert lint.succeeded is False
    assert lint.exit_code == NOT_FOUND_EXIT_CODE
    assert lint.fault is not None
    assert lint.timed_out is False
    assert result.halted_early is True

def test_output_is_captured(make_stage):
    stage = make_stage(
        "lint",
        "import sys; print('warning: unused variable'); sys.stderr.write('error: denied\\n'); sys.exit(1)",
    )

    result = PipelineRunner().run([stage])
    output = result.stage_results[0].output
    assert "warning: unused variable" in output
    assert "error: denied" in output

def test_output_tail_is_limited(make_stage):
    stage = make_stage("noisy", "for i in range(50): print(i)")

    result = PipelineRunner(tail_lines=5).run([stage])
    assert result.stage_results[0].output.splitlines() == ["45", "46", "47", "48", "49"]

def test_environment_reaches_stage(make_stage):
    code = (
        "import os, sys; "
        "sys.exit(0 if os.environ.get('PIPELINE_VAR') == 'p' "
        "and os.environ.get('STAGE_VAR') == 's' else 1)"
    )
    stage = make_stage("env", code, env={"STAGE_VAR": "s"})

    result = PipelineRunner(env={"PIPELINE_VAR": "p"}).run([stage])
    assert result.overall_succeeded is True

def test_stage_env_overrides_pipeline_env(make_stage):
    code = "import os, sys; sys.exit(0 if os.environ['MODE'] == 'stage' else 1)"
    stage = make_stage("env", code, env={"MODE": "stage"})

    result = PipelineRunner(env={"MODE": "pipeline"}).run([stage])
    assert result.overall_succeeded is True

def test_stages_share_working_directory(make_stage, tmp_path):
    """A later stage sees what an earlier stage left behind."""
    stages = [
        make_stage("build", "open('artifact.txt', 'w').write('built')", ordinal=1),
        make_stage("check", "import sys; sys.exit(0 if open('artifact.txt').read() == 'built' else 1)", ordinal=2),
    ]

    result = PipelineRunner(working_dir=str(tmp_path)).run(stages)
    assert result.overall_succeeded is True
    assert (tmp_path / "artifact.txt").exists()

def test_stage_callback_sees_each_result(ci_stages):
    seen = []
    runner = PipelineRunner(on_stage_result=lambda stage, result: seen.append((stage.ordinal, result.succeeded)))

    runner.run(ci_stages)
    assert seen == [(1, True), (2, True), (3, True), (4, True)]

def test_interrupted_stage_records_nothing(make_stage, monkeypatch):
    seen = []
    runner = PipelineRunner(on_stage_result=lambda stage, result: seen.append(stage.name))

    calls = {"count": 0}
    original = runner.execute_stage

    def interrupt_second(stage):
        calls["count"] += 1
        if calls["count"] == 2:
            raise KeyboardInterrupt
        return original(stage)

    monkeypatch.setattr(runner, "execute_stage", interrupt_second)

    with pytest.raises(KeyboardInterrupt):
        runner.run([make_stage("compile", ordinal=1), make_stage("lint", ordinal=2)])
    assert seen == ["compile"]

def test_negative_exit_code_is_failure(make_stage):
    if sys.platform == "win32":
        pytest.skip("signals are POSIX only")
    stage = make_stage("crash", "import os, signal; os.kill(os.getpid(), signal.SIGKILL)")

    result = PipelineRunner().run([stage])
    assert result.stage_results[0].succeeded is False
    assert result.stage_results[0].exit_code < 0

def test_non_executable_command_is_a_fault(make_stage, tmp_path):
    if sys.platform == "win32":
        pytest.skip("execute permission is POSIX only")
    script = tmp_path / "lint.sh"
    script.write_text("#!/bin/sh\nexit 0\n")
    script.chmod(0o644)

    stages = [
        make_stage("compile", ordinal=1),
        Stage(name="lint", command=[str(script)], ordinal=2),
        make_stage("test", ordinal=3),
    ]

    result = PipelineRunner().run(stages)

    assert [r.stage_name for r in result.stage_results] == ["compile", "lint"]
    lint = result.stage_results[1]
    assert lint.exit_code == CANNOT_EXECUTE_EXIT_CODE
    assert lint.fault is not None
    assert lint.succeeded is False
    assert result.halted_early is True
    assert result.overall_succeeded is False

def test_terminated_stage_records_nothing(make_stage, monkeypatch):
    seen = []
    runner = PipelineRunner(on_stage_result=lambda stage, result: seen.append(stage.name))
    original = runner.execute_stage

    def terminate_on_lint(stage):
        if stage.name == "lint":
            raise SystemExit(143)
        return original(stage)

    monkeypatch.setattr(runner, "execute_stage", terminate_on_lint)

    with pytest.raises(SystemExit) as exc_info:
        runner.run([
            make_stage("compile", ordinal=1),
            make_stage("lint", ordinal=2),
            make_stage("test", ordinal=3),
        ])
    assert exc_info.value.code == 143
    assert seen == ["compile"]
