"""
Pipeline YAML parser and validator.
"""

import os
import shlex
import yaml
from typing import List, Dict, Any, Optional, Sequence

from runner.src.models.pipeline import PipelineConfig
from runner.src.models.stage import Stage
from trigger.src.models.event import EventKind, TriggerRule

PIPELINE_FILES = [
    ".pipeline.yml",
    ".pipeline.yaml",
    "pipeline.yml",
    "pipeline.yaml",
]

class ConfigurationError(Exception):
    """Raised when pipeline configuration is invalid."""
    pass

def find_pipeline_file(directory: str) -> Optional[str]:
    """Return the first pipeline file found in directory, if any."""
    for filename in PIPELINE_FILES:
        path = os.path.join(directory, filename)
        if os.path.exists(path):
            return path
    return None

def load_pipeline_file(path: str) -> PipelineConfig:
    """Read and validate a pipeline file."""
    try:
        with open(path, "r") as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}")

    return parse_pipeline_config(content)

def parse_pipeline_config(yaml_content: str) -> PipelineConfig:
    """Parse pipeline YAML configuration from string."""
    try:
        config = yaml.safe_load(yaml_content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}")

    return validate_config(config)

def parse_pipeline_dict(config: Dict[str, Any]) -> PipelineConfig:
    """Validate pipeline configuration from dict."""
    return validate_config(config)

def validate_config(config: Optional[Dict[str, Any]]) -> PipelineConfig:
    """Validate pipeline configuration structure."""
    if not config:
        raise ConfigurationError("Empty pipeline configuration")

    if not isinstance(config, dict):
        raise ConfigurationError("Pipeline configuration must be a dictionary")

    name = config.get("name", "Unnamed Pipeline")
    if not isinstance(name, str):
        raise ConfigurationError("Pipeline 'name' must be a string")

    env = validate_env(config.get("env", {}), "Pipeline")

    # No triggers section means every event starts the pipeline
    if "triggers" in config:
        triggers = config["triggers"]
        if not isinstance(triggers, list):
            raise ConfigurationError("Pipeline 'triggers' must be a list")
        rules = [validate_trigger(rule, i) for i, rule in enumerate(triggers)]
    else:
        rules = [TriggerRule.accept_all()]

    if "stages" not in config:
        raise ConfigurationError("Pipeline must have 'stages' defined")

    stages = config["stages"]
    if not isinstance(stages, list):
        raise ConfigurationError("Pipeline 'stages' must be a list")

    validated_stages = [validate_stage(stage, i) for i, stage in enumerate(stages)]
    validate_stage_order(validated_stages)

    return PipelineConfig(
        name=name,
        env=env,
        triggers=rules,
        stages=validated_stages,
    )

def validate_env(env: Any, owner: str) -> Dict[str, str]:
    if not isinstance(env, dict):
        raise ConfigurationError(f"{owner} 'env' must be a dictionary")

    validated = {}
    for key, value in env.items():
        if isinstance(value, (dict, list)) or value is None:
            raise ConfigurationError(f"{owner} env '{key}' must be a scalar")
        validated[str(key)] = str(value)
    return validated

def validate_command(command: Any, index: int) -> List[str]:
    """Accept a command line string or an argv list."""
    if isinstance(command, str):
        try:
            argv = shlex.split(command)
        except ValueError as e:
            raise ConfigurationError(f"Stage {index} 'command' cannot be parsed: {e}")
    elif isinstance(command, list):
        for j, arg in enumerate(command):
            if not isinstance(arg, str):
                raise ConfigurationError(f"Stage {index} command argument {j} must be a string")
        argv = command
    else:
        raise ConfigurationError(f"Stage {index} 'command' must be a string or a list")

    if not argv:
        raise ConfigurationError(f"Stage {index} 'command' is empty")
    return argv

def validate_stage(stage: Dict[str, Any], index: int) -> Stage:
    """Validate a single pipeline stage."""
    if not isinstance(stage, dict):
        raise ConfigurationError(f"Stage {index} must be a dictionary")

    if "name" not in stage:
        raise ConfigurationError(f"Stage {index} missing 'name'")

    if "command" not in stage:
        raise ConfigurationError(f"Stage {index} missing 'command'")

    if not isinstance(stage["name"], str):
        raise ConfigurationError(f"Stage {index} 'name' must be a string")

    ordinal = stage.get("ordinal", index + 1)
    if not isinstance(ordinal, int) or isinstance(ordinal, bool):
        raise ConfigurationError(f"Stage {index} 'ordinal' must be an integer")

    timeout = stage.get("timeout")
    if timeout is not None:
        if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
            raise ConfigurationError(f"Stage {index} 'timeout' must be a positive integer")

    return Stage(
        name=stage["name"],
        command=validate_command(stage["command"], index),
        ordinal=ordinal,
        timeout=timeout,
        env=validate_env(stage.get("env", {}), f"Stage {index}"),
    )

def validate_trigger(rule: Dict[str, Any], index: int) -> TriggerRule:
    """Validate a single trigger rule."""
    if not isinstance(rule, dict):
        raise ConfigurationError(f"Trigger {index} must be a dictionary")

    events = rule.get("events")
    if not events or not isinstance(events, list):
        raise ConfigurationError(f"Trigger {index} must list at least one event in 'events'")

    kinds = set()
    for event in events:
        try:
            kinds.add(EventKind(event))
        except ValueError:
            raise ConfigurationError(f"Trigger {index} has unknown event '{event}'")

    branches = rule.get("branches", [])
    if isinstance(branches, str):
        branches = [branches]
    if not isinstance(branches, list) or not all(isinstance(b, str) for b in branches):
        raise ConfigurationError(f"Trigger {index} 'branches' must be a list of strings")

    return TriggerRule(event_kinds=frozenset(kinds), branches=frozenset(branches))

def validate_stage_order(stages: Sequence[Stage]):
    """
    Check that there is at least one stage and that ordinals are
    strictly increasing.
    """
    stages = list(stages)
    if len(stages) == 0:
        raise ConfigurationError("Pipeline must have at least one stage")

    for previous, current in zip(stages, stages[1:]):
        if current.ordinal == previous.ordinal:
            raise ConfigurationError(
                f"Duplicate ordinal {current.ordinal} "
                f"(stages '{previous.name}' and '{current.name}')"
            )
        if current.ordinal < previous.ordinal:
            raise ConfigurationError(
                f"Stage '{current.name}' (ordinal {current.ordinal}) is out of order "
                f"after '{previous.name}' (ordinal {previous.ordinal})"
            )
