import sys

import pytest
from runner.src.models.stage import Stage

@pytest.fixture
def make_stage():
    """Build a stage that runs a Python snippet in a child interpreter."""
    def _make(name, code="pass", ordinal=1, **kwargs):
        return Stage(
            name=name,
            command=[sys.executable, "-c", code],
            ordinal=ordinal,
            **kwargs,
        )
    return _make

@pytest.fixture
def ci_stages(make_stage):
    """The four checks of a typical CI job, all passing."""
    return [
        make_stage("compile", ordinal=1),
        make_stage("fmt", ordinal=2),
        make_stage("lint", ordinal=3),
        make_stage("test", ordinal=4),
    ]
