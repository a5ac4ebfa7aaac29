from __future__ import annotations

import json

import pytest

from devloop import prompts
from devloop.discovery import ContextDiscovery
from devloop.errors import MissingRepositoryError, PlanningError
from devloop.gates.parsers import NO_JSON_FOUND
from devloop.models import Requirements
from devloop.pipeline_plan import PlanSynthesizer

from fakes import CountingFetcher, ScriptedOracle

PLAN_PAYLOAD = {
    "title": "Add login",
    "shortDescription": "Users can log in",
    "longDescription": "Add a login form backed by the session store.",
    "acceptanceCriteria": ["Valid credentials log in", "Invalid credentials are refused"],
    "plan": ["Add form", "Wire handler", "Write tests"],
    "estimatedHours": 4,
}


def synthesizer(oracle, contents=None):
    discovery = ContextDiscovery(
        oracle, CountingFetcher(contents or {}), label="plan", task=prompts.PLANNING_TASK
    )
    return PlanSynthesizer(oracle, discovery)


def requirements() -> Requirements:
    return Requirements(
        description="Add a login page",
        repository_path="/repo",
        project_title="Shop",
        additional_details={"Which auth backend?": "sessions"},
    )


def test_plan_uses_discovered_files_and_system_message():
    oracle = ScriptedOracle(
        ['["src/auth.py"]', "No more files", "Sure!\n```json\n" + json.dumps(PLAN_PAYLOAD, indent=2) + "\n```"]
    )

    plan = synthesizer(oracle, {"src/auth.py": "def login(): ..."}).synthesize(
        requirements(), ["src/auth.py", "README.md"]
    )

    assert plan.title == "Add login"
    assert plan.acceptance_criteria == ["Valid credentials log in", "Invalid credentials are refused"]
    assert plan.plan == ["Add form", "Wire handler", "Write tests"]
    assert plan.estimated_hours == 4

    plan_prompt, system_message = oracle.calls[-1]
    assert system_message == prompts.planner_system_message()
    assert "def login(): ..." in plan_prompt
    assert "Project Title: Shop" in plan_prompt
    assert "Question: Which auth backend?\nAnswer: sessions" in plan_prompt
    assert "Add a login page" in oracle.prompts[0]


def test_missing_repository_path_fails_before_any_call():
    oracle = ScriptedOracle([])
    with pytest.raises(MissingRepositoryError):
        synthesizer(oracle).synthesize(Requirements(description="x"), ["a.txt"])
    assert oracle.calls == []


def test_unparseable_plan_carries_the_extraction_diagnostic():
    oracle = ScriptedOracle(["No more files", "I would rather not."])
    with pytest.raises(PlanningError) as excinfo:
        synthesizer(oracle).synthesize(requirements(), ["a.txt"])
    assert NO_JSON_FOUND in str(excinfo.value)


def test_empty_plan_reply_is_a_planning_error():
    oracle = ScriptedOracle(["No more files", None])
    with pytest.raises(PlanningError):
        synthesizer(oracle).synthesize(requirements(), ["a.txt"])


def test_array_reply_is_rejected():
    oracle = ScriptedOracle(["No more files", '["step one", "step two"]'])
    with pytest.raises(PlanningError, match="expected a JSON object"):
        synthesizer(oracle).synthesize(requirements(), ["a.txt"])


def test_missing_fields_are_tolerated_with_warnings(capsys):
    oracle = ScriptedOracle(["No more files", {"title": "Tiny", "plan": ["Do it"]}])

    plan = synthesizer(oracle).synthesize(requirements(), ["a.txt"])

    assert plan.title == "Tiny"
    assert plan.plan == ["Do it"]
    assert plan.acceptance_criteria == []
    assert "does not match the expected shape" in capsys.readouterr().err
