from __future__ import annotations

import json

import pytest

from devloop.adapters.factory import build_adapter
from devloop.adapters.llm_base import is_transient
from devloop.adapters.mock_adapter import MockAdapter
from devloop.adapters.user_prompt import confirm
from devloop.config import SessionConfig
from devloop.gates.parsers import try_extract_json

from fakes import ScriptedPrompt


def test_mock_mode_needs_no_credentials():
    assert isinstance(build_adapter("mock", SessionConfig()), MockAdapter)


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError):
        build_adapter("live", SessionConfig(provider="llama"))


def test_mock_plan_reply_is_extractable():
    reply = MockAdapter().generate("Create a delivery plan based on the following requirements.")

    extraction = try_extract_json(reply)
    assert extraction.is_object
    assert extraction.data["title"] == "Mock delivery plan"


def test_mock_change_reply_is_an_empty_change_set():
    reply = MockAdapter().generate("Implement all the code for this delivery plan.")

    assert json.loads(reply) == {}


def test_mock_returns_none_for_unknown_prompts():
    assert MockAdapter().generate("hello") is None


@pytest.mark.parametrize(
    "message, expected",
    [("503 Service Unavailable", True), ("Request timed out", True), ("invalid api key", False)],
)
def test_transient_error_detection(message, expected):
    assert is_transient(RuntimeError(message)) is expected


def test_confirm_accepts_yes_variants():
    assert confirm(ScriptedPrompt([" YES "]), "Proceed?")
    assert not confirm(ScriptedPrompt(["nope"]), "Proceed?")
