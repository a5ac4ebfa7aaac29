from __future__ import annotations

import sys

import pytest

from devloop.errors import CommandTimeoutError
from devloop.gates.runner import run_test_command

PYTHON = f'"{sys.executable}"'


def test_zero_exit_passes_with_output(tmp_path):
    outcome = run_test_command(tmp_path, f"{PYTHON} -c \"print('all good')\"")

    assert outcome.passed
    assert outcome.return_code == 0
    assert "all good" in outcome.details


def test_non_zero_exit_fails_with_exit_code_and_output(tmp_path):
    command = f"{PYTHON} -c \"import sys; print('boom'); sys.exit(3)\""

    outcome = run_test_command(tmp_path, command)

    assert not outcome.passed
    assert outcome.return_code == 3
    assert outcome.details.startswith("Command failed with exit code 3")
    assert "boom" in outcome.details


def test_stderr_is_captured(tmp_path):
    command = f"{PYTHON} -c \"import sys; sys.stderr.write('stack trace here'); sys.exit(1)\""

    outcome = run_test_command(tmp_path, command)

    assert "stack trace here" in outcome.details


def test_runs_in_the_repository_root(tmp_path):
    (tmp_path / "marker.txt").write_text("here", encoding="utf-8")
    command = f"{PYTHON} -c \"print(open('marker.txt').read())\""

    assert run_test_command(tmp_path, command).passed


def test_output_is_written_to_log(tmp_path):
    log_path = tmp_path / "logs" / "iteration_1.log"

    run_test_command(tmp_path, f"{PYTHON} -c \"print('logged')\"", log_path=log_path)

    assert "logged" in log_path.read_text(encoding="utf-8")


def test_timeout_is_an_error(tmp_path):
    with pytest.raises(CommandTimeoutError) as excinfo:
        run_test_command(tmp_path, f"{PYTHON} -c \"import time; time.sleep(5)\"", timeout=0.5)
    assert excinfo.value.timeout == 0.5


def test_undecodable_output_is_still_an_outcome(tmp_path):
    command = (
        f"{PYTHON} -c \"import sys; sys.stdout.buffer.write(bytes([0xff, 0xfe])); sys.exit(1)\""
    )

    outcome = run_test_command(tmp_path, command)

    assert not outcome.passed
    assert outcome.return_code == 1
    assert "\ufffd" in outcome.details
