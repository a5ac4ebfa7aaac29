from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from devloop.utils import log
from devloop.utils.io import read_text

DEFAULT_TEST_COMMAND = "npm run test"


@dataclass(frozen=True)
class SessionConfig:
    provider: str = "gemini"
    max_iterations: int = 3
    max_discovery_rounds: int = 10
    max_clarify_rounds: int = 10
    test_command: str = DEFAULT_TEST_COMMAND
    test_timeout_seconds: float = 900.0
    oracle_timeout_seconds: float = 120.0
    temperature: float = 0.2
    max_output_tokens: int = 4096
    debug: bool = False

    @classmethod
    def from_env(cls) -> "SessionConfig":
        defaults = cls()
        return cls(
            provider=_env("ORCH_PROVIDER", defaults.provider),
            max_iterations=int(_env("ORCH_MAX_ITERATIONS", str(defaults.max_iterations))),
            max_discovery_rounds=int(
                _env("ORCH_MAX_DISCOVERY_ROUNDS", str(defaults.max_discovery_rounds))
            ),
            max_clarify_rounds=int(
                _env("ORCH_MAX_CLARIFY_ROUNDS", str(defaults.max_clarify_rounds))
            ),
            test_command=_env("ORCH_TEST_COMMAND", defaults.test_command),
            test_timeout_seconds=float(
                _env("ORCH_TEST_TIMEOUT_SECONDS", str(defaults.test_timeout_seconds))
            ),
            oracle_timeout_seconds=float(
                _env("ORCH_ORACLE_TIMEOUT_SECONDS", str(defaults.oracle_timeout_seconds))
            ),
            temperature=float(_env("ORCH_TEMPERATURE", str(defaults.temperature))),
            max_output_tokens=int(
                _env("ORCH_MAX_OUTPUT_TOKENS", str(defaults.max_output_tokens))
            ),
            debug=_env("ORCH_DEBUG", "") == "1",
        )

    def with_overrides(self, overrides: Dict[str, Any]) -> "SessionConfig":
        """Apply known keys from front matter or CLI flags; ``None`` values are skipped."""
        known = {item.name for item in fields(self)}
        changes: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known or value is None:
                continue
            current = getattr(self, key)
            try:
                if isinstance(current, bool) and not isinstance(value, bool):
                    changes[key] = str(value).lower() in ("1", "true", "yes")
                else:
                    changes[key] = type(current)(value)
            except (TypeError, ValueError):
                log.warning("config", f"ignoring invalid value for {key}: {value!r}")
        return replace(self, **changes)


def load_brief(path: Path) -> Tuple[Dict[str, Any], str]:
    return parse_frontmatter(read_text(path))


def parse_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Split a brief into (metadata, body).

    Metadata is either YAML between leading ``---`` lines or a leading JSON
    object; anything else yields empty metadata and the full text as body.
    """
    if not content.startswith("---"):
        stripped = content.lstrip()
        if stripped.startswith("{"):
            try:
                parsed, end = json.JSONDecoder().raw_decode(stripped)
            except json.JSONDecodeError:
                return {}, content
            if isinstance(parsed, dict):
                return parsed, stripped[end:].lstrip("\n")
        return {}, content
    parts = content.split("---", 2)
    if len(parts) < 3:
        return {}, content
    body = parts[2].lstrip("\n")
    try:
        meta = yaml.safe_load(parts[1].strip()) or {}
    except yaml.YAMLError as exc:
        log.warning("config", f"could not parse brief front matter: {exc}")
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, body


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)
