from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from google.genai.errors import APIError as GenAIError
from openai import OpenAIError

from devloop.adapters.factory import build_adapter
from devloop.adapters.user_prompt import ConsolePrompt
from devloop.config import SessionConfig, load_brief
from devloop.models import DevelopmentStatus
from devloop.pipeline_review import ask_commit_decision
from devloop.session import DevelopmentSession
from devloop.utils import log
from devloop.utils.io import write_text
from devloop.utils.time import utc_timestamp

DEFAULT_BRIEF_TEMPLATE = """---
title: My project
description: One paragraph about the project.
repository: .
test_command: npm run test
---
Describe what you would like the agent to develop.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Autonomous software-change orchestrator")
    parser.add_argument("--mode", choices=["mock", "live"], default="live")
    parser.add_argument("--provider", choices=["gemini", "openai"])
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--brief", help="Markdown brief, optionally with YAML front matter")
    source.add_argument("--requirements", "-r", help="Initial requirement text")
    parser.add_argument("--repo", "-p", help="Path to the target repository")
    parser.add_argument("--title", "-t", help="Project title")
    parser.add_argument("--description", "-d", help="Project description")
    parser.add_argument(
        "--questions",
        action="store_true",
        help="Ask clarifying questions before planning",
    )
    parser.add_argument("--test-cmd", dest="test_command", help="Test command run after each change")
    parser.add_argument("--max-iterations", type=int)
    parser.add_argument("--runs-dir", default="runs")
    parser.add_argument("--debug", action="store_true", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv(Path.cwd() / ".env")

    meta: Dict[str, Any] = {}
    requirement_text = args.requirements
    if args.brief:
        brief_path = Path(args.brief)
        if not brief_path.exists():
            write_text(brief_path, DEFAULT_BRIEF_TEMPLATE)
            print(f"Brief template created at {brief_path}. Please edit it with project details.")
            return 1
        meta, requirement_text = load_brief(brief_path)
    if not requirement_text or not requirement_text.strip():
        print("[error] Initial requirements are required.", file=sys.stderr)
        return 1

    run_dir = Path(args.runs_dir) / utc_timestamp()
    repository = args.repo or meta.get("repository")
    user_prompt = ConsolePrompt()

    try:
        config = (
            SessionConfig.from_env()
            .with_overrides(meta)
            .with_overrides(
                {
                    "provider": args.provider,
                    "test_command": args.test_command,
                    "max_iterations": args.max_iterations,
                    "debug": args.debug,
                }
            )
        )
        log.configure(run_dir / "session.log", debug=config.debug)

        session = DevelopmentSession(
            build_adapter(args.mode, config), user_prompt, config, run_dir=run_dir
        )
        session.collect_requirements(
            requirement_text.strip(),
            str(Path(repository).resolve()) if repository else None,
            skip_questions=not args.questions,
        )
        title = args.title or meta.get("title")
        description = args.description or meta.get("description")
        if title:
            session.set_project_title(str(title))
        if description:
            session.set_project_description(str(description))

        log.info("main", "creating delivery plan...")
        session.create_plan()
        log.info("main", f"delivery plan written to {run_dir / 'artifacts'}")

        log.info("main", "starting development...")
        result = session.develop()
        if result.status is DevelopmentStatus.PASSED:
            log.info("main", f"development finished: tests pass after {len(result.iterations)} iteration(s)")
        else:
            log.warning("main", "development stopped at the iteration limit with failing tests")

        decision = ask_commit_decision(user_prompt)
        if decision is not None:
            outcome = session.review(decision)
            log.info("main", f"review outcome: {outcome.value}")
    except (RuntimeError, ValueError, OpenAIError, GenAIError) as exc:
        log.error("main", str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
