from __future__ import annotations

from typing import Protocol


class UserPrompt(Protocol):
    def ask(self, question: str) -> str:
        raise NotImplementedError


class ConsolePrompt(UserPrompt):
    def ask(self, question: str) -> str:
        return input(f"{question} ")


def confirm(user_prompt: UserPrompt, question: str) -> bool:
    return user_prompt.ask(f"{question} (y/n):").strip().lower() in ("y", "yes")
