"""Blocking terminal prompts used by the password recovery flow."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Tuple

from rich.prompt import Prompt

from ..ux import console


class RecoveryAction(Enum):
    ENTER_PASSWORD = "enter_password"
    RESET_PASSWORD = "reset_password"
    EXIT = "exit"


ACTION_LABELS = {
    RecoveryAction.ENTER_PASSWORD: "Enter password manually",
    RecoveryAction.RESET_PASSWORD: "Update/reset password",
    RecoveryAction.EXIT: "Exit",
}


def menu_options(can_reset: bool) -> List[Tuple[str, RecoveryAction]]:
    """Numbered menu entries, ``("1", action)`` first."""
    actions = [RecoveryAction.ENTER_PASSWORD]
    if can_reset:
        actions.append(RecoveryAction.RESET_PASSWORD)
    actions.append(RecoveryAction.EXIT)
    return [(str(index), action) for index, action in enumerate(actions, start=1)]


def stdin_is_interactive() -> bool:
    return sys.stdin is not None and sys.stdin.isatty()


class RecoveryPrompter(ABC):
    """One blocking read per call."""

    @abstractmethod
    def choose_action(self, can_reset: bool) -> RecoveryAction:
        """Ask what to do after authentication failed."""

    @abstractmethod
    def read_password(self, prompt: str) -> str:
        """Read a password without echoing it. May return an empty string.

        Raises ``EOFError`` when input is closed.
        """


class ConsolePrompter(RecoveryPrompter):
    """Prompts on the rich console. Invalid menu input is asked again."""

    def choose_action(self, can_reset: bool) -> RecoveryAction:
        options = menu_options(can_reset)
        console.print("\nWhat would you like to do?\n")
        for key, action in options:
            console.print(f"  {key}. {ACTION_LABELS[action]}")
        try:
            choice = Prompt.ask(
                "\nSelect an option",
                choices=[key for key, _ in options],
                default="1",
                console=console,
            )
        except EOFError:
            return RecoveryAction.EXIT
        return dict(options)[choice]

    def read_password(self, prompt: str) -> str:
        return Prompt.ask(prompt, password=True, console=console)
