"""Decision prompt used by interactive reconciliation.

Usage:
    from funorm.prompt import ConsolePrompt

    answer = await ConsolePrompt().ask("Apply 2 migrations? [y/N]: ")
"""

import asyncio
from typing import Protocol

from rich.console import Console
from rich.markup import escape

AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})


class Prompt(Protocol):
    """Asks an operator a question and returns the raw answer."""

    async def ask(self, question: str) -> str:
        ...


def is_affirmative(answer: str | None) -> bool:
    """Only an explicit yes counts; empty or missing answers are a no."""
    if answer is None:
        return False
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


class ConsolePrompt:
    """Prompt reading the answer from the terminal through a rich ``Console``.

    The blocking read runs in a worker thread so the event loop stays free.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    async def ask(self, question: str) -> str:
        try:
            return await asyncio.to_thread(self._console.input, escape(question))
        except EOFError:
            # stdin closed: treat as no answer
            return ""


class StaticPrompt:
    """Prompt returning a fixed answer (``--yes`` on the command line)."""

    def __init__(self, answer: str) -> None:
        self.answer = answer
        self.questions: list[str] = []

    async def ask(self, question: str) -> str:
        self.questions.append(question)
        return self.answer
