"""Tests for decision prompts."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from funorm.prompt import ConsolePrompt, StaticPrompt, is_affirmative


class TestIsAffirmative:

    @pytest.mark.parametrize("answer", ["y", "Y", "yes", "Yes", " yes\n"])
    def test_yes(self, answer):
        assert is_affirmative(answer)

    @pytest.mark.parametrize("answer", ["", "n", "no", "yep", "sure", None])
    def test_anything_else_is_no(self, answer):
        assert not is_affirmative(answer)


class TestStaticPrompt:

    async def test_records_questions(self):
        prompt = StaticPrompt("yes")
        assert await prompt.ask("Apply? [y/N]: ") == "yes"
        assert prompt.questions == ["Apply? [y/N]: "]


class TestConsolePrompt:

    async def test_reads_answer(self):
        console = Console(file=io.StringIO())
        with patch.object(console, "input", return_value="y") as mock_input:
            answer = await ConsolePrompt(console).ask("Apply 1 migration(s)? [y/N]: ")
        assert answer == "y"
        # Brackets are escaped so rich does not read them as markup
        assert mock_input.call_args[0][0] == "Apply 1 migration(s)? \\[y/N]: "

    async def test_closed_stdin_is_no_answer(self):
        console = Console(file=io.StringIO())
        with patch.object(console, "input", side_effect=EOFError):
            assert await ConsolePrompt(console).ask("Apply? ") == ""
