"""Tests for operator choice providers."""

import logging

from lvlinker.core.choice_provider import (
    ConsoleChoiceProvider,
    NonInteractiveChoiceProvider,
    StaticChoiceProvider,
)


def _console(answers):
    answers = list(answers)
    printed = []

    def fake_input(prompt):
        if not answers:
            raise EOFError
        return answers.pop(0)

    return ConsoleChoiceProvider(input_func=fake_input, output_func=printed.append), printed


def test_console_choose_many():
    """Test space separated selection with invalid tokens ignored."""
    provider, printed = _console(["2 x 1 9 2"])

    assert provider.choose_many("Pick", ["a", "b", "c"]) == [1, 0]
    assert printed == ["Pick", "1) a", "2) b", "3) c"]


def test_console_choose_one_retries_until_valid():
    """Test that invalid answers are asked again."""
    provider, printed = _console(["7", "abc", "3"])

    assert provider.choose_one("Pick", ["a", "b", "c"]) == 2
    assert "Invalid selection: 7" in printed


def test_console_skip_and_eof():
    """Test that 's', an empty answer and EOF all mean skip."""
    for answers in (["s"], [""], []):
        provider, _ = _console(answers)
        assert provider.choose_one("Pick", ["a"]) is None
    provider, _ = _console([])
    assert provider.choose_many("Pick", ["a"]) == []


def test_console_choose_many_skip(caplog):
    """Test that 's' skips the multi-selection without a warning."""
    provider, _ = _console(["s"])

    with caplog.at_level(logging.WARNING):
        assert provider.choose_many("Pick", ["a", "b"]) == []

    assert "Invalid selection" not in caplog.text


def test_console_no_options():
    """Test that nothing is asked without options."""
    provider, printed = _console(["1"])

    assert provider.choose_one("Pick", []) is None
    assert printed == []


def test_non_interactive_fails_closed():
    """Test that the non-interactive provider never chooses."""
    provider = NonInteractiveChoiceProvider()

    assert provider.choose_one("Pick", ["a"]) is None
    assert provider.choose_many("Pick", ["a"]) == []


def test_static_provider():
    """Test preset answers and out-of-range filtering."""
    provider = StaticChoiceProvider(one=5, many=[0, 3])

    assert provider.choose_one("One", ["a", "b"]) is None
    assert provider.choose_many("Many", ["a", "b"]) == [0]
    assert provider.questions == ["One", "Many"]
