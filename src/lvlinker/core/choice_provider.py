"""
Operator choice providers
The engine asks questions through these so it never depends on a terminal
"""

from typing import Callable, List, Optional, Sequence

from lvlinker.utils.logger import get_logger


class ChoiceProvider:
    """Interface for operator choices"""

    def choose_one(self, title: str, options: Sequence[str]) -> Optional[int]:
        """Return the index of the chosen option, or None to skip"""
        raise NotImplementedError

    def choose_many(self, title: str, options: Sequence[str]) -> List[int]:
        """Return the indices of the chosen options (possibly empty)"""
        raise NotImplementedError


class NonInteractiveChoiceProvider(ChoiceProvider):
    """Fails closed: never selects anything and never blocks"""

    def __init__(self):
        self.logger = get_logger(__name__)

    def choose_one(self, title: str, options: Sequence[str]) -> Optional[int]:
        self.logger.debug(f"Non-interactive mode, no answer for: {title}")
        return None

    def choose_many(self, title: str, options: Sequence[str]) -> List[int]:
        self.logger.debug(f"Non-interactive mode, no answer for: {title}")
        return []


class StaticChoiceProvider(ChoiceProvider):
    """Answers from preset values"""

    def __init__(self, one: Optional[int] = None, many: Optional[List[int]] = None):
        self.one = one
        self.many = list(many or [])
        self.questions: List[str] = []

    def choose_one(self, title: str, options: Sequence[str]) -> Optional[int]:
        self.questions.append(title)
        if self.one is not None and 0 <= self.one < len(options):
            return self.one
        return None

    def choose_many(self, title: str, options: Sequence[str]) -> List[int]:
        self.questions.append(title)
        return [index for index in self.many if 0 <= index < len(options)]


class ConsoleChoiceProvider(ChoiceProvider):
    """Numbered menus on stdout, answers read from stdin"""

    def __init__(self, input_func: Callable[[str], str] = input, output_func: Callable[[str], None] = print):
        self.logger = get_logger(__name__)
        self._input = input_func
        self._print = output_func

    def _show(self, title: str, options: Sequence[str]):
        self._print(title)
        for number, option in enumerate(options, 1):
            self._print(f"{number}) {option}")

    def _ask(self, prompt: str) -> str:
        try:
            return self._input(prompt).strip()
        except EOFError:
            return ""

    def choose_one(self, title: str, options: Sequence[str]) -> Optional[int]:
        if not options:
            return None
        self._show(title, options)
        while True:
            answer = self._ask("Enter a number (or 's' to skip): ")
            if answer.lower() in ("", "s", "skip"):
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer) - 1
            self._print(f"Invalid selection: {answer}")

    def choose_many(self, title: str, options: Sequence[str]) -> List[int]:
        if not options:
            return []
        self._show(title, options)
        answer = self._ask("Enter selection (space separated numbers, or 's' to skip): ")
        if answer.lower() in ("s", "skip"):
            return []

        chosen: List[int] = []
        for token in answer.split():
            if token.isdigit() and 1 <= int(token) <= len(options):
                index = int(token) - 1
                if index not in chosen:
                    chosen.append(index)
            else:
                self.logger.warning(f"Invalid selection: {token}")
        return chosen
