from __future__ import annotations

from typing import Iterable, List


class NetworthError(Exception):
    """Base error for the projection engine."""


class MissingInputError(NetworthError, ValueError):
    def __init__(self, sections: Iterable[str]):
        self.sections: List[str] = list(sections)
        super().__init__(f"Missing required input sections: {', '.join(self.sections)}")


class InvalidInputError(NetworthError, ValueError):
    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = list(problems)
        super().__init__("Invalid input: " + "; ".join(self.problems))
