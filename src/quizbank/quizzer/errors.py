"""Exceptions raised by the quiz domain.

Every error is terminal to the attempted operation only: a failed load
leaves the controller where it was, and a failed session operation leaves
the session in its previous, resumable state.
"""

from __future__ import annotations

__all__ = [
    "QuizError",
    "FetchError",
    "MalformedBankError",
    "EmptyBankError",
    "NoAnswerKeyError",
    "InvalidOptionError",
    "SessionFinishedError",
    "QuizStateError",
]


class QuizError(RuntimeError):
    """Base class for quiz domain failures."""


class FetchError(QuizError):
    """The bank resource was unreachable or answered with a failure status."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Could not fetch question bank '{source}': {reason}")
        self.source = source
        self.reason = reason


class MalformedBankError(QuizError):
    """The bank parsed but does not have an accepted shape."""


class EmptyBankError(QuizError):
    """The bank holds zero questions after normalization."""


class NoAnswerKeyError(QuizError):
    """Reveal was requested for a question without a correct answer."""

    def __init__(self, index: int) -> None:
        super().__init__("No answer key available for this question.")
        self.index = index


class InvalidOptionError(QuizError):
    """The selected letter does not name one of the current options."""

    def __init__(self, letter: str, allowed: tuple[str, ...]) -> None:
        super().__init__(
            "'{0}' is not a valid choice for this question "
            "(expected one of {1}).".format(letter, ", ".join(allowed))
        )
        self.letter = letter
        self.allowed = allowed


class SessionFinishedError(QuizError):
    """An operation that needs an active session ran after it finished."""


class QuizStateError(QuizError):
    """A controller event arrived in a stage that cannot handle it."""
