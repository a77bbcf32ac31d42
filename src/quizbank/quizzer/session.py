"""Quiz session state machine and the pure data it exposes.

A :class:`QuizSession` owns the position, the per-question selections and
the finished/active flag for one run over a fixed list of questions.
Operations return plain dataclasses; rendering is left to presentation
adapters that pull :meth:`QuizSession.view` after every event.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .errors import (
    InvalidOptionError,
    NoAnswerKeyError,
    SessionFinishedError,
)
from .models import QuestionRecord, letter_for, normalize_letter

__all__ = [
    "GroupSummary",
    "OptionView",
    "QuestionView",
    "QuizSession",
    "QuizSummary",
    "RevealResult",
    "SessionState",
    "SummaryItem",
    "summarize",
]


class SessionState(str, enum.Enum):
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class RevealResult:
    """Outcome of revealing the current question's answer key."""

    correct_letter: str
    selected_letter: str | None
    is_correct: bool
    explanation: str | None = None
    correct_text: str | None = None


@dataclass(frozen=True)
class OptionView:
    letter: str
    text: str
    selected: bool


@dataclass(frozen=True)
class QuestionView:
    """Everything an adapter needs to draw the current question."""

    index: int
    total: int
    content: str
    image: str | None
    options: tuple[OptionView, ...]
    selected: str | None
    revealed: RevealResult | None
    source_group: str | None
    answered: int = 0

    @property
    def position(self) -> int:
        return self.index + 1

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    @property
    def has_image(self) -> bool:
        return bool(self.image)


@dataclass(frozen=True)
class SummaryItem:
    """Per-question grading line in a finished session."""

    index: int
    content: str
    selected: str | None
    answer: str | None
    graded: bool
    is_correct: bool
    source_group: str | None = None


@dataclass(frozen=True)
class GroupSummary:
    """Aggregate performance for questions sharing a source group."""

    group: str
    asked: int
    graded: int
    correct: int

    @property
    def accuracy(self) -> float:
        if self.graded == 0:
            return 0.0
        return self.correct / self.graded


@dataclass(frozen=True)
class QuizSummary:
    """Session totals derived from selections versus answer keys.

    Questions without an answer key are never counted as correct or
    incorrect; they only show up in ``ungraded``.
    """

    total: int
    answered: int
    correct: int
    incorrect: int
    ungraded: int
    items: tuple[SummaryItem, ...] = ()
    per_group: Mapping[str, GroupSummary] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def unanswered(self) -> int:
        return self.total - self.answered

    @property
    def graded(self) -> int:
        return self.total - self.ungraded

    @property
    def accuracy(self) -> float:
        if self.graded == 0:
            return 0.0
        return self.correct / self.graded


def summarize(
    questions: Sequence[QuestionRecord],
    answers: Mapping[int, str],
) -> QuizSummary:
    """Grade ``answers`` (index -> letter) against ``questions``."""

    items: list[SummaryItem] = []
    groups: dict[str, dict[str, int]] = {}
    for idx, question in enumerate(questions):
        selected = answers.get(idx)
        answer = normalize_letter(question.answer) or None
        graded = answer is not None
        is_correct = (
            graded
            and selected is not None
            and normalize_letter(selected) == answer
        )
        items.append(
            SummaryItem(
                index=idx,
                content=question.content,
                selected=selected,
                answer=answer,
                graded=graded,
                is_correct=is_correct,
                source_group=question.source_group,
            )
        )
        if question.source_group is not None:
            bucket = groups.setdefault(
                question.source_group,
                {"asked": 0, "graded": 0, "correct": 0},
            )
            bucket["asked"] += 1
            bucket["graded"] += int(graded)
            bucket["correct"] += int(is_correct)

    correct = sum(1 for item in items if item.is_correct)
    ungraded = sum(1 for item in items if not item.graded)
    return QuizSummary(
        total=len(items),
        answered=sum(1 for item in items if item.selected is not None),
        correct=correct,
        incorrect=len(items) - ungraded - correct,
        ungraded=ungraded,
        items=tuple(items),
        per_group=MappingProxyType(
            {
                name: GroupSummary(group=name, **counts)
                for name, counts in groups.items()
            }
        ),
    )


class QuizSession:
    """Navigation, selection and reveal over a fixed list of questions.

    The session is ``ACTIVE`` until :meth:`advance` is called on the last
    question, after which it is ``FINISHED`` for good. A session created
    with no questions (simulation size clamped to zero) starts finished.
    """

    def __init__(self, questions: Sequence[QuestionRecord]) -> None:
        self._questions: tuple[QuestionRecord, ...] = tuple(questions)
        self._index = 0
        self._answers: dict[int, str] = {}
        self._revealed: set[int] = set()
        self._state = SessionState.ACTIVE
        self._summary: QuizSummary | None = None
        if not self._questions:
            self._finish()

    @property
    def questions(self) -> tuple[QuestionRecord, ...]:
        return self._questions

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current(self) -> QuestionRecord:
        return self._questions[self._index]

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_finished(self) -> bool:
        return self._state is SessionState.FINISHED

    @property
    def answers(self) -> Mapping[int, str]:
        return MappingProxyType(self._answers)

    @property
    def summary(self) -> QuizSummary | None:
        return self._summary

    def answered_count(self) -> int:
        return len(self._answers)

    def selected_for(self, index: int | None = None) -> str | None:
        return self._answers.get(self._index if index is None else index)

    def select_option(self, letter: str) -> str:
        """Record ``letter`` for the current question and return it."""

        self._require_active("select an option")
        normalized = normalize_letter(letter)
        allowed = self.current.letters()
        if normalized not in allowed:
            raise InvalidOptionError(normalized or str(letter), allowed)
        self._answers[self._index] = normalized
        return normalized

    def reveal(self) -> RevealResult:
        self._require_active("reveal the answer")
        result = self._reveal_result(self._index)
        if result is None:
            raise NoAnswerKeyError(self._index)
        self._revealed.add(self._index)
        return result

    def advance(self) -> QuizSummary | None:
        """Move forward, finishing the session from the last question."""

        self._require_active("advance")
        if self._index >= len(self._questions) - 1:
            return self._finish()
        self._index += 1
        return None

    def retreat(self) -> None:
        if self.is_finished or self._index == 0:
            return
        self._index -= 1

    def compute_summary(self) -> QuizSummary:
        return summarize(self._questions, self._answers)

    def view(self) -> QuestionView:
        self._require_active("show a question")
        question = self.current
        selected = self.selected_for()
        options = tuple(
            OptionView(
                letter=letter_for(idx),
                text=text,
                selected=letter_for(idx) == selected,
            )
            for idx, text in enumerate(question.options)
        )
        revealed = (
            self._reveal_result(self._index)
            if self._index in self._revealed
            else None
        )
        return QuestionView(
            index=self._index,
            total=len(self._questions),
            content=question.content,
            image=question.image,
            options=options,
            selected=selected,
            revealed=revealed,
            source_group=question.source_group,
            answered=self.answered_count(),
        )

    def _reveal_result(self, index: int) -> RevealResult | None:
        question = self._questions[index]
        correct = normalize_letter(question.answer)
        if not correct:
            return None
        selected = self.selected_for(index)
        return RevealResult(
            correct_letter=correct,
            selected_letter=selected,
            is_correct=selected == correct,
            explanation=question.explanation,
            correct_text=question.option_for(correct),
        )

    def _finish(self) -> QuizSummary:
        self._state = SessionState.FINISHED
        self._summary = self.compute_summary()
        return self._summary

    def _require_active(self, action: str) -> None:
        if self.is_finished:
            raise SessionFinishedError(
                f"Cannot {action}: the session is finished."
            )
