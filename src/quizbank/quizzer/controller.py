"""Application flow shared by the console and Textual front ends.

The controller walks the user from picking a part, through choosing a
mode, to answering questions. Presentation adapters forward user events
here and pull :meth:`QuizController.current_view` to redraw; the
controller itself never renders anything.
"""

from __future__ import annotations

import enum
import logging
import random
from typing import Optional

import requests

from .config import QuizbankConfig
from .errors import QuizStateError
from .loader import DEFAULT_TIMEOUT_SECONDS, load_bank
from .models import QuestionRecord, SessionConfig
from .selector import select
from .session import QuestionView, QuizSession, QuizSummary, RevealResult

__all__ = ["QuizController", "Stage"]


class Stage(str, enum.Enum):
    HOME = "home"
    MODE_SELECT = "mode_select"
    QUIZ = "quiz"
    FINISHED = "finished"


class QuizController:
    """Owns the loaded bank and the current session for one user."""

    def __init__(
        self,
        config: Optional[QuizbankConfig] = None,
        *,
        rng: Optional[random.Random] = None,
        http: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._rng = rng
        self._http = http
        self._log = logger or logging.getLogger("quizbank.quizzer")
        self._bank: list[QuestionRecord] = []
        self._part: Optional[str] = None
        self._session: Optional[QuizSession] = None
        self._last_config: Optional[SessionConfig] = None
        self._recent: list[str] = []

    @property
    def stage(self) -> Stage:
        if self._session is not None:
            return Stage.FINISHED if self._session.is_finished else Stage.QUIZ
        if self._bank:
            return Stage.MODE_SELECT
        return Stage.HOME

    @property
    def part(self) -> Optional[str]:
        return self._part

    @property
    def bank(self) -> tuple[QuestionRecord, ...]:
        return tuple(self._bank)

    @property
    def session(self) -> Optional[QuizSession]:
        return self._session

    @property
    def default_session_config(self) -> SessionConfig:
        if self._config is not None:
            return self._config.session
        return SessionConfig()

    async def select_part(self, name_or_source: str) -> int:
        """Load a bank and move to mode selection.

        Any previous bank and session are discarded first, so a failed
        load always leaves the controller at ``HOME``.
        """

        self.home()
        source = (
            self._config.resolve_source(name_or_source)
            if self._config is not None
            else name_or_source
        )
        timeout = (
            self._config.fetch_timeout
            if self._config is not None
            else DEFAULT_TIMEOUT_SECONDS
        )
        bank = await load_bank(
            source, timeout=timeout, http=self._http, logger=self._log
        )
        self._bank = bank
        self._part = name_or_source
        if name_or_source not in self._recent:
            self._recent.append(name_or_source)
        return len(bank)

    def known_parts(self) -> list[tuple[str, str]]:
        """Return ``(name, title)`` for configured parts, then for ad-hoc
        sources loaded earlier in this run."""

        entries: list[tuple[str, str]] = []
        if self._config is not None:
            entries = [
                (name, part.title) for name, part in self._config.parts.items()
            ]
        seen = {name for name, _ in entries}
        entries.extend(
            (source, source) for source in self._recent if source not in seen
        )
        return entries

    def start(self, config: Optional[SessionConfig] = None) -> QuizSession:
        """Create a fresh session over the loaded bank."""

        if not self._bank:
            raise QuizStateError("Pick a question bank before starting.")
        session_config = config or self.default_session_config
        questions = select(self._bank, session_config, rng=self._rng)
        self._session = QuizSession(questions)
        self._last_config = session_config
        self._log.info(
            "Session started",
            extra={
                "part": self._part,
                "mode": session_config.mode.value,
                "questions": self._session.total,
            },
        )
        if self._session.is_finished:
            self._log_finish(self._session.summary)
        return self._session

    def restart(self, config: Optional[SessionConfig] = None) -> QuizSession:
        """Discard the current session and start over on the same bank."""

        self._session = None
        return self.start(config or self._last_config)

    def reselect_mode(self) -> None:
        """Drop the session but keep the bank, back at ``MODE_SELECT``."""

        if not self._bank:
            raise QuizStateError("Pick a question bank before starting.")
        self._session = None

    def home(self) -> None:
        self._bank = []
        self._part = None
        self._session = None
        self._last_config = None

    def choose_option(self, letter: str) -> str:
        return self._active_session().select_option(letter)

    def go_next(self) -> Optional[QuizSummary]:
        summary = self._active_session().advance()
        if summary is not None:
            self._log_finish(summary)
        return summary

    def go_prev(self) -> None:
        self._active_session().retreat()

    def reveal(self) -> RevealResult:
        return self._active_session().reveal()

    def current_view(self) -> QuestionView:
        return self._active_session().view()

    def _active_session(self) -> QuizSession:
        if self._session is None:
            raise QuizStateError("No quiz session is running.")
        return self._session

    def _log_finish(self, summary: Optional[QuizSummary]) -> None:
        if summary is None:
            return
        self._log.info(
            "Session finished",
            extra={
                "part": self._part,
                "total": summary.total,
                "answered": summary.answered,
                "correct": summary.correct,
                "ungraded": summary.ungraded,
            },
        )

