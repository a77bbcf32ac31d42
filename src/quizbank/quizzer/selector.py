from __future__ import annotations

import random
from collections.abc import Sequence

from .errors import EmptyBankError
from .models import QuestionRecord, SessionConfig, SessionMode

__all__ = ["select", "sample_size"]


def sample_size(available: int, requested: int) -> int:
    """Clamp ``requested`` into ``[0, available]``."""

    return max(0, min(int(requested), available))


def select(
    questions: Sequence[QuestionRecord],
    config: SessionConfig,
    *,
    rng: random.Random | None = None,
) -> list[QuestionRecord]:
    """Return the questions a new session should ask, in asking order.

    Practice keeps the bank order untouched. Simulation draws a uniform
    sample without replacement, already in random order.
    """

    if not questions:
        raise EmptyBankError("Question bank is empty.")
    if config.mode is SessionMode.PRACTICE:
        return list(questions)
    rnd = rng or random.Random()
    count = sample_size(len(questions), config.simulation_size)
    return rnd.sample(list(questions), count)
