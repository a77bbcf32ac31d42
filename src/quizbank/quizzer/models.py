"""Canonical question records and session configuration."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

__all__ = [
    "DEFAULT_SIMULATION_SIZE",
    "QuestionRecord",
    "SessionConfig",
    "SessionMode",
    "index_for",
    "letter_for",
    "normalize_letter",
]

DEFAULT_SIMULATION_SIZE = 20


def letter_for(index: int) -> str:
    """Return the display letter for the 0-based option ``index``."""

    if index < 0:
        raise ValueError(f"Option index must be >= 0, got {index}.")
    return chr(ord("A") + index)


def normalize_letter(letter: object) -> str:
    return str(letter if letter is not None else "").strip().upper()


def index_for(letter: str) -> int:
    """Inverse of :func:`letter_for`; case-insensitive."""

    normalized = normalize_letter(letter)
    if len(normalized) != 1 or not ("A" <= normalized <= "Z"):
        raise ValueError(f"Not an option letter: {letter!r}.")
    return ord(normalized) - ord("A")


@dataclass(frozen=True)
class QuestionRecord:
    """Immutable representation of a question used during a session."""

    content: str
    options: tuple[str, ...]
    image: str | None = None
    answer: str | None = None
    source_group: str | None = None
    explanation: str | None = None
    raw: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}),
        compare=False,
        repr=False,
    )

    def letters(self) -> tuple[str, ...]:
        return tuple(letter_for(idx) for idx in range(len(self.options)))

    def option_for(self, letter: str | None) -> str | None:
        if not letter:
            return None
        try:
            idx = index_for(letter)
        except ValueError:
            return None
        if idx >= len(self.options):
            return None
        return self.options[idx]

    @property
    def has_answer_key(self) -> bool:
        return bool(self.answer)


class SessionMode(str, enum.Enum):
    PRACTICE = "practice"
    SIMULATION = "simulation"

    @classmethod
    def parse(cls, value: "str | SessionMode") -> "SessionMode":
        if isinstance(value, SessionMode):
            return value
        text = str(value).strip().lower()
        # "sim" is the short spelling used by older bank front ends.
        if text in {"sim", "simulate"}:
            return cls.SIMULATION
        try:
            return cls(text)
        except ValueError as exc:
            raise ValueError(
                f"Unknown session mode '{value}'; expected practice or "
                "simulation."
            ) from exc


@dataclass(frozen=True)
class SessionConfig:
    """How the next session picks its questions.

    ``simulation_size`` is the desired sample count; the selector clamps it
    to the bank size, and anything below zero is treated as zero.
    """

    mode: SessionMode = SessionMode.PRACTICE
    simulation_size: int = DEFAULT_SIMULATION_SIZE

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", SessionMode.parse(self.mode))
        object.__setattr__(
            self, "simulation_size", max(0, int(self.simulation_size))
        )

    @classmethod
    def from_values(
        cls,
        mode: "str | SessionMode" = SessionMode.PRACTICE,
        simulation_size: object = None,
    ) -> "SessionConfig":
        """Build a config from loosely typed user input.

        Unparsable sizes fall back to the default and negative ones clamp to
        zero instead of being rejected.
        """

        if simulation_size is None or simulation_size == "":
            size = DEFAULT_SIMULATION_SIZE
        else:
            try:
                size = int(str(simulation_size).strip())
            except ValueError:
                size = DEFAULT_SIMULATION_SIZE
        return cls(mode=SessionMode.parse(mode), simulation_size=size)
