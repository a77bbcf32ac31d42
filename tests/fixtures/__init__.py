"""Shared question-bank builders for the quizbank test suite."""

from .banks import flat_bank, grouped_bank, question  # noqa: F401

__all__ = ["flat_bank", "grouped_bank", "question"]
