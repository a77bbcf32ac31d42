"""Convert raw question banks into ordered ``QuestionRecord`` lists.

Two input shapes are accepted:

* a flat list of question objects, and
* a list of groups, each carrying a title (``exercise_title`` or ``title``)
  and a nested ``questions`` list.

The first element decides the shape. A single malformed element fails the
whole load so the bank's completeness stays verifiable; nothing is dropped
or repaired silently.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from .errors import MalformedBankError
from .models import QuestionRecord, normalize_letter

__all__ = ["normalize", "is_grouped"]

_GROUP_TITLE_KEYS = ("exercise_title", "title")


def is_grouped(raw: Sequence[Any]) -> bool:
    """Return ``True`` when ``raw`` uses the nested group layout."""

    if not raw:
        return False
    first = raw[0]
    return isinstance(first, Mapping) and isinstance(
        first.get("questions"), list
    )


def normalize(raw: Any) -> list[QuestionRecord]:
    if not isinstance(raw, list):
        raise MalformedBankError(
            "Question bank must be a JSON array, found {0}.".format(
                type(raw).__name__
            )
        )

    if not is_grouped(raw):
        return [
            _build_record(item, where=f"question {idx + 1}")
            for idx, item in enumerate(raw)
        ]

    records: list[QuestionRecord] = []
    for group_idx, group in enumerate(raw):
        where = f"group {group_idx + 1}"
        if not isinstance(group, Mapping) or not isinstance(
            group.get("questions"), list
        ):
            raise MalformedBankError(f"{where} has no 'questions' list.")
        title = _group_title(group)
        for q_idx, item in enumerate(group["questions"]):
            records.append(
                _build_record(
                    item,
                    where=f"{where}, question {q_idx + 1}",
                    source_group=title,
                )
            )
    return records


def _group_title(group: Mapping[str, Any]) -> str | None:
    for key in _GROUP_TITLE_KEYS:
        value = group.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return None


def _build_record(
    item: Any,
    *,
    where: str,
    source_group: str | None = None,
) -> QuestionRecord:
    if not isinstance(item, Mapping):
        raise MalformedBankError(f"{where} is not an object.")

    content = item.get("content")
    if content is None:
        content = item.get("question")
    if content is None:
        raise MalformedBankError(
            f"{where} is missing both 'content' and 'question'."
        )

    options = item.get("options")
    if options is None:
        raise MalformedBankError(f"{where} is missing 'options'.")
    if isinstance(options, (str, bytes)) or not isinstance(options, Sequence):
        raise MalformedBankError(f"{where} has 'options' that is not a list.")
    if not options:
        raise MalformedBankError(f"{where} has an empty 'options' list.")

    answer = normalize_letter(item.get("answer")) or None
    image = item.get("image")
    explanation = item.get("explanation")
    return QuestionRecord(
        content=str(content),
        options=tuple(str(option) for option in options),
        image=str(image) if image else None,
        answer=answer,
        source_group=source_group,
        explanation=str(explanation) if explanation else None,
        raw=MappingProxyType(dict(item)),
    )
