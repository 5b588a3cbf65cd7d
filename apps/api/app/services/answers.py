"""Explicit answer variants for questionnaire responses."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

NONE_OPTION = "None"


@dataclass(frozen=True)
class TextAnswer:
    text: str

    def display(self) -> str:
        return self.text


@dataclass(frozen=True)
class MultiSelectAnswer:
    options: tuple[str, ...]

    @property
    def positive_options(self) -> tuple[str, ...]:
        return tuple(option for option in self.options if option != NONE_OPTION)

    def display(self) -> str:
        return ", ".join(self.options)


Answer = TextAnswer | MultiSelectAnswer


def parse_answer(raw: Any) -> Answer:
    """Convert a stored JSON answer value into its tagged variant."""
    if isinstance(raw, (TextAnswer, MultiSelectAnswer)):
        return raw
    if isinstance(raw, (list, tuple, set, frozenset)):
        return MultiSelectAnswer(options=tuple(str(item) for item in raw))
    if raw is None:
        return TextAnswer(text="")
    return TextAnswer(text=str(raw))


def parse_answers(raw_answers: Mapping[str, Any] | None) -> dict[str, Answer]:
    return {key: parse_answer(value) for key, value in (raw_answers or {}).items()}


def serialize_answer(answer: Answer) -> str | list[str]:
    if isinstance(answer, MultiSelectAnswer):
        return list(answer.options)
    return answer.text


_WORD_START = re.compile(r"\b\w")


def format_question_label(question_key: str) -> str:
    """`waste_management` -> `Waste Management`."""
    return _WORD_START.sub(lambda match: match.group(0).upper(), question_key.replace("_", " "))
