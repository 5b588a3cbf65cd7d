"""Filesystem-backed questionnaire definitions."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic import ValidationError as SchemaValidationError

from apps.api.app.core.errors import NotFoundError, ValidationError

GENERAL_SET = "general"
GENERAL_ID_PREFIX = "GQ"
INDUSTRY_ID_PREFIX = "IQ"
FALLBACK_INDUSTRY_SET = "other"
CHOICE_TYPES = {"select", "radio", "checkbox"}

QuestionType = Literal["select", "radio", "checkbox", "text", "textarea", "number", "file"]

_SLUG_UNSAFE = re.compile(r"[^a-z0-9]+")
_SET_NAME = re.compile(r"^[a-z0-9][a-z0-9-]*$")
_NUMBERED_ID = re.compile(r"^(GQ|IQ)(\d+)$")


class Question(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    type: QuestionType
    question: str = Field(min_length=1)
    options: list[str] = Field(default_factory=list)
    required: bool = False
    placeholder: str | None = None
    accept: str | None = None

    @model_validator(mode="after")
    def _require_options_for_choices(self) -> Question:
        if self.type in CHOICE_TYPES and not self.options:
            raise ValueError(f"question {self.id!r} of type {self.type} needs options")
        return self


class QuestionSet(BaseModel):
    general: list[Question]
    industry: list[Question]


_QUESTION_LIST = TypeAdapter(list[Question])


def industry_slug(industry: str) -> str:
    """`IT/Technology` -> `it-technology`."""
    return _SLUG_UNSAFE.sub("-", industry.lower()).strip("-")


def validate_question_list(payload: object) -> list[Question]:
    try:
        questions = _QUESTION_LIST.validate_python(payload)
    except SchemaValidationError as exc:
        raise ValidationError(f"invalid question set: {exc.error_count()} error(s)") from exc
    ids = [question.id for question in questions]
    duplicates = sorted({question_id for question_id in ids if ids.count(question_id) > 1})
    if duplicates:
        raise ValidationError(f"invalid question set: duplicate ids {', '.join(duplicates)}")
    return questions


def _index_of(questions: list[Question], question_id: str, set_name: str) -> int:
    for index, question in enumerate(questions):
        if question.id == question_id:
            return index
    raise NotFoundError(
        f"question {question_id} not found in set {set_name}", code="question_not_found"
    )


class QuestionBank:
    """`general.json` plus one `industries/<slug>.json` per industry."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path_for(self, set_name: str) -> Path:
        if not _SET_NAME.match(set_name):
            raise ValidationError(f"invalid question set name: {set_name}")
        if set_name == GENERAL_SET:
            return self.root / "general.json"
        return self.root / "industries" / f"{set_name}.json"

    def set_names(self) -> list[str]:
        industry_dir = self.root / "industries"
        names = sorted(path.stem for path in industry_dir.glob("*.json")) if industry_dir.is_dir() else []
        return [GENERAL_SET, *names]

    def read_set(self, set_name: str) -> list[Question]:
        path = self._path_for(set_name)
        if not path.is_file():
            raise NotFoundError(f"question set not found: {set_name}")
        return validate_question_list(json.loads(path.read_text(encoding="utf-8")))

    def write_set(self, set_name: str, payload: object) -> list[Question]:
        questions = validate_question_list(payload)
        self._write(self._path_for(set_name), questions)
        return questions

    def _write(self, path: Path, questions: list[Question]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        serialized = json.dumps(
            [question.model_dump(exclude_none=True) for question in questions],
            indent=2,
            ensure_ascii=False,
        )
        temp_path = path.with_suffix(".json.tmp")
        temp_path.write_text(serialized + "\n", encoding="utf-8")
        temp_path.replace(path)

    def _existing_or_empty(self, set_name: str) -> list[Question]:
        if not self._path_for(set_name).is_file():
            return []
        return self.read_set(set_name)

    def next_question_id(self, set_name: str, questions: list[Question]) -> str:
        """`GQ<n+1>` for the general set, `IQ<n+1>` for industry sets."""
        prefix = GENERAL_ID_PREFIX if set_name == GENERAL_SET else INDUSTRY_ID_PREFIX
        highest = 0
        for question in questions:
            match = _NUMBERED_ID.match(question.id)
            if match and match.group(1) == prefix:
                highest = max(highest, int(match.group(2)))
        return f"{prefix}{highest + 1}"

    def add_question(self, set_name: str, payload: dict[str, Any]) -> Question:
        questions = self._existing_or_empty(set_name)
        entry = dict(payload)
        if not entry.get("id"):
            entry["id"] = self.next_question_id(set_name, questions)
        updated = validate_question_list(
            [*(question.model_dump() for question in questions), entry]
        )
        self._write(self._path_for(set_name), updated)
        return updated[-1]

    def update_question(self, set_name: str, question_id: str, payload: dict[str, Any]) -> Question:
        questions = self.read_set(set_name)
        index = _index_of(questions, question_id, set_name)
        entries = [question.model_dump() for question in questions]
        entries[index] = {**payload, "id": question_id}
        updated = validate_question_list(entries)
        self._write(self._path_for(set_name), updated)
        return updated[index]

    def delete_question(self, set_name: str, question_id: str) -> None:
        questions = self.read_set(set_name)
        index = _index_of(questions, question_id, set_name)
        self._write(self._path_for(set_name), questions[:index] + questions[index + 1 :])

    def general_questions(self) -> list[Question]:
        return self.read_set(GENERAL_SET)

    def industry_questions(self, industry: str) -> list[Question]:
        slug = industry_slug(industry)
        if slug and (self.root / "industries" / f"{slug}.json").is_file():
            questions = self.read_set(slug)
            if questions:
                return questions
        return self.read_set(FALLBACK_INDUSTRY_SET)

    def questions_for(self, industry: str) -> QuestionSet:
        return QuestionSet(
            general=self.general_questions(),
            industry=self.industry_questions(industry),
        )
