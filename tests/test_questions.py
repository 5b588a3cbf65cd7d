import json
import shutil
from pathlib import Path

import pytest

from apps.api.app.core.config import Settings
from apps.api.app.core.errors import NotFoundError, ValidationError
from apps.api.app.services.questions import QuestionBank, industry_slug, validate_question_list


@pytest.fixture
def bank(tmp_path: Path) -> QuestionBank:
    root = tmp_path / "questions"
    shutil.copytree(Settings().question_bank_root, root)
    return QuestionBank(root)


@pytest.mark.parametrize(
    ("industry", "slug"),
    [
        ("IT/Technology", "it-technology"),
        ("Manufacturing", "manufacturing"),
        ("Paper and Packaging", "paper-and-packaging"),
    ],
)
def test_industry_slug(industry: str, slug: str) -> None:
    assert industry_slug(industry) == slug


def test_packaged_question_bank_loads(bank: QuestionBank) -> None:
    question_set = bank.questions_for("Manufacturing")

    assert [question.id for question in question_set.general][0] == "company_size"
    assert [question.id for question in question_set.industry] == [
        "production_waste",
        "water_usage",
        "emissions_tracking",
    ]
    assert "general" in bank.set_names()
    assert "it-technology" in bank.set_names()


def test_unknown_industry_falls_back_to_other(bank: QuestionBank) -> None:
    fallback = bank.industry_questions("Textile")

    assert fallback == bank.read_set("other")


def test_write_set_validates_and_persists(bank: QuestionBank) -> None:
    payload = [
        {"id": "fleet_size", "type": "number", "question": "How many vehicles?"},
        {
            "id": "fuel_mix",
            "type": "checkbox",
            "question": "Which fuels do you use?",
            "options": ["Diesel", "Electric"],
        },
    ]

    written = bank.write_set("textile", payload)

    assert [question.id for question in written] == ["fleet_size", "fuel_mix"]
    stored = json.loads((bank.root / "industries" / "textile.json").read_text(encoding="utf-8"))
    assert stored[1]["options"] == ["Diesel", "Electric"]
    assert [question.id for question in bank.industry_questions("Textile")] == [
        "fleet_size",
        "fuel_mix",
    ]


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "x"},
        [{"id": "a", "type": "select", "question": "Pick one"}],
        [{"id": "a", "type": "slider", "question": "Slide"}],
        [
            {"id": "a", "type": "text", "question": "One"},
            {"id": "a", "type": "text", "question": "Two"},
        ],
        [{"id": "a", "type": "text", "question": "One", "unexpected": True}],
    ],
)
def test_invalid_question_sets_are_rejected(payload) -> None:
    with pytest.raises(ValidationError, match="invalid question set"):
        validate_question_list(payload)


def test_set_names_cannot_escape_the_bank(bank: QuestionBank) -> None:
    with pytest.raises(ValidationError, match="invalid question set name"):
        bank.read_set("../general")


def test_missing_set_is_not_found(bank: QuestionBank) -> None:
    with pytest.raises(NotFoundError):
        bank.read_set("aerospace")
