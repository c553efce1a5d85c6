"""
Questionnaire models.

The questionnaire is an ordered list of sections (one per department), each
holding ordered questions. A question contributes ``weight`` to both its
department score and the severity of any signal it triggers.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from assessment_engine.taxonomy.department_taxonomy import Department


class Question(BaseModel):
    """A single scale question answered with an integer score in [1, 5].

    Attributes:
        id: Stable identifier, e.g. ``"nvs-2"``.
        text: The question shown to the respondent.
        weight: Positive relative importance (typically 1.0–2.0).
        category: Free-form topic tag, e.g. ``"conversion"``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    text: str = ""
    weight: float = Field(gt=0)
    category: str

    @field_validator("id")
    @classmethod
    def validate_id_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Question id must not be empty.")
        return v.strip()


class Section(BaseModel):
    """An ordered group of questions belonging to one department."""

    model_config = ConfigDict(frozen=True)

    id: Department
    title: str
    description: str = ""
    questions: tuple[Question, ...]


class Questionnaire(BaseModel):
    """The complete static questionnaire.

    Question ids are unique across all sections.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    sections: tuple[Section, ...]

    @model_validator(mode="after")
    def validate_unique_question_ids(self) -> "Questionnaire":
        seen: set[str] = set()
        for section in self.sections:
            for question in section.questions:
                if question.id in seen:
                    raise ValueError(f"Duplicate question id '{question.id}'.")
                seen.add(question.id)
        return self

    def question_ids(self) -> list[str]:
        """All question ids in questionnaire order."""
        return [q.id for s in self.sections for q in s.questions]

    def question_weights(self) -> dict[str, float]:
        """Build the question id → weight map used by the signal engine."""
        return {q.id: q.weight for s in self.sections for q in s.questions}

    def get_question(self, question_id: str) -> Optional[Question]:
        for section in self.sections:
            for question in section.questions:
                if question.id == question_id:
                    return question
        return None

    def get_section(self, section_id: str) -> Optional[Section]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None
