"""
Store-facing records.

``PersistedAction`` is one ``improvement_actions`` row. The engine writes it
once per generation run; later status transitions belong to other workflows.

``AssessmentRecord`` is a completed assessment submission: the raw answers
plus the scores computed from them. It is the only mutable model here because
the store assigns ``completed_at`` on insert.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from assessment_engine.taxonomy.signal_taxonomy import ActionPriority

DEFAULT_ACTION_STATUS = "Open"


class PersistedAction(BaseModel):
    """An improvement action ready for batch insertion.

    Attributes:
        action_id: Auto-assigned DB PK; ``None`` before insertion.
        user_id: Owner of the assessment.
        organization_id: Tenant the assessment belongs to.
        assessment_id: Assessment that triggered the action.
        department: Human department name, e.g. ``"Service"``.
        priority: One of ``critical``, ``high``, ``medium``, ``low``.
        action_title: Template title.
        action_description: Template description plus traceability footer.
        status: Workflow status; always ``"Open"`` at creation.
        responsible_person: Default owner role from the template.
        target_completion_date: Generation date plus the template timeframe.
        support_required_from: Empty at creation.
        kpis_linked_to: Empty at creation.
    """

    model_config = ConfigDict(frozen=True)

    action_id: Optional[int] = None
    user_id: str
    organization_id: str
    assessment_id: str
    department: str
    priority: ActionPriority
    action_title: str
    action_description: str
    status: str = DEFAULT_ACTION_STATUS
    responsible_person: str
    target_completion_date: date
    support_required_from: list[str] = []
    kpis_linked_to: list[str] = []

    @field_validator("action_title", "action_description")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("action title and description must not be empty.")
        return v


class AssessmentRecord(BaseModel):
    """A submitted assessment with its computed scores."""

    model_config = ConfigDict(frozen=False)

    assessment_id: str
    user_id: str
    organization_id: str
    answers: dict[str, Any]
    department_scores: dict[str, float] = {}
    overall_score: int = 0
    status: str = "completed"
    completed_at: Optional[datetime] = None
