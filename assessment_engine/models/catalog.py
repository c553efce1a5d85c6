"""
Static lookup tables consumed by the scoring and signal engines.

``CategoryWeightTable``
    Department → score category → fixed weight. Weights sum to 1.0.

``SignalMappingTable``
    Question id → (signal code, module key). Questions whose weakness carries
    no meaningful failure mode map to ``SignalCode.NONE``.

``ActionTemplateCatalog``
    Signal code → reusable remediation templates, plus a per-signal cap on how
    many of them may fire in one generation run.

All three are frozen and validated on construction so that a malformed
catalog fails at load time rather than mid-evaluation. Tests build small
fixture tables directly from these models.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from assessment_engine.taxonomy.department_taxonomy import Department, ScoreCategory
from assessment_engine.taxonomy.signal_taxonomy import (
    ActionPriority,
    SeverityRule,
    SignalCode,
)

WEIGHT_SUM_TOLERANCE = 1e-6
DEFAULT_MAX_ACTIONS_PER_SIGNAL = 1


# ── Category weights ──────────────────────────────────────────────────────────


class CategoryWeight(BaseModel):
    """Fixed share of the overall score contributed by one category."""

    model_config = ConfigDict(frozen=True)

    category: ScoreCategory
    weight: float = Field(gt=0, le=1)


class DepartmentCategory(BaseModel):
    """Assignment of a department to the category it is scored under."""

    model_config = ConfigDict(frozen=True)

    department: Department
    category: ScoreCategory


class CategoryWeightTable(BaseModel):
    """Category weights plus the department → category assignment.

    Several departments may share a category; their scores are averaged
    before the category weight is applied.
    """

    model_config = ConfigDict(frozen=True)

    weights: tuple[CategoryWeight, ...]
    departments: tuple[DepartmentCategory, ...]

    @model_validator(mode="after")
    def validate_table(self) -> "CategoryWeightTable":
        categories = [w.category for w in self.weights]
        if len(categories) != len(set(categories)):
            raise ValueError("Duplicate category in weight table.")

        total = sum(w.weight for w in self.weights)
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Category weights must sum to 1.0, got {total:.6f}.")

        seen_departments: set[str] = set()
        for entry in self.departments:
            if entry.department in seen_departments:
                raise ValueError(f"Department '{entry.department}' is assigned twice.")
            seen_departments.add(entry.department)
            if entry.category not in categories:
                raise ValueError(
                    f"Department '{entry.department}' references unknown "
                    f"category '{entry.category}'."
                )
        return self

    def category_for(self, department: str) -> Optional[ScoreCategory]:
        """Return the category a department is scored under, or ``None``."""
        for entry in self.departments:
            if entry.department == department:
                return entry.category
        return None

    def weight_for(self, category: str) -> float:
        """Return the fixed weight of ``category`` (0.0 when unknown)."""
        for entry in self.weights:
            if entry.category == category:
                return entry.weight
        return 0.0

    def get_department_weight(self, department: str) -> float:
        """Weight of the category ``department`` feeds; 0.0 when unmapped."""
        category = self.category_for(department)
        if category is None:
            return 0.0
        return self.weight_for(category)

    def get_weight_percentage(self, department: str) -> str:
        """Department weight as a whole-number percentage string, e.g. ``"25%"``."""
        return f"{round(self.get_department_weight(department) * 100)}%"


# ── Signal mappings ───────────────────────────────────────────────────────────


class SignalMapping(BaseModel):
    """Which signal a weak answer to ``question_id`` raises, and in which module.

    ``secondary_signal_code``, ``severity_rule`` and ``notes`` are catalog
    metadata; signal grouping uses ``signal_code`` only.
    """

    model_config = ConfigDict(frozen=True)

    question_id: str
    module_key: Department
    signal_code: SignalCode
    secondary_signal_code: Optional[SignalCode] = None
    severity_rule: SeverityRule = SeverityRule.STANDARD
    notes: str = ""


class MappingCoverage(BaseModel):
    """Result of checking a list of question ids against the mapping table."""

    model_config = ConfigDict(frozen=True)

    covered: tuple[str, ...]
    missing: tuple[str, ...]
    coverage_percent: float


class SignalMappingTable(BaseModel):
    """All question → signal mappings plus human module names."""

    model_config = ConfigDict(frozen=True)

    mappings: tuple[SignalMapping, ...]
    module_names: dict[Department, str] = {}

    @model_validator(mode="after")
    def validate_unique_questions(self) -> "SignalMappingTable":
        seen: set[str] = set()
        for mapping in self.mappings:
            if mapping.question_id in seen:
                raise ValueError(f"Question '{mapping.question_id}' is mapped twice.")
            seen.add(mapping.question_id)
        return self

    def get_signal_mapping(self, question_id: str) -> Optional[SignalMapping]:
        for mapping in self.mappings:
            if mapping.question_id == question_id:
                return mapping
        return None

    def get_mappings_for_module(self, module_key: str) -> list[SignalMapping]:
        return [m for m in self.mappings if m.module_key == module_key]

    def module_name(self, module_key: str) -> str:
        """Human-readable module name; falls back to the key itself."""
        return self.module_names.get(module_key, module_key)

    def validate_mapping_coverage(self, question_ids: list[str]) -> MappingCoverage:
        """Report which of ``question_ids`` have a mapping.

        An empty ``question_ids`` list reports 100% coverage.
        """
        mapped = {m.question_id for m in self.mappings}
        covered = tuple(q for q in question_ids if q in mapped)
        missing = tuple(q for q in question_ids if q not in mapped)
        percent = (len(covered) / len(question_ids) * 100.0) if question_ids else 100.0
        return MappingCoverage(covered=covered, missing=missing, coverage_percent=percent)


# ── Action templates ──────────────────────────────────────────────────────────


class ActionTemplate(BaseModel):
    """Reusable remediation blueprint tied to exactly one signal code.

    Attributes:
        template_id: Unique id, e.g. ``"ACT-PNS-001"``.
        signal_code: The signal this template remediates (never ``NONE``).
        title: Short action title.
        description: What to do and why.
        default_owner_role: Role that owns the action by default.
        default_timeframe_days: Days from generation to target completion.
        default_priority: Catalog's own priority hint (reporting only).
        implementation_steps: Ordered checklist.
    """

    model_config = ConfigDict(frozen=True)

    template_id: str
    signal_code: SignalCode
    title: str
    description: str
    default_owner_role: str
    default_timeframe_days: int = Field(ge=0)
    default_priority: ActionPriority = ActionPriority.MEDIUM
    implementation_steps: tuple[str, ...] = ()

    @field_validator("signal_code")
    @classmethod
    def validate_not_none(cls, v: SignalCode) -> SignalCode:
        if v == SignalCode.NONE:
            raise ValueError("Action templates cannot target SignalCode.NONE.")
        return v


class SignalActionLimit(BaseModel):
    """Template ids registered for a signal and how many may fire per run."""

    model_config = ConfigDict(frozen=True)

    signal_code: SignalCode
    template_ids: tuple[str, ...]
    max_actions: int = Field(ge=1)


class ActionTemplateCatalog(BaseModel):
    """Template catalog plus per-signal firing caps."""

    model_config = ConfigDict(frozen=True)

    templates: tuple[ActionTemplate, ...]
    signal_limits: tuple[SignalActionLimit, ...] = ()

    @model_validator(mode="after")
    def validate_catalog(self) -> "ActionTemplateCatalog":
        by_id: dict[str, ActionTemplate] = {}
        for template in self.templates:
            if template.template_id in by_id:
                raise ValueError(f"Duplicate template id '{template.template_id}'.")
            by_id[template.template_id] = template

        seen_codes: set[str] = set()
        for limit in self.signal_limits:
            if limit.signal_code in seen_codes:
                raise ValueError(f"Signal '{limit.signal_code}' has two limit entries.")
            seen_codes.add(limit.signal_code)
            for template_id in limit.template_ids:
                template = by_id.get(template_id)
                if template is None:
                    raise ValueError(
                        f"Signal '{limit.signal_code}' references unknown template "
                        f"'{template_id}'."
                    )
                if template.signal_code != limit.signal_code:
                    raise ValueError(
                        f"Template '{template_id}' belongs to '{template.signal_code}', "
                        f"not '{limit.signal_code}'."
                    )
        return self

    def get_template_by_id(self, template_id: str) -> Optional[ActionTemplate]:
        for template in self.templates:
            if template.template_id == template_id:
                return template
        return None

    def get_templates_for_signal(self, signal_code: str) -> list[ActionTemplate]:
        """Templates for ``signal_code`` in catalog order."""
        return [t for t in self.templates if t.signal_code == signal_code]

    def get_default_template_for_signal(self, signal_code: str) -> Optional[ActionTemplate]:
        templates = self.get_templates_for_signal(signal_code)
        return templates[0] if templates else None

    def get_template_ids_for_signal(self, signal_code: str) -> list[str]:
        limit = self._limit_for(signal_code)
        return list(limit.template_ids) if limit else []

    def get_max_actions_for_signal(self, signal_code: str) -> int:
        """Per-signal cap; signals without a limit entry may fire one template."""
        limit = self._limit_for(signal_code)
        return limit.max_actions if limit else DEFAULT_MAX_ACTIONS_PER_SIGNAL

    def _limit_for(self, signal_code: str) -> Optional[SignalActionLimit]:
        for limit in self.signal_limits:
            if limit.signal_code == signal_code:
                return limit
        return None
