"""
Catalog loader: JSON → validated, immutable ``AssessmentCatalog``.

Files (all under one directory, the bundled ``catalog/data/`` by default)
-------------------------------------------------------------------------
questionnaire.json     : {title, description, sections: [{id, title, questions: [...]}]}
category_weights.json  : {weights: [{category, weight}], departments: [{department, category}]}
signal_mappings.json   : {module_names: {...}, mappings: [{question_id, module_key, signal_code, ...}]}
action_templates.json  : {signal_limits: [...], templates: [...]}

Validation rules
----------------
Per-table rules live on the models (unique ids, weights sum to 1.0, limit
entries reference known templates of the same signal). Cross-table rules are
checked here:
- Every mapping references a question present in the questionnaire.
- Every mapping's module matches the section that owns its question.
- Every questionnaire section has a department entry in the weight table.
- Every non-NONE mapped signal code has at least one template.

Usage
-----
    from assessment_engine.catalog.loader import load_catalog

    catalog = load_catalog()
    weights = catalog.questionnaire.question_weights()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from assessment_engine.models.catalog import (
    ActionTemplateCatalog,
    CategoryWeightTable,
    SignalMappingTable,
)
from assessment_engine.models.questionnaire import Questionnaire
from assessment_engine.taxonomy.signal_taxonomy import SignalCode

logger = logging.getLogger(__name__)

BUNDLED_DATA_DIR = Path(__file__).parent / "data"

QUESTIONNAIRE_FILE = "questionnaire.json"
CATEGORY_WEIGHTS_FILE = "category_weights.json"
SIGNAL_MAPPINGS_FILE = "signal_mappings.json"
ACTION_TEMPLATES_FILE = "action_templates.json"


class AssessmentCatalog(BaseModel):
    """Everything the engines need, loaded once and passed in explicitly."""

    model_config = ConfigDict(frozen=True)

    questionnaire: Questionnaire
    category_weights: CategoryWeightTable
    signal_mappings: SignalMappingTable
    action_templates: ActionTemplateCatalog

    @model_validator(mode="after")
    def validate_cross_references(self) -> "AssessmentCatalog":
        owner: dict[str, str] = {
            q.id: s.id for s in self.questionnaire.sections for q in s.questions
        }
        for mapping in self.signal_mappings.mappings:
            section_id = owner.get(mapping.question_id)
            if section_id is None:
                raise ValueError(
                    f"Signal mapping references unknown question '{mapping.question_id}'."
                )
            if section_id != mapping.module_key:
                raise ValueError(
                    f"Question '{mapping.question_id}' belongs to '{section_id}' "
                    f"but is mapped to module '{mapping.module_key}'."
                )
            if (
                mapping.signal_code != SignalCode.NONE
                and not self.action_templates.get_templates_for_signal(mapping.signal_code)
            ):
                raise ValueError(
                    f"Signal '{mapping.signal_code}' (question '{mapping.question_id}') "
                    "has no action templates."
                )

        for section in self.questionnaire.sections:
            if self.category_weights.category_for(section.id) is None:
                raise ValueError(
                    f"Section '{section.id}' has no category in the weight table."
                )
        return self


def load_catalog(data_dir: Optional[Path | str] = None) -> AssessmentCatalog:
    """Load and validate the four catalog files.

    Args:
        data_dir: Directory holding the JSON files. Defaults to the bundled
            ``catalog/data/`` directory.

    Returns:
        A validated ``AssessmentCatalog``.

    Raises:
        FileNotFoundError: If any catalog file is missing.
        pydantic.ValidationError: If any table or cross-reference is invalid.
    """
    root = Path(data_dir) if data_dir else BUNDLED_DATA_DIR
    logger.debug("Loading assessment catalog from %s", root)

    catalog = AssessmentCatalog(
        questionnaire=Questionnaire(**_read_json(root / QUESTIONNAIRE_FILE)),
        category_weights=CategoryWeightTable(**_read_json(root / CATEGORY_WEIGHTS_FILE)),
        signal_mappings=SignalMappingTable(**_read_json(root / SIGNAL_MAPPINGS_FILE)),
        action_templates=ActionTemplateCatalog(**_read_json(root / ACTION_TEMPLATES_FILE)),
    )

    logger.info(
        "Catalog loaded: %d questions, %d mappings, %d templates.",
        len(catalog.questionnaire.question_ids()),
        len(catalog.signal_mappings.mappings),
        len(catalog.action_templates.templates),
    )
    return catalog


def _read_json(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))
