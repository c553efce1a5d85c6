"""
Formatting of instantiated actions into ``improvement_actions`` rows.

The description gains a traceability footer so an action can be tied back to
the answers that produced it:

    <template description>

    Triggered because: <SIGNAL_CODE>
    Related questions: q1, q2
    Rationale: Detected in 2 question(s) in Service
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from assessment_engine.actions.instantiator import InstantiatedAction
from assessment_engine.models.action import PersistedAction
from assessment_engine.models.catalog import SignalMappingTable
from assessment_engine.utils.time_utils import target_completion_date, utc_today


def build_action_description(action: InstantiatedAction) -> str:
    return (
        f"{action.description}\n\n"
        f"Triggered because: {action.signal_code}\n"
        f"Related questions: {', '.join(action.triggering_question_ids)}\n"
        f"Rationale: {action.rationale}"
    )


def format_actions_for_insert(
    actions: list[InstantiatedAction],
    user_id: str,
    assessment_id: str,
    organization_id: str,
    mappings: Optional[SignalMappingTable] = None,
    today: Optional[date] = None,
) -> list[PersistedAction]:
    """Map actions to rows ready for a single batch insert.

    Args:
        actions:         Output of ``ActionInstantiator.instantiate_actions``.
        user_id:         Assessment owner.
        assessment_id:   Assessment the actions belong to.
        organization_id: Tenant id.
        mappings:        Supplies human department names; without it the
                         module key is used.
        today:           Reference date for target completion dates.
    """
    base = today or utc_today()
    rows: list[PersistedAction] = []
    for action in actions:
        department = (
            mappings.module_name(action.module_key) if mappings else action.module_key
        )
        rows.append(
            PersistedAction(
                user_id=user_id,
                organization_id=organization_id,
                assessment_id=assessment_id,
                department=department,
                priority=action.priority,
                action_title=action.title,
                action_description=build_action_description(action),
                responsible_person=action.owner_role,
                target_completion_date=target_completion_date(action.timeframe_days, base),
            )
        )
    return rows
