"""
Action instantiation from ranked signals.

Budget rules
------------
- Signals are consumed in the order the signal engine ranked them, so the
  most severe and best-corroborated signals claim the budget first.
- At most ``max_actions`` actions per run (global cap).
- At most ``get_max_actions_for_signal(code)`` actions per signal.
- A template id fires at most once per run, even when two signals (same code
  in two modules) would both select it.

Priority
--------
    HIGH → high,  MEDIUM → medium,  LOW → low

``ActionPriority.CRITICAL`` is never produced here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from assessment_engine.models.catalog import ActionTemplate, ActionTemplateCatalog
from assessment_engine.signals.detector import Signal
from assessment_engine.taxonomy.signal_taxonomy import (
    ActionPriority,
    Severity,
    SignalCode,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ACTIONS = 10

_SEVERITY_TO_PRIORITY: dict[Severity, ActionPriority] = {
    Severity.HIGH:   ActionPriority.HIGH,
    Severity.MEDIUM: ActionPriority.MEDIUM,
    Severity.LOW:    ActionPriority.LOW,
}


@dataclass(frozen=True)
class InstantiatedAction:
    """A template bound to the signal that selected it.

    Attributes:
        template_id:             Catalog template id; unique within a run.
        signal_code:             Signal that selected the template.
        module_key:              Department key of that signal.
        priority:                Priority derived from the signal severity.
        title:                   Template title.
        description:             Template description (no traceability yet).
        owner_role:              Template default owner role.
        timeframe_days:          Template default timeframe.
        implementation_steps:    Template checklist.
        triggering_question_ids: Carried from the signal.
        rationale:               Carried from the signal.
    """

    template_id:             str
    signal_code:             SignalCode
    module_key:              str
    priority:                ActionPriority
    title:                   str
    description:             str
    owner_role:              str
    timeframe_days:          int
    implementation_steps:    tuple[str, ...]
    triggering_question_ids: tuple[str, ...]
    rationale:               str


def severity_to_priority(severity: Severity) -> ActionPriority:
    return _SEVERITY_TO_PRIORITY[severity]


class ActionInstantiator:
    """Selects templates for signals within the per-signal and global caps."""

    def __init__(self, template_catalog: ActionTemplateCatalog) -> None:
        self.template_catalog = template_catalog

    def instantiate_actions(
        self,
        signals: list[Signal],
        max_actions: int = DEFAULT_MAX_ACTIONS,
    ) -> list[InstantiatedAction]:
        """Return at most ``max_actions`` actions in signal order.

        Args:
            signals:     Ranked signals from ``SignalEngine.generate_signals``.
            max_actions: Global cap for this run.
        """
        actions: list[InstantiatedAction] = []
        used_template_ids: set[str] = set()

        for signal in signals:
            if len(actions) >= max_actions:
                break

            per_signal_cap = self.template_catalog.get_max_actions_for_signal(
                signal.signal_code
            )
            added = 0
            for template in self.template_catalog.get_templates_for_signal(signal.signal_code):
                if added >= per_signal_cap or len(actions) >= max_actions:
                    break
                if template.template_id in used_template_ids:
                    continue
                actions.append(_bind(template, signal))
                used_template_ids.add(template.template_id)
                added += 1

            if added == 0:
                logger.debug(
                    "No unused template for %s in %s", signal.signal_code, signal.module_key
                )

        return actions


def _bind(template: ActionTemplate, signal: Signal) -> InstantiatedAction:
    return InstantiatedAction(
        template_id=template.template_id,
        signal_code=signal.signal_code,
        module_key=signal.module_key,
        priority=severity_to_priority(signal.severity),
        title=template.title,
        description=template.description,
        owner_role=template.default_owner_role,
        timeframe_days=template.default_timeframe_days,
        implementation_steps=template.implementation_steps,
        triggering_question_ids=signal.triggering_question_ids,
        rationale=signal.rationale,
    )
