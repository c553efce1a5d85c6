"""
Signal taxonomy for assessment evaluation.

Three closed enumerations drive the signal/action pipeline:
  - ``SignalCode``     which kind of operational weakness (the *what*).
  - ``Severity``       how bad it is, LOW < MEDIUM < HIGH.
  - ``ActionPriority`` the persisted priority of an improvement action.

``SignalCode.NONE`` is the sentinel for questions without a meaningful
failure mode. It may appear in a signal mapping but never on a ``Signal``.

This module has NO imports from any other ``assessment_engine`` package.
"""

from enum import StrEnum


class SignalCode(StrEnum):
    """Operational weakness detected from one or more weak answers."""

    PROCESS_NOT_STANDARDISED = "PROCESS_NOT_STANDARDISED"
    """Standard operating procedures are missing or inconsistent."""

    PROCESS_NOT_EXECUTED = "PROCESS_NOT_EXECUTED"
    """Defined processes are not being followed consistently."""

    ROLE_OWNERSHIP_MISSING = "ROLE_OWNERSHIP_MISSING"
    """Clear accountability and role ownership is not established."""

    KPI_NOT_DEFINED = "KPI_NOT_DEFINED"
    """Key performance indicators are not clearly defined."""

    KPI_NOT_REVIEWED = "KPI_NOT_REVIEWED"
    """Performance metrics are not regularly reviewed or acted upon."""

    CAPACITY_MISALIGNED = "CAPACITY_MISALIGNED"
    """Resources and capacity are not aligned with demand."""

    TOOL_UNDERUTILISED = "TOOL_UNDERUTILISED"
    """Available tools and technology are not being fully leveraged."""

    GOVERNANCE_WEAK = "GOVERNANCE_WEAK"
    """Management oversight and governance structures need improvement."""

    NONE = "NONE"
    """No meaningful failure mode; filtered out before signal construction."""


SIGNAL_DESCRIPTIONS: dict[SignalCode, str] = {
    SignalCode.PROCESS_NOT_STANDARDISED: "Standard operating procedures are missing or inconsistent",
    SignalCode.PROCESS_NOT_EXECUTED:     "Defined processes are not being followed consistently",
    SignalCode.ROLE_OWNERSHIP_MISSING:   "Clear accountability and role ownership is not established",
    SignalCode.KPI_NOT_DEFINED:          "Key performance indicators are not clearly defined",
    SignalCode.KPI_NOT_REVIEWED:         "Performance metrics are not regularly reviewed or acted upon",
    SignalCode.CAPACITY_MISALIGNED:      "Resources and capacity are not aligned with demand",
    SignalCode.TOOL_UNDERUTILISED:       "Available tools and technology are not being fully leveraged",
    SignalCode.GOVERNANCE_WEAK:          "Management oversight and governance structures need improvement",
}


class Severity(StrEnum):
    """Ordinal urgency of a signal: LOW < MEDIUM < HIGH."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        """0 for LOW, 1 for MEDIUM, 2 for HIGH."""
        return _SEVERITY_RANK[self]

    def escalated(self) -> "Severity":
        """Return the next level up; HIGH stays HIGH."""
        return _ESCALATION[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
}

_ESCALATION: dict[Severity, Severity] = {
    Severity.LOW: Severity.MEDIUM,
    Severity.MEDIUM: Severity.HIGH,
    Severity.HIGH: Severity.HIGH,
}


class ActionPriority(StrEnum):
    """Priority of a persisted improvement action.

    ``CRITICAL`` exists in the persisted schema but the signal pipeline never
    emits it; see ``severity_to_priority``.
    """

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SeverityRule(StrEnum):
    """How a mapping's question is expected to be weighed (catalog metadata)."""

    STANDARD = "standard"
    WEIGHTED = "weighted"
