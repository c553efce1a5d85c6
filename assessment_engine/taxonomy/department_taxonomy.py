"""
Department and maturity taxonomy.

``Department`` keys double as questionnaire section ids and signal module
keys. ``ScoreCategory`` is the weighting bucket each department feeds in the
overall score; the weights themselves live in the catalog, not here.

``MaturityLevel`` buckets a 0–100 score for reporting.
"""

from enum import StrEnum


class Department(StrEnum):
    """The five fixed assessment departments."""

    NEW_VEHICLE_SALES = "new-vehicle-sales"
    USED_VEHICLE_SALES = "used-vehicle-sales"
    SERVICE_PERFORMANCE = "service-performance"
    PARTS_INVENTORY = "parts-inventory"
    FINANCIAL_OPERATIONS = "financial-operations"


class ScoreCategory(StrEnum):
    """Weighting bucket for the overall score."""

    NEW_VEHICLE_SALES = "newVehicleSales"
    USED_VEHICLE_SALES = "usedVehicleSales"
    SERVICE_PERFORMANCE = "servicePerformance"
    PARTS_INVENTORY = "partsInventory"
    FINANCIAL_OPERATIONS = "financialOperations"


class MaturityLevel(StrEnum):
    """Maturity band of a 0–100 score."""

    BASIC = "basic"
    DEVELOPING = "developing"
    MATURE = "mature"
    ADVANCED = "advanced"


# Lower bound (inclusive) of each band, highest first.
MATURITY_THRESHOLDS: tuple[tuple[MaturityLevel, float], ...] = (
    (MaturityLevel.ADVANCED,   85.0),
    (MaturityLevel.MATURE,     70.0),
    (MaturityLevel.DEVELOPING, 50.0),
    (MaturityLevel.BASIC,       0.0),
)
