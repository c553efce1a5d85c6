"""
Shared pytest fixtures for the assessment engine test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the schema
    applied. Created anew for each test that requests it.
  - ``catalog``: The bundled catalog, loaded once per session.
  - Small fixture tables (mappings, templates, weights) built in code so
    engine tests do not depend on the bundled catalog contents.
  - ``app_config`` / ``db_path``: A config pointing at a temporary database
    file with the schema applied, for orchestrator and CLI tests.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Generator

import pytest

from assessment_engine.catalog.loader import AssessmentCatalog, load_catalog
from assessment_engine.config import AppConfig, DatabaseConfig, EngineConfig, LoggingConfig
from assessment_engine.db.connection import get_connection
from assessment_engine.db.repositories.assessment_repo import AssessmentRepository
from assessment_engine.db.schema import apply_schema
from assessment_engine.models.action import AssessmentRecord
from assessment_engine.models.catalog import (
    ActionTemplate,
    ActionTemplateCatalog,
    CategoryWeight,
    CategoryWeightTable,
    DepartmentCategory,
    SignalActionLimit,
    SignalMapping,
    SignalMappingTable,
)
from assessment_engine.taxonomy.department_taxonomy import Department, ScoreCategory
from assessment_engine.taxonomy.signal_taxonomy import SignalCode

ASSESSMENT_ID = "3f2b8c4e-1a7d-4e59-9b6a-0c1d2e3f4a5b"
ORGANIZATION_ID = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"
USER_ID = "user-42"


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the schema applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Path of a file-backed database with the schema applied."""
    path = str(tmp_path / "db" / "assessment_engine.db")
    with get_connection(path) as conn:
        apply_schema(conn)
    return path


@pytest.fixture
def app_config(db_path: str, tmp_path: Path) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(db_path=db_path, busy_timeout_ms=1000),
        logging=LoggingConfig(level="DEBUG", log_file=str(tmp_path / "logs" / "test.log")),
        engine=EngineConfig(),
    )


def store_assessment(
    db_path: str,
    answers: dict | None = None,
    assessment_id: str = ASSESSMENT_ID,
    user_id: str = USER_ID,
    organization_id: str = ORGANIZATION_ID,
) -> AssessmentRecord:
    """Insert an assessment row so FK-bound action rows can reference it."""
    record = AssessmentRecord(
        assessment_id=assessment_id,
        user_id=user_id,
        organization_id=organization_id,
        answers=answers or {},
    )
    with get_connection(db_path) as conn:
        AssessmentRepository(conn).insert(record)
    return record


# ── Logging fixture ───────────────────────────────────────────────────────────

@pytest.fixture
def restore_root_logger() -> Generator[None, None, None]:
    """Undo ``configure_logging()`` side effects on the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


# ── Catalog fixtures ──────────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def catalog() -> AssessmentCatalog:
    """The bundled catalog."""
    return load_catalog()


@pytest.fixture
def engine_config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def weight_table() -> CategoryWeightTable:
    """The five production categories with their production weights."""
    return CategoryWeightTable(
        weights=(
            CategoryWeight(category=ScoreCategory.NEW_VEHICLE_SALES, weight=0.25),
            CategoryWeight(category=ScoreCategory.USED_VEHICLE_SALES, weight=0.20),
            CategoryWeight(category=ScoreCategory.SERVICE_PERFORMANCE, weight=0.20),
            CategoryWeight(category=ScoreCategory.PARTS_INVENTORY, weight=0.15),
            CategoryWeight(category=ScoreCategory.FINANCIAL_OPERATIONS, weight=0.20),
        ),
        departments=(
            DepartmentCategory(
                department=Department.NEW_VEHICLE_SALES,
                category=ScoreCategory.NEW_VEHICLE_SALES,
            ),
            DepartmentCategory(
                department=Department.USED_VEHICLE_SALES,
                category=ScoreCategory.USED_VEHICLE_SALES,
            ),
            DepartmentCategory(
                department=Department.SERVICE_PERFORMANCE,
                category=ScoreCategory.SERVICE_PERFORMANCE,
            ),
            DepartmentCategory(
                department=Department.PARTS_INVENTORY,
                category=ScoreCategory.PARTS_INVENTORY,
            ),
            DepartmentCategory(
                department=Department.FINANCIAL_OPERATIONS,
                category=ScoreCategory.FINANCIAL_OPERATIONS,
            ),
        ),
    )


@pytest.fixture
def mapping_table() -> SignalMappingTable:
    """q1 → PROCESS_NOT_EXECUTED (new vehicle sales); q2–q4 → KPI_NOT_REVIEWED
    (service); q5 → NONE; q6 → KPI_NOT_REVIEWED (parts)."""
    return SignalMappingTable(
        mappings=(
            SignalMapping(
                question_id="q1",
                module_key=Department.NEW_VEHICLE_SALES,
                signal_code=SignalCode.PROCESS_NOT_EXECUTED,
            ),
            SignalMapping(
                question_id="q2",
                module_key=Department.SERVICE_PERFORMANCE,
                signal_code=SignalCode.KPI_NOT_REVIEWED,
            ),
            SignalMapping(
                question_id="q3",
                module_key=Department.SERVICE_PERFORMANCE,
                signal_code=SignalCode.KPI_NOT_REVIEWED,
            ),
            SignalMapping(
                question_id="q4",
                module_key=Department.SERVICE_PERFORMANCE,
                signal_code=SignalCode.KPI_NOT_REVIEWED,
            ),
            SignalMapping(
                question_id="q5",
                module_key=Department.SERVICE_PERFORMANCE,
                signal_code=SignalCode.NONE,
            ),
            SignalMapping(
                question_id="q6",
                module_key=Department.PARTS_INVENTORY,
                signal_code=SignalCode.KPI_NOT_REVIEWED,
            ),
        ),
        module_names={
            Department.NEW_VEHICLE_SALES: "New Vehicle Sales",
            Department.SERVICE_PERFORMANCE: "Service",
            Department.PARTS_INVENTORY: "Parts & Inventory",
        },
    )


def make_template(
    template_id: str,
    signal_code: SignalCode,
    timeframe_days: int = 14,
) -> ActionTemplate:
    return ActionTemplate(
        template_id=template_id,
        signal_code=signal_code,
        title=f"Title {template_id}",
        description=f"Description {template_id}",
        default_owner_role="General Manager",
        default_timeframe_days=timeframe_days,
        implementation_steps=("Step one", "Step two"),
    )


@pytest.fixture
def template_catalog() -> ActionTemplateCatalog:
    """Two PNE templates (cap 2), three KNR templates (cap 2)."""
    return ActionTemplateCatalog(
        templates=(
            make_template("PNE-1", SignalCode.PROCESS_NOT_EXECUTED, 7),
            make_template("PNE-2", SignalCode.PROCESS_NOT_EXECUTED, 30),
            make_template("KNR-1", SignalCode.KPI_NOT_REVIEWED, 14),
            make_template("KNR-2", SignalCode.KPI_NOT_REVIEWED, 21),
            make_template("KNR-3", SignalCode.KPI_NOT_REVIEWED, 21),
        ),
        signal_limits=(
            SignalActionLimit(
                signal_code=SignalCode.PROCESS_NOT_EXECUTED,
                template_ids=("PNE-1", "PNE-2"),
                max_actions=2,
            ),
            SignalActionLimit(
                signal_code=SignalCode.KPI_NOT_REVIEWED,
                template_ids=("KNR-1", "KNR-2", "KNR-3"),
                max_actions=2,
            ),
        ),
    )
