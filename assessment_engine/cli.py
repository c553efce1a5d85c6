"""
Assessment Engine CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Load the catalog and validate inputs.
  4. Execute (schema init, scoring, submission, action generation).
  5. Report the result to stdout; errors go to stderr with exit code 1.

Install and run::

    pip install -e .
    assessment-engine --help
    assessment-engine init-db
    assessment-engine validate-catalog
    assessment-engine score answers.json
    assessment-engine submit-assessment answers.json --user-id u1 --organization-id <uuid>
    assessment-engine generate-actions <assessment-uuid> --user-id u1
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="assessment-engine",
    help="Dealership assessment scoring and improvement-action engine.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from assessment_engine.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    from assessment_engine.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_catalog_or_exit(config):
    from assessment_engine.catalog.loader import load_catalog

    try:
        return load_catalog(config.catalog.data_dir)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Catalog validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _read_answers_or_exit(answers_path: str) -> dict[str, Any]:
    """Read an answers file: either ``{"answers": {...}}`` or a flat mapping."""
    path = Path(answers_path)
    if not path.exists():
        typer.echo(f"[ERROR] Answers file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] JSON parse error: {exc}", err=True)
        raise typer.Exit(code=1)

    answers = raw.get("answers", raw) if isinstance(raw, dict) else None
    if not isinstance(answers, dict):
        typer.echo("[ERROR] Answers file must contain a JSON object.", err=True)
        raise typer.Exit(code=1)
    return answers


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None, "--db-path", help="Override DB path from config."
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file."
    ),
) -> None:
    """Initialize the SQLite database and apply the schema.

    Safe to run multiple times; all DDL uses IF NOT EXISTS.
    """
    from assessment_engine.db.connection import get_connection
    from assessment_engine.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None, "--config", help="Path to TOML config file (default: config/default.toml)."
    ),
    show_full: bool = typer.Option(
        False, "--full", help="Print full config including all fields."
    ),
) -> None:
    """Validate the configuration file and print parsed values."""
    config = _load_config_or_exit(config_path)
    engine = config.engine

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:      {config.database.db_path}")
    typer.echo(f"  Auto actions:       {'enabled' if engine.enable_auto_actions else 'disabled'}")
    typer.echo(f"  Weak threshold:     {engine.weak_score_threshold}")
    typer.echo(f"  Critical threshold: {engine.critical_score_threshold}")
    typer.echo(f"  Max actions:        {engine.max_actions}")
    typer.echo(f"  Catalog dir:        {config.catalog.data_dir or '(bundled)'}")
    typer.echo(f"  Log level:          {config.logging.level}")
    typer.echo(f"  Debug mode:         {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))


@app.command("validate-catalog")
def validate_catalog(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Load the catalog, print table sizes and signal-mapping coverage.

    Exits with code 1 when any questionnaire question has no signal mapping.
    """
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _load_catalog_or_exit(config)

    question_ids = catalog.questionnaire.question_ids()
    coverage = catalog.signal_mappings.validate_mapping_coverage(question_ids)

    typer.echo("Catalog validated successfully.")
    typer.echo("")
    typer.echo(f"  Sections:        {len(catalog.questionnaire.sections)}")
    typer.echo(f"  Questions:       {len(question_ids)}")
    typer.echo(f"  Signal mappings: {len(catalog.signal_mappings.mappings)}")
    typer.echo(f"  Templates:       {len(catalog.action_templates.templates)}")
    typer.echo(f"  Coverage:        {coverage.coverage_percent:.1f}%")

    typer.echo("")
    typer.echo("  Department weights:")
    for section in catalog.questionnaire.sections:
        typer.echo(
            f"    {section.title:<24} "
            f"{catalog.category_weights.get_weight_percentage(section.id):>4}"
        )

    if coverage.missing:
        typer.echo(
            f"[ERROR] {len(coverage.missing)} question(s) without a signal mapping: "
            f"{', '.join(coverage.missing)}",
            err=True,
        )
        raise typer.Exit(code=1)


@app.command("score")
def score(
    answers_path: str = typer.Argument(..., help="JSON file of question id → score (1-5)."),
    as_json: bool = typer.Option(False, "--json", help="Print the evaluation as JSON."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Score answers and list the signals and actions they would produce.

    Nothing is written to the database.
    """
    from assessment_engine.pipeline.orchestrator import evaluate_assessment
    from assessment_engine.scoring.maturity import MATURITY_LABELS
    from assessment_engine.taxonomy.signal_taxonomy import SIGNAL_DESCRIPTIONS

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _load_catalog_or_exit(config)
    answers = _read_answers_or_exit(answers_path)

    result = evaluate_assessment(answers, catalog, config.engine)

    if as_json:
        typer.echo(json.dumps(
            {
                "overall_score": result.overall_score,
                "maturity_level": str(result.maturity_level),
                "department_scores": result.department_scores,
                "category_scores": {
                    k: {
                        "score": v.score,
                        "weight": v.weight,
                        "weighted_contribution": v.weighted_contribution,
                    }
                    for k, v in result.category_scores.items()
                },
                "signals": [
                    {
                        "signal_code": str(s.signal_code),
                        "severity": str(s.severity),
                        "module_key": s.module_key,
                        "triggering_question_ids": list(s.triggering_question_ids),
                        "rationale": s.rationale,
                        "description": SIGNAL_DESCRIPTIONS[s.signal_code],
                    }
                    for s in result.signals
                ],
                "actions": [
                    {
                        "template_id": a.template_id,
                        "priority": str(a.priority),
                        "title": a.title,
                        "owner_role": a.owner_role,
                        "timeframe_days": a.timeframe_days,
                    }
                    for a in result.actions
                ],
            },
            indent=2,
        ))
        return

    if result.score_error:
        typer.echo(f"[WARN] {result.score_error}", err=True)

    typer.echo(
        f"Overall score: {result.overall_score}/100 "
        f"({MATURITY_LABELS[result.maturity_level]})"
    )
    typer.echo("")
    for department, value in result.department_scores.items():
        typer.echo(f"  {catalog.signal_mappings.module_name(department):<24} {value:6.2f}")

    typer.echo("")
    typer.echo(f"Signals: {len(result.signals)}")
    for s in result.signals:
        typer.echo(f"  [{s.severity:<6}] {s.signal_code:<26} {s.rationale}")
        typer.echo(f"           {SIGNAL_DESCRIPTIONS[s.signal_code]}")

    typer.echo("")
    typer.echo(f"Actions: {len(result.actions)}")
    for a in result.actions:
        typer.echo(f"  [{a.priority:<6}] {a.template_id}  {a.title} ({a.timeframe_days}d)")


@app.command("submit-assessment")
def submit_assessment(
    answers_path: str = typer.Argument(..., help="JSON file of question id → score (1-5)."),
    user_id: str = typer.Option(..., "--user-id", help="Owner of the assessment."),
    organization_id: str = typer.Option(..., "--organization-id", help="Tenant UUID."),
    assessment_id: Optional[str] = typer.Option(
        None, "--assessment-id", help="Explicit assessment UUID (default: new UUID4)."
    ),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path from config."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Score answers and store them as a completed assessment."""
    import sqlite3

    from assessment_engine.pipeline.submission import submit_assessment as _submit

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _load_catalog_or_exit(config)
    answers = _read_answers_or_exit(answers_path)

    try:
        record = _submit(
            answers,
            user_id=user_id,
            organization_id=organization_id,
            catalog=catalog,
            config=config,
            assessment_id=assessment_id,
            db_path=db_path,
        )
    except sqlite3.Error as exc:
        typer.echo(f"[ERROR] Could not store assessment: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Assessment stored: {record.assessment_id}")
    typer.echo(f"  Overall score: {record.overall_score}")
    typer.echo("[OK] Submitted.")


@app.command("generate-actions")
def generate_actions(
    assessment_id: str = typer.Argument(..., help="UUID of a stored assessment."),
    user_id: str = typer.Option(..., "--user-id", help="Owner of the assessment."),
    db_path: Optional[str] = typer.Option(None, "--db-path", help="Override DB path from config."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Generate improvement actions for a stored assessment (exactly once)."""
    from assessment_engine.db.connection import get_connection
    from assessment_engine.db.repositories.assessment_repo import AssessmentRepository
    from assessment_engine.pipeline.orchestrator import ActionGenerationOrchestrator

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _load_catalog_or_exit(config)

    target_path = db_path or config.database.db_path
    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        record = AssessmentRepository(conn).get_by_id(assessment_id.lower())

    if record is None:
        typer.echo(f"[ERROR] Assessment not found: {assessment_id}", err=True)
        raise typer.Exit(code=1)

    orchestrator = ActionGenerationOrchestrator(config, catalog, db_path=target_path)
    result = orchestrator.generate_actions(
        assessment_id=record.assessment_id,
        answers=record.answers,
        organization_id=record.organization_id,
        user_id=user_id,
    )

    if not result.success:
        typer.echo(f"[ERROR] Action generation failed: {result.error}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Actions generated: {result.actions_generated}")
    typer.echo("[OK] Done.")


if __name__ == "__main__":
    app()
