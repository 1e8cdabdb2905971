"""
Eco Scorer CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Build an ``EcoScoreService`` (loading the model when the command needs it).
  4. Execute the action.
  5. Report the result to stdout as JSON or ``[OK]`` / ``[ERROR]`` lines.

Exit codes: 0 success, 1 config / file error, 2 invalid input,
3 model unavailable.

Install and run::

    pip install -e .
    eco-scorer --help
    eco-scorer init-db
    eco-scorer set-profile --user-id 1 --file profile.json
    eco-scorer log-day --user-id 1 --file today.json
    eco-scorer logs --user-id 1 --start 2025-03-01
    eco-scorer predict --user-id 1 --file request.json
    eco-scorer dashboard --user-id 1
    eco-scorer export-history --user-id 1 --output data/exports/history_1.csv
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="eco-scorer",
    help="Eco score prediction, daily logging and history CLI.",
    add_completion=False,
)

EXIT_CONFIG_ERROR = 1
EXIT_VALIDATION_ERROR = 2
EXIT_UNAVAILABLE = 3


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from eco_scorer.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    except ValueError as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)


def _configure_logging(config):
    """Set up logging from config."""
    from eco_scorer.utils.logging import configure_logging
    configure_logging(config.logging)


def _build_service(config, load_model: bool = False):
    """Create the service; optionally load the configured model first."""
    import asyncio

    from eco_scorer.service import EcoScoreService

    service = EcoScoreService(config)
    if load_model and not asyncio.run(service.load_model()):
        typer.echo(f"[WARN] Model not loaded: {service.store.last_error}", err=True)
    return service


def _read_json_or_exit(path: Path) -> dict[str, Any]:
    if not path.exists():
        typer.echo(f"[ERROR] File not found: {path}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] JSON parse error in {path}: {exc}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)
    if not isinstance(payload, dict):
        typer.echo(f"[ERROR] {path} must contain a JSON object.", err=True)
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)
    return payload


def _echo_model(model) -> None:
    typer.echo(json.dumps(model.model_dump(mode="json"), indent=2))


def _exit_on_domain_error(exc: Exception) -> None:
    from eco_scorer.errors import ServiceUnavailable, ValidationError

    if isinstance(exc, ValidationError):
        typer.echo(f"[ERROR] Invalid input: {exc}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)
    if isinstance(exc, ServiceUnavailable):
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=EXIT_UNAVAILABLE)
    raise exc


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Initialize the SQLite database and apply the schema and migrations.

    Safe to run multiple times; all DDL uses IF NOT EXISTS.
    """
    from eco_scorer.db.schema import ALL_TABLE_NAMES

    config = _load_config_or_exit(config_path)
    if db_path:
        config = config.model_copy(
            update={"database": config.database.model_copy(update={"db_path": db_path})}
        )
    _configure_logging(config)

    typer.echo(f"Initializing database at: {config.database.db_path}")
    migrations_applied = _build_service(config).initialize_database()

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(False, "--full", help="Print full config including all fields."),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Model artifact:   {config.model.artifact_path}")
    typer.echo(f"  Model metadata:   {config.model.metadata_path}")
    typer.echo(f"  Max tips:         {config.recommendations.max_count}")
    typer.echo(f"  Trend days:       {config.dashboard.trend_days}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))


@app.command("model-info")
def model_info(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Load the configured model and print its version, features and score bands."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    service = _build_service(config, load_model=True)
    _echo_model(service.model_info())


@app.command("set-profile")
def set_profile(
    user_id: int = typer.Option(..., "--user-id", help="Owning user ID."),
    file: Path = typer.Option(..., "--file", help="JSON object of profile fields."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Create or replace a user's lifestyle profile."""
    from eco_scorer.errors import ValidationError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    payload = _read_json_or_exit(file)

    try:
        profile = _build_service(config).save_profile(user_id, payload)
    except ValidationError as exc:
        _exit_on_domain_error(exc)

    _echo_model(profile)
    typer.echo(f"[OK] Profile saved for user {user_id}.")


@app.command("log-day")
def log_day(
    user_id: int = typer.Option(..., "--user-id", help="Owning user ID."),
    file: Path = typer.Option(..., "--file", help="JSON object of measurement fields."),
    log_date: Optional[str] = typer.Option(
        None, "--date", help="Log date YYYY-MM-DD (default: today, UTC)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Create or overwrite a user's activity log for one day."""
    from eco_scorer.errors import ValidationError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    payload = _read_json_or_exit(file)

    day: Optional[date] = None
    if log_date:
        try:
            day = date.fromisoformat(log_date)
        except ValueError as exc:
            typer.echo(f"[ERROR] Invalid date format: {exc}", err=True)
            raise typer.Exit(code=EXIT_VALIDATION_ERROR)

    try:
        log = _build_service(config).log_day(user_id, payload, log_date=day)
    except ValidationError as exc:
        _exit_on_domain_error(exc)

    typer.echo(f"[OK] Logged {log.log_date} for user {user_id}.")


@app.command("logs")
def logs(
    user_id: int = typer.Option(..., "--user-id", help="Owning user ID."),
    start: Optional[str] = typer.Option(None, "--start", help="First date YYYY-MM-DD."),
    end: Optional[str] = typer.Option(None, "--end", help="Last date YYYY-MM-DD (default: today)."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print a user's daily logs for a date range as a JSON list."""
    from eco_scorer.errors import ValidationError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        first = date.fromisoformat(start) if start else None
        last = date.fromisoformat(end) if end else None
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid date format: {exc}", err=True)
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)

    try:
        found = _build_service(config).daily_logs(user_id, start=first, end=last)
    except ValidationError as exc:
        _exit_on_domain_error(exc)

    typer.echo(json.dumps([log.model_dump(mode="json") for log in found], indent=2))


@app.command("predict")
def predict(
    user_id: int = typer.Option(..., "--user-id", help="User to score."),
    file: Optional[Path] = typer.Option(
        None, "--file", help="JSON prediction request (omit to use profile + today's log)."
    ),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Predict an eco score, record it, and print the response."""
    from eco_scorer.errors import EcoScorerError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    payload = _read_json_or_exit(file) if file else {}

    service = _build_service(config, load_model=True)
    try:
        response = service.predict(user_id, payload)
    except EcoScorerError as exc:
        _exit_on_domain_error(exc)

    _echo_model(response)


@app.command("dashboard")
def dashboard(
    user_id: int = typer.Option(..., "--user-id", help="User to summarize."),
    trips_today: int = typer.Option(0, "--trips-today", min=0, help="Trips recorded today."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Print the user's dashboard: latest score, today's log and the weekly trend."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    _echo_model(_build_service(config).dashboard(user_id, trips_today=trips_today))


@app.command("export-history")
def export_history_cmd(
    user_id: int = typer.Option(..., "--user-id", help="User whose history to export."),
    output: Path = typer.Option(..., "--output", help="Destination .csv or .json path."),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to TOML config file."),
) -> None:
    """Export a user's prediction history to CSV or JSON."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    if output.suffix.lower() not in (".csv", ".json"):
        typer.echo("[ERROR] --output must end in .csv or .json.", err=True)
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)

    path = _build_service(config).export_history(user_id, output)
    typer.echo(f"[OK] History exported: {path}")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
