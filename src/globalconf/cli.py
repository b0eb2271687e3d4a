"""globalconf Command Line Interface.

Entry point for the globalconf CLI tool. Every command loads the stores
from the configured database, acts on the in-memory snapshot, and saves
the result back in one database transaction.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from globalconf import __version__
from globalconf.contracts import ConfigBag, Encap, GlobalRecord, StoreConflictError, StoreSchemaError, WorkerNode
from globalconf.core.config import GlobalConfSettings, load_settings
from globalconf.core.store import GlobalConfDB, StoreSnapshot

__all__ = ["app"]

app = typer.Typer(
    name="globalconf",
    help="globalconf: reconcile the control plane's global configuration.",
    no_args_is_help=True,
)

# CLI flags win over the settings file's logging section
_logging_flags: dict[str, bool] = {"verbose": False, "json_logs": False}


def _settings_option() -> str:
    return typer.Option(..., "--settings", "-s", help="Path to settings YAML file.")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"globalconf version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(False, "--no-dotenv", help="Skip loading .env file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output structured JSON logs."),
) -> None:
    """globalconf: reconcile the control plane's global configuration."""
    from globalconf.core.logging import configure_logging

    _logging_flags["verbose"] = verbose
    _logging_flags["json_logs"] = json_logs
    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        from dotenv import load_dotenv

        # Existing environment variables win over .env entries
        load_dotenv(override=False)


def _load_config(settings: str) -> GlobalConfSettings:
    settings_path = Path(settings).expanduser()
    try:
        config = load_settings(settings_path)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    _apply_logging_settings(config)
    return config


def _apply_logging_settings(config: GlobalConfSettings) -> None:
    from globalconf.core.logging import configure_logging

    level = "DEBUG" if _logging_flags["verbose"] else config.logging.level
    configure_logging(json_output=_logging_flags["json_logs"] or config.logging.json_output, level=level)


def _open_db(config: GlobalConfSettings) -> GlobalConfDB:
    try:
        return GlobalConfDB(config.database.url)
    except StoreSchemaError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None


def _save(db: GlobalConfDB, snapshot: StoreSnapshot) -> int:
    try:
        return db.save(snapshot)
    except StoreConflictError as e:
        typer.echo(f"Conflict: {e}. Retry the command.", err=True)
        raise typer.Exit(2) from None


@app.command()
def reconcile(settings: str = _settings_option()) -> None:
    """Run one full reconciliation pass and persist the result."""
    from globalconf.engine import GlobalConfigNode, ReconcileContext

    config = _load_config(settings)
    db = _open_db(config)
    try:
        snapshot = db.load()
        node = GlobalConfigNode(config.version)
        node.begin_pass()

        intent_txn = snapshot.intent.begin()
        state_txn = snapshot.state.begin()
        ctx = ReconcileContext(
            intent_table=snapshot.intent,
            state_table=snapshot.state,
            worker_nodes=snapshot.workers,
            intent_txn=intent_txn,
            state_txn=state_txn,
        )
        node.run(ctx)
        writes = len(intent_txn.writes) + len(state_txn.writes)

        try:
            intent_txn.commit()
            state_txn.commit()
        except StoreConflictError as e:
            typer.echo(f"Conflict: {e}. Retry the command.", err=True)
            raise typer.Exit(2) from None

        _save(db, snapshot)
    finally:
        db.close()

    typer.echo(f"Reconciled: {writes} store write(s)")
    disabled = node.state.features.disabled()
    if disabled:
        typer.echo(f"Features not supported fleet-wide: {', '.join(disabled)}")
    if node.state.internal_version_changed:
        typer.echo(f"Internal version updated to {node.internal_version}")


@app.command()
def show(settings: str = _settings_option()) -> None:
    """Print the stored records and worker nodes as YAML."""
    from globalconf.contracts import FeatureSet
    from globalconf.engine.convergence import converge
    from globalconf.engine.options import IGNORE_CHASSIS_FEATURES_KEY

    config = _load_config(settings)
    db = _open_db(config)
    try:
        snapshot = db.load()
    finally:
        db.close()

    intent = snapshot.intent.first()
    state = snapshot.state.first()
    if intent is not None and intent.options.get_bool(IGNORE_CHASSIS_FEATURES_KEY, False):
        features = FeatureSet.all_enabled()
    else:
        features = converge(snapshot.workers)
    document = {
        "intent": _record_document(intent),
        "state": _record_document(state),
        "features": features.as_dict(),
        "workers": [
            {
                "name": node.name,
                "remote": node.is_remote,
                "other_config": node.other_config.to_dict(),
                "encaps": [f"{e.type}:{e.ip}" for e in node.encaps],
            }
            for node in snapshot.workers
        ],
    }
    typer.echo(yaml.safe_dump(document, sort_keys=False), nl=False)


@app.command("set-option")
def set_option(
    key: str = typer.Argument(..., help="Intent option name."),
    value: str = typer.Argument(..., help="Option value."),
    settings: str = _settings_option(),
) -> None:
    """Set an intent option (operator edit)."""
    _edit_intent_options(settings, lambda options: options.replace(key, value))
    typer.echo(f"Set {key}={value}")


@app.command("unset-option")
def unset_option(
    key: str = typer.Argument(..., help="Intent option name."),
    settings: str = _settings_option(),
) -> None:
    """Remove an intent option (operator edit)."""
    removed: list[bool] = []
    _edit_intent_options(settings, lambda options: removed.append(options.remove(key)))
    typer.echo(f"Removed {key}" if removed[0] else f"{key} was not set")


@app.command("add-worker")
def add_worker(
    name: str = typer.Argument(..., help="Worker node name."),
    capability: list[str] = typer.Option([], "--capability", "-c", help="Capability as key=value (repeatable)."),
    encap: list[str] = typer.Option([], "--encap", "-e", help="Endpoint as type:ip (repeatable)."),
    settings: str = _settings_option(),
) -> None:
    """Register a worker node."""
    try:
        other_config = ConfigBag(_split_pairs(capability, "=", "--capability"))
        encaps = tuple(Encap(type=t, ip=ip) for t, ip in _split_pairs(encap, ":", "--encap"))
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    config = _load_config(settings)
    db = _open_db(config)
    try:
        snapshot = db.load()
        try:
            snapshot.workers.insert(WorkerNode(name=name, other_config=other_config, encaps=encaps))
        except KeyError:
            typer.echo(f"Error: worker node {name!r} already exists", err=True)
            raise typer.Exit(1) from None
        _save(db, snapshot)
    finally:
        db.close()
    typer.echo(f"Added worker {name}")


@app.command("remove-worker")
def remove_worker(
    name: str = typer.Argument(..., help="Worker node name."),
    settings: str = _settings_option(),
) -> None:
    """Remove a worker node."""
    config = _load_config(settings)
    db = _open_db(config)
    try:
        snapshot = db.load()
        if snapshot.workers.get(name) is None:
            typer.echo(f"Error: worker node {name!r} not found", err=True)
            raise typer.Exit(1)
        snapshot.workers.delete(name)
        _save(db, snapshot)
    finally:
        db.close()
    typer.echo(f"Removed worker {name}")


def _edit_intent_options(settings: str, edit: Callable[[ConfigBag], object]) -> None:
    config = _load_config(settings)
    db = _open_db(config)
    try:
        snapshot = db.load()
        current = snapshot.intent.first()
        options = current.options.clone() if current is not None else ConfigBag()
        edit(options)
        snapshot.intent.external_set_options(options)
        _save(db, snapshot)
    finally:
        db.close()


def _record_document(record: GlobalRecord | None) -> dict[str, object] | None:
    if record is None:
        return None
    return {
        "uuid": record.uuid,
        "ipsec": record.ipsec,
        "options": dict(sorted(record.options.to_dict().items())),
    }


def _split_pairs(values: list[str], separator: str, option: str) -> list[tuple[str, str]]:
    pairs = []
    for item in values:
        left, sep, right = item.partition(separator)
        if not sep or not left:
            raise ValueError(f"{option} expects 'x{separator}y', got {item!r}")
        pairs.append((left, right))
    return pairs


if __name__ == "__main__":
    app()
