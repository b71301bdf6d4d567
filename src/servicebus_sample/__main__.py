"""Typer CLI for the Service Bus sample."""

from __future__ import annotations

import asyncio
import json

import typer

from servicebus_sample.core.config import Settings, get_settings
from servicebus_sample.core.exceptions import BaseApplicationException
from servicebus_sample.core.logging import configure_logging, get_logger
from servicebus_sample.scenario import ScenarioState, run_sample
from servicebus_sample.tools.azure.clients import build_clients
from servicebus_sample.tools.azure.validators import normalize_location

logger = get_logger(__name__)
app = typer.Typer(name="servicebus-sample", help="Azure Service Bus provisioning sample")


def _apply_overrides(
    settings: Settings,
    location: str | None,
    wait_cleanup: bool | None,
    keep_namespace: bool,
) -> Settings:
    azure = settings.azure
    scenario = settings.scenario
    if location:
        azure = azure.model_copy(update={"location": normalize_location(location)})
    if wait_cleanup is not None:
        scenario = scenario.model_copy(update={"wait_for_cleanup": wait_cleanup})
    if keep_namespace:
        scenario = scenario.model_copy(update={"delete_namespace": False})
    return settings.model_copy(update={"azure": azure, "scenario": scenario})


async def _run(settings: Settings) -> ScenarioState:
    clients = build_clients(settings)
    try:
        logger.info(f"Selected subscription: {clients.subscription_id}")
        report = await run_sample(clients, settings=settings)
        return report.state
    finally:
        await clients.close()


@app.command()
def run(
    location: str | None = typer.Option(None, "--location", help="Azure region"),
    wait_cleanup: bool | None = typer.Option(
        None, "--wait-cleanup/--no-wait-cleanup", help="Wait for resource group deletion"
    ),
    keep_namespace: bool = typer.Option(
        False, "--keep-namespace", help="Skip the explicit namespace delete"
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level"),
    log_format: str | None = typer.Option(None, "--log-format", help="json or text"),
) -> None:
    """Provision the namespace, queue, topic and subscriptions, then tear them down."""
    settings = get_settings()
    obs = settings.observability
    configure_logging(
        level=log_level or obs.log_level,
        fmt=log_format or obs.log_format,
        log_file=obs.log_file,
        max_bytes=obs.log_rotation_size_mb * 1024 * 1024,
        retention=obs.log_retention,
        context={"app": settings.app_name},
    )
    settings = _apply_overrides(settings, location, wait_cleanup, keep_namespace)
    try:
        state = asyncio.run(_run(settings))
    except Exception as exc:
        details = exc.to_dict() if isinstance(exc, BaseApplicationException) else {}
        logger.exception(
            "Service bus sample failed", error_type=type(exc).__name__, details=details
        )
        raise typer.Exit(1) from exc
    logger.info("Service bus sample finished", state=state.value)


@app.command("show-config")
def show_config() -> None:
    """Print the effective configuration with secrets redacted."""
    typer.echo(json.dumps(get_settings().export_safe_config(), indent=2, default=str))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
