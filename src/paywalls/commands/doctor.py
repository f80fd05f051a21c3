"""``paywalls doctor`` -- check the developer environment.

Runs every check in :mod:`paywalls.diagnostics` and prints a report with
the fix for each failure. Exits non-zero when any check fails.
"""

from __future__ import annotations

from typing import Optional

import typer

from paywalls.commands.common import (
    base_url_option,
    command_context,
    command_errors,
    headless_option,
    json_option,
)
from paywalls.config import resolve_config
from paywalls.diagnostics import run_diagnostics
from paywalls.exit_codes import EXIT_GENERIC_FAILURE
from paywalls.models import CheckResult, DiagnosticReport
from paywalls.output import OutputManager

_TITLES = {
    "configuration": "Configuration",
    "connectivity": "API connectivity",
    "authentication": "Authentication",
    "wallet": "Wallet",
    "agent": "Agent",
}


def doctor_command(
    ctx: typer.Context,
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Check this API key instead of the configured one."
    ),
    json_output: bool = json_option(),
    headless: bool = headless_option(),
    base_url: Optional[str] = base_url_option(),
) -> None:
    """Check your developer environment is set up correctly."""
    cmd = command_context(ctx, json_output, headless, base_url)
    with command_errors(cmd):
        config = resolve_config(api_key=api_key, base_url=cmd.base_url)
        with cmd.client(config) as client:
            report = run_diagnostics(client, config)

    if cmd.output.is_json:
        cmd.output.emit(report.to_dict())
    else:
        _render(cmd.output, report)

    if not report.ok:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


def _describe(check: CheckResult) -> str:
    details = check.details or {}
    name = check.name
    if name == "configuration":
        return f"API key found ({details.get('api_key_source')}: {details.get('api_key_prefix')})"
    if name == "connectivity":
        return f"{details.get('url')} reachable ({details.get('latency_ms')} ms)"
    if name == "authentication":
        label = details.get("account_name") or details.get("account_id")
        return f"Authenticated as {label}"
    if name == "wallet":
        return f"Wallet balance {details.get('balance_formatted')}"
    if name == "agent":
        count = details.get("count", 0)
        return f"{count} agent{'s' if count != 1 else ''} registered"
    return _TITLES.get(name, name)


def _render(output: OutputManager, report: DiagnosticReport) -> None:
    output.info("Paywalls Developer Environment Check")
    output.info("")
    for check in report.checks:
        title = _TITLES.get(check.name, check.name)
        if check.passed:
            output.success(f"{title}: {_describe(check)}")
        else:
            output.error(f"{title}: {check.error}")
            if check.fix:
                output.info(f"  Fix: {check.fix}")
    output.info("")
    summary = f"{report.passed}/{report.total} checks passed."
    if report.ok:
        output.success(summary)
    else:
        output.warning(summary)
