"""``paywalls register`` -- device-code registration.

Runs :class:`~paywalls.auth.device_flow.DeviceAuthorizationFlow` and reports
the issued API key. Refuses to overwrite an existing configuration unless
``--force`` is given.

Example::

    paywalls register
    paywalls register --json --force
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from paywalls.auth.device_flow import DeviceAuthorizationFlow, InterruptGuard
from paywalls.commands.common import (
    base_url_option,
    command_context,
    command_errors,
    headless_option,
    json_option,
)
from paywalls.config import resolve_config
from paywalls.models import Credentials
from paywalls.output import OutputManager


def register_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing credentials."),
    incognito: bool = typer.Option(
        False, "--incognito", help="Open the verification URL in a private browser window."
    ),
    json_output: bool = json_option(),
    headless: bool = headless_option(),
    base_url: Optional[str] = base_url_option(),
) -> None:
    """Register a new device and obtain an API key."""
    cmd = command_context(ctx, json_output, headless, base_url)
    with command_errors(cmd):
        config = resolve_config(base_url=cmd.base_url)
        flow = DeviceAuthorizationFlow(
            config,
            output=cmd.output,
            force=force or cmd.force,
            headless=cmd.headless,
            incognito=incognito,
            clock=cmd.clock,
            launcher=cmd.launcher,
            interrupt_guard=cmd.interrupt_guard or InterruptGuard,
            transport=cmd.transport,
        )
        credentials = flow.run()
        _report_success(cmd.output, credentials, flow.store.path)


def _report_success(output: OutputManager, credentials: Credentials, path: Path) -> None:
    if output.is_json:
        output.emit(
            {
                "status": "authorized",
                "api_key": credentials.api_key,
                "account_id": credentials.account_id,
            }
        )
        return

    output.newline()
    output.success("Authorized!")
    output.info(f"  API Key:  {credentials.api_key}")
    output.info(f"  Account:  {credentials.account_id}")
    output.dim(f"Saved to {path}")
    output.info("")
    output.info("Next steps:")
    output.info("  paywalls balance     Check your wallet balance")
    output.info("  paywalls topup       Add funds to your wallet")
