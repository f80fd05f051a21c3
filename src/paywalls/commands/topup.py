"""``paywalls topup`` (alias ``fund``) -- add funds to the wallet.

Not implemented yet: points the operator at paywalls.net instead. Exits 0
so scripts that probe for the command do not fail.
"""

from __future__ import annotations

from typing import Optional

import typer

from paywalls.commands.common import (
    base_url_option,
    command_context,
    headless_option,
    json_option,
)


def topup_command(
    ctx: typer.Context,
    json_output: bool = json_option(),
    headless: bool = headless_option(),
    base_url: Optional[str] = base_url_option(),
) -> None:
    """Add funds to your wallet (alias: fund)."""
    cmd = command_context(ctx, json_output, headless, base_url)
    output = cmd.output
    if output.is_json:
        output.emit(
            {
                "error": "Top-up is not yet implemented.",
                "resolution": "Visit https://paywalls.net to add funds to your wallet.",
            }
        )
        return

    output.info("paywalls topup: not yet implemented")
    output.info("")
    output.info("This will allow you to add funds to your wallet.")
    output.suggest("In the meantime, fund your wallet at https://paywalls.net.")
