"""``paywalls balance`` -- show the wallet balance.

Resolves the account (``PAYWALLS_ACCOUNT_ID`` or ``GET /api/me``), then
reads ``GET /api/wallet/{accountId}/balance``. Amounts are millicents.
"""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError

from paywalls.commands.common import (
    base_url_option,
    command_context,
    command_errors,
    headless_option,
    json_option,
    require_api_key,
    resolve_account,
)
from paywalls.config import resolve_config
from paywalls.exceptions import ApiError, NotFoundError
from paywalls.formatting import format_balance, format_number
from paywalls.models import WalletBalance


def balance_command(
    ctx: typer.Context,
    json_output: bool = json_option(),
    headless: bool = headless_option(),
    base_url: Optional[str] = base_url_option(),
) -> None:
    """Check your wallet balance."""
    cmd = command_context(ctx, json_output, headless, base_url)
    with command_errors(cmd):
        config = resolve_config(base_url=cmd.base_url)
        require_api_key(config)

        with cmd.client(config) as client:
            account_id, account_name = resolve_account(client, config)
            response = client.get(f"/api/wallet/{account_id}/balance")

        if response.status_code == 404:
            raise NotFoundError(
                "Unable to retrieve balance.",
                reason=f"No wallet exists for account {account_id}.",
                resolution="Visit https://paywalls.net to set up your wallet.",
            )
        if not response.success:
            raise ApiError(
                "Unable to retrieve balance.",
                reason=f"API returned {response.error_summary()}.",
                resolution="Try again shortly. If the problem persists, contact support.",
            )
        try:
            wallet = WalletBalance.model_validate(response.body)
        except ValidationError as exc:
            raise ApiError(
                "Unable to retrieve balance.",
                reason="The balance response was not understood.",
                resolution="Try again shortly. If the problem persists, contact support.",
            ) from exc

        output = cmd.output
        if output.is_json:
            output.emit(
                {
                    "account_id": account_id,
                    "account_name": account_name,
                    "balance": wallet.balance,
                    "balance_formatted": format_balance(wallet.balance),
                    "currency": "USD",
                }
            )
            return

        output.success(f"Balance: {format_balance(wallet.balance)}")
        rows = [["Account", account_id]]
        if account_name:
            rows.append(["Name", account_name])
        rows.append(["Millicents", format_number(wallet.balance)])
        rows.append(["Currency", "USD"])
        output.print_table(["Field", "Value"], rows, title="Wallet")
