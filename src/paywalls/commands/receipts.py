"""``paywalls receipts`` -- list recent transaction receipts or show one.

Typical usage::

    paywalls receipts                          # 10 most recent
    paywalls receipts --limit 50 --type debit  # filtered page
    paywalls receipts RCPT-01-ABC              # single receipt detail
"""

from __future__ import annotations

from typing import Any, Optional

import typer
from pydantic import ValidationError

from paywalls.client import ApiClient
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
from paywalls.formatting import format_amount, format_date, format_number
from paywalls.models import Receipt, ReceiptPage
from paywalls.output import OutputManager

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_RETRY_FIX = "Try again shortly. If the problem persists, contact support."


def receipts_command(
    ctx: typer.Context,
    receipt_id: Optional[str] = typer.Argument(None, help="Show a single receipt by ID."),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", help="Receipts per page (1-100)."),
    offset: int = typer.Option(0, "--offset", help="Number of receipts to skip."),
    receipt_type: Optional[str] = typer.Option(
        None, "--type", help="Filter by receipt type ('all' for no filter)."
    ),
    domain: Optional[str] = typer.Option(None, "--domain", help="Filter by content domain."),
    json_output: bool = json_option(),
    headless: bool = headless_option(),
    base_url: Optional[str] = base_url_option(),
) -> None:
    """View recent transaction receipts."""
    cmd = command_context(ctx, json_output, headless, base_url)
    with command_errors(cmd):
        config = resolve_config(base_url=cmd.base_url)
        require_api_key(config)

        with cmd.client(config) as client:
            account_id, _ = resolve_account(client, config)
            if receipt_id:
                show_receipt(client, cmd.output, account_id, receipt_id)
            else:
                params = build_list_params(limit, offset, receipt_type, domain)
                list_receipts(client, cmd.output, account_id, params)


def build_list_params(
    limit: int,
    offset: int,
    receipt_type: Optional[str] = None,
    domain: Optional[str] = None,
) -> dict[str, Any]:
    """Clamp paging values and drop empty filters. A zero limit means the default."""
    params: dict[str, Any] = {
        "limit": min(max(limit or DEFAULT_LIMIT, 1), MAX_LIMIT),
        "offset": max(offset, 0),
    }
    if receipt_type and receipt_type != "all":
        params["type"] = receipt_type
    if domain:
        params["domain"] = domain
    return params


def _receipt_record(receipt: Receipt) -> dict[str, Any]:
    record = receipt.model_dump(mode="json", by_alias=True, exclude_none=True)
    record["amount_formatted"] = format_amount(receipt.amount)
    return record


def show_receipt(client: ApiClient, output: OutputManager, account_id: str, receipt_id: str) -> None:
    response = client.get(f"/api/wallet/{account_id}/receipts/{receipt_id}")
    if response.status_code == 404:
        raise NotFoundError(
            "Unable to retrieve receipt.",
            reason=f"No receipt exists with ID '{receipt_id}'.",
            resolution="Run 'paywalls receipts' to list available receipts.",
        )
    if not response.success:
        raise ApiError(
            "Unable to retrieve receipt.",
            reason=f"API returned {response.error_summary()}.",
            resolution=_RETRY_FIX,
        )
    try:
        receipt = Receipt.model_validate(response.body)
    except ValidationError as exc:
        raise ApiError(
            "Unable to retrieve receipt.",
            reason="The receipt response was not understood.",
            resolution=_RETRY_FIX,
        ) from exc

    if output.is_json:
        output.emit(_receipt_record(receipt))
        return

    rows = [
        ["Receipt", receipt.receipt_id],
        ["Type", receipt.type],
        [
            "Amount",
            f"{format_amount(receipt.amount)} ({format_number(abs(receipt.amount))} millicents)",
        ],
    ]
    if receipt.domain:
        rows.append(["Domain", receipt.domain])
    if receipt.url:
        rows.append(["URL", receipt.url])
    rows.append(["Date", receipt.created or "—"])
    if receipt.status:
        rows.append(["Status", receipt.status])
    if receipt.description:
        rows.append(["Note", receipt.description])
    output.print_table(["Field", "Value"], rows, title=f"Receipt {receipt.receipt_id}")


def list_receipts(
    client: ApiClient,
    output: OutputManager,
    account_id: str,
    params: dict[str, Any],
) -> None:
    response = client.get(f"/api/wallet/{account_id}/receipts", params=params)
    if response.status_code == 404:
        raise NotFoundError(
            "Unable to retrieve receipts.",
            reason=f"No wallet exists for account {account_id}.",
            resolution="Visit https://paywalls.net to set up your wallet.",
        )
    if not response.success:
        raise ApiError(
            "Unable to retrieve receipts.",
            reason=f"API returned {response.error_summary()}.",
            resolution=_RETRY_FIX,
        )
    try:
        page = ReceiptPage.model_validate(response.body)
    except ValidationError as exc:
        raise ApiError(
            "Unable to retrieve receipts.",
            reason="The receipts response was not understood.",
            resolution=_RETRY_FIX,
        ) from exc

    if output.is_json:
        output.emit(
            {
                "receipts": [_receipt_record(r) for r in page.receipts],
                "total": page.total,
                "limit": page.limit,
                "offset": page.offset,
            }
        )
        return

    if not page.receipts:
        output.info("No receipts yet. Use the SDK to access content and receipts will appear here.")
        return

    rows = [
        [
            format_date(r.created),
            r.type,
            format_amount(r.amount),
            r.domain or "—",
            r.receipt_id,
        ]
        for r in page.receipts
    ]
    output.print_table(
        ["Date", "Type", "Amount", "Domain", "Receipt"], rows, title="Recent transactions"
    )

    shown = len(page.receipts)
    if page.total is not None:
        summary = f"Showing {shown} of {page.total} receipts."
    else:
        summary = f"Showing {shown} receipts."
    output.dim(f"{summary} Use --limit to show more.")
