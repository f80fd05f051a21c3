"""The ``doctor`` diagnostic sequence.

Five independent read-only checks, always run in this order:

1. **configuration** -- an API key is present (and from which layer).
2. **connectivity** -- the API answers ``GET /api/health``. Any HTTP status
   counts as reachable; only connection errors fail.
3. **authentication** -- ``GET /api/me`` accepts the key.
4. **wallet** -- ``GET /api/wallet/{id}/balance`` finds a wallet.
5. **agent** -- ``GET /api/account/{id}/agents`` lists at least one agent.

A failing check never skips later ones: each reports its own remediation.
The account id for checks 4 and 5 comes from a passing authentication check,
falling back to the configured ``PAYWALLS_ACCOUNT_ID``.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from pydantic import ValidationError

from paywalls.client import ApiClient
from paywalls.exceptions import ConnectionError_
from paywalls.formatting import format_balance
from paywalls.models import (
    AccountInfo,
    Agent,
    CheckResult,
    CheckStatus,
    DiagnosticReport,
    PaywallsConfig,
    WalletBalance,
)

_REGISTER_FIX = "Set PAYWALLS_API_KEY or run 'paywalls register'."
_RETRY_FIX = "Try again shortly. If the problem persists, contact support."
_NETWORK_FIX = "Check your network connection and base URL."


def _fail(name: str, error: str, fix: str, details: Optional[dict] = None) -> CheckResult:
    return CheckResult(name=name, status=CheckStatus.FAIL, error=error, fix=fix, details=details)


def _unreachable(name: str, client: ApiClient) -> CheckResult:
    return _fail(name, f"Cannot reach API at {client.base_url}.", _NETWORK_FIX)


def check_configuration(config: PaywallsConfig) -> CheckResult:
    if not config.has_api_key:
        return _fail("configuration", "No API key found.", _REGISTER_FIX)

    return CheckResult(
        name="configuration",
        status=CheckStatus.PASS,
        details={
            "api_key_prefix": config.api_key[:8] + "…",
            "api_key_source": config.api_key_source.value if config.api_key_source else "unknown",
            "base_url": config.base_url,
        },
    )


def check_connectivity(
    client: ApiClient,
    timer: Callable[[], float] = time.monotonic,
) -> CheckResult:
    """Pass whenever the server answers, whatever the status."""
    start = timer()
    try:
        response = client.get("/api/health")
    except ConnectionError_:
        latency_ms = int((timer() - start) * 1000)
        return _fail(
            "connectivity",
            f"Cannot reach API at {client.base_url}.",
            _NETWORK_FIX,
            details={"latency_ms": latency_ms},
        )

    latency_ms = int((timer() - start) * 1000)
    return CheckResult(
        name="connectivity",
        status=CheckStatus.PASS,
        details={
            "url": client.base_url,
            "status": response.status_code,
            "latency_ms": latency_ms,
        },
    )


def check_authentication(client: ApiClient) -> CheckResult:
    if not client.api_key:
        return _fail("authentication", "Skipped: no API key configured.", _REGISTER_FIX)

    try:
        response = client.get("/api/me")
    except ConnectionError_:
        return _unreachable("authentication", client)

    if not response.success:
        return _fail(
            "authentication",
            f"API key invalid or account disabled (HTTP {response.status_code}).",
            "Check your PAYWALLS_API_KEY or run 'paywalls register'.",
        )

    try:
        me = AccountInfo.model_validate(response.body)
    except ValidationError:
        return _fail("authentication", "Unexpected /api/me response.", _RETRY_FIX)

    return CheckResult(
        name="authentication",
        status=CheckStatus.PASS,
        details={
            "account_id": me.account_id,
            "account_name": me.account_name,
            "account_status": me.status or "active",
        },
    )


def check_wallet(client: ApiClient, account_id: Optional[str]) -> CheckResult:
    if not account_id:
        return _fail("wallet", "Skipped: account could not be resolved.", "Fix authentication first.")

    try:
        response = client.get(f"/api/wallet/{account_id}/balance")
    except ConnectionError_:
        return _unreachable("wallet", client)

    if response.status_code == 404:
        return _fail(
            "wallet",
            f"No wallet found for account {account_id}.",
            "Run 'paywalls topup' to create one.",
        )
    if not response.success:
        return _fail("wallet", f"Wallet check failed (HTTP {response.status_code}).", _RETRY_FIX)

    try:
        wallet = WalletBalance.model_validate(response.body)
    except ValidationError:
        return _fail("wallet", "Unexpected wallet balance response.", _RETRY_FIX)

    return CheckResult(
        name="wallet",
        status=CheckStatus.PASS,
        details={
            "balance": wallet.balance,
            "balance_formatted": format_balance(wallet.balance),
            "status": wallet.status or "active",
        },
    )


def check_agent(client: ApiClient, account_id: Optional[str]) -> CheckResult:
    if not account_id:
        return _fail("agent", "Skipped: account could not be resolved.", "Fix authentication first.")

    try:
        response = client.get(f"/api/account/{account_id}/agents")
    except ConnectionError_:
        return _unreachable("agent", client)

    if not response.success:
        return _fail("agent", f"Agent check failed (HTTP {response.status_code}).", _RETRY_FIX)

    raw = response.body.get("agents") if isinstance(response.body, dict) else None
    try:
        agents = [Agent.model_validate(a) for a in raw or []]
    except ValidationError:
        return _fail("agent", "Unexpected agent list response.", _RETRY_FIX)

    if not agents:
        return _fail("agent", "No agents registered.", 'paywalls agent register --name "my-agent"')

    return CheckResult(
        name="agent",
        status=CheckStatus.PASS,
        details={
            "count": len(agents),
            "agents": [{"id": a.id, "name": a.name} for a in agents],
        },
    )


def run_diagnostics(client: ApiClient, config: PaywallsConfig) -> DiagnosticReport:
    """Run all five checks unconditionally and aggregate them."""
    report = DiagnosticReport()
    report.checks.append(check_configuration(config))
    report.checks.append(check_connectivity(client))

    auth = check_authentication(client)
    report.checks.append(auth)
    account_id = config.account_id
    if auth.passed and auth.details and auth.details.get("account_id"):
        account_id = auth.details["account_id"]

    report.checks.append(check_wallet(client, account_id))
    report.checks.append(check_agent(client, account_id))
    return report
