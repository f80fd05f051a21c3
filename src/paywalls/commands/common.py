"""Shared plumbing for the paywalls sub-commands.

* :func:`command_context` merges root-level and command-level flags and
  installs the :class:`~paywalls.output.OutputManager` for the invocation.
* :func:`command_errors` renders any :class:`~paywalls.exceptions.PaywallsError`
  and exits with its code.
* :func:`require_api_key` and :func:`resolve_account` are the preamble of
  every wallet command.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import httpx
import typer

from paywalls.client import ApiClient
from paywalls.exceptions import AuthError, PaywallsError, RegistrationCancelled
from paywalls.models import AccountInfo, PaywallsConfig
from paywalls.output import OutputFormat, OutputManager, is_headless, set_output


def json_option() -> Any:
    return typer.Option(False, "--json", help="Output machine-readable JSON (implies --headless).")


def headless_option() -> Any:
    return typer.Option(
        False, "--headless", help="Disable color, browser auto-open, and interactive prompts."
    )


def base_url_option() -> Any:
    return typer.Option(None, "--base-url", help="API base URL override.")


@dataclass
class CommandContext:
    """Effective settings for one command invocation.

    ``transport``, ``clock``, ``launcher`` and ``interrupt_guard`` are
    normally ``None`` (real implementations); embedding applications and
    tests can supply them through the Click context object.
    """

    output: OutputManager
    json_mode: bool = False
    headless: bool = False
    force: bool = False
    base_url: Optional[str] = None
    transport: Optional[httpx.BaseTransport] = None
    clock: Any = None
    launcher: Any = None
    interrupt_guard: Any = None

    def client(self, config: PaywallsConfig) -> ApiClient:
        return ApiClient(config, transport=self.transport)


def command_context(
    ctx: typer.Context,
    json_output: bool = False,
    headless: bool = False,
    base_url: Optional[str] = None,
) -> CommandContext:
    """Merge flags given before and after the sub-command name."""
    obj: dict[str, Any] = ctx.obj if isinstance(ctx.obj, dict) else {}
    json_mode = json_output or bool(obj.get("json"))
    headless_flag = headless or bool(obj.get("headless"))

    output = OutputManager(
        format=OutputFormat.JSON if json_mode else OutputFormat.AUTO,
        no_color=headless_flag,
        verbose=bool(obj.get("verbose")),
    )
    set_output(output)

    return CommandContext(
        output=output,
        json_mode=json_mode,
        headless=is_headless(headless_flag, json_mode),
        force=bool(obj.get("force")),
        base_url=base_url or obj.get("base_url"),
        transport=obj.get("transport"),
        clock=obj.get("clock"),
        launcher=obj.get("launcher"),
        interrupt_guard=obj.get("interrupt_guard"),
    )


@contextmanager
def command_errors(cmd: CommandContext) -> Iterator[None]:
    """Render paywalls errors for the operator and exit with their code."""
    try:
        yield
    except RegistrationCancelled as exc:
        cmd.output.info(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except PaywallsError as exc:
        cmd.output.failure(exc.message, exc.reason, exc.resolution)
        raise typer.Exit(code=exc.exit_code) from None


def require_api_key(config: PaywallsConfig) -> None:
    if not config.has_api_key:
        raise AuthError(
            "Unable to authenticate.",
            reason="No key found in PAYWALLS_API_KEY, .env, or credentials file.",
            resolution="Set PAYWALLS_API_KEY or run 'paywalls register'.",
        )


def resolve_account(client: ApiClient, config: PaywallsConfig) -> tuple[str, Optional[str]]:
    """Return ``(account_id, account_name)``.

    Uses the configured account id when present; otherwise asks ``/api/me``.
    """
    if config.account_id:
        return config.account_id, None

    response = client.get("/api/me")
    if not response.success:
        raise AuthError(
            "Unable to identify account.",
            reason=(
                f"API returned HTTP {response.status_code}. "
                "The API key may be invalid or expired."
            ),
            resolution="Check your PAYWALLS_API_KEY or run 'paywalls register'.",
        )
    try:
        me = AccountInfo.model_validate(response.body)
    except ValueError as exc:
        raise AuthError(
            "Unable to identify account.",
            reason="The /api/me response did not include an account id.",
            resolution="Try again shortly. If the problem persists, contact support.",
        ) from exc
    return me.account_id, me.account_name
