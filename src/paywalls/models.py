"""Canonical Pydantic models shared across all paywalls modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- persisted or resolved locally:
    :class:`Credentials` and :class:`PaywallsConfig`.

**API payload models** -- parsed from the remote API's JSON bodies:
    :class:`DeviceCodeGrant`, :class:`TokenGrant`, :class:`AccountInfo`,
    :class:`WalletBalance`, :class:`Receipt`, :class:`ReceiptPage`, and
    :class:`Agent`.

**Diagnostic models** -- produced by :mod:`paywalls.diagnostics`:
    :class:`CheckResult` and :class:`DiagnosticReport`.

API payload models use ``extra="allow"`` so that fields the server adds later
are preserved in ``model_extra`` and echoed in ``--json`` output.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_BASE_URL = "https://api.paywalls.net"
"""Production API endpoint used when nothing else is configured."""


# --- Configuration ---


class Credentials(BaseModel):
    """The persisted credentials record (``credentials.json``).

    Written only by a successful device authorization flow. Every other
    command reads it as one layer of :func:`~paywalls.config.resolve_config`.

    Example::

        Credentials(api_key="TEST-01-APIKEY123", account_id="ACCT-01-TEST999")
    """

    api_key: str = Field(description="Long-lived API key issued by /api/device/token")
    account_id: Optional[str] = Field(default=None, description="Account public id")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL the key belongs to")


class KeySource(str, enum.Enum):
    """Which configuration layer supplied the API key."""

    OVERRIDE = "override"
    ENVIRONMENT = "environment"
    DOTENV = "dotenv"
    CREDENTIALS_FILE = "credentials_file"


class PaywallsConfig(BaseModel):
    """Effective configuration for one command invocation.

    Produced by :func:`~paywalls.config.resolve_config` and treated as
    read-only afterwards. ``api_key`` is the empty string when no layer
    supplied one.
    """

    api_key: str = ""
    account_id: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    api_key_source: Optional[KeySource] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)


# --- Device authorization payloads ---


class DeviceCodeGrant(BaseModel):
    """Response of ``POST /api/device/code``."""

    model_config = ConfigDict(extra="allow")

    device_code: str
    user_code: str
    verification_uri: str = ""
    verification_uri_complete: str = ""
    expires_in: int = Field(default=900, description="Seconds until the device code expires")
    interval: int = Field(default=5, description="Minimum seconds between token polls")

    @model_validator(mode="after")
    def _fill_complete_uri(self) -> "DeviceCodeGrant":
        if not self.verification_uri_complete:
            self.verification_uri_complete = self.verification_uri
        return self


class TokenGrant(BaseModel):
    """Success response of ``POST /api/device/token``."""

    model_config = ConfigDict(extra="allow")

    api_key: str = Field(min_length=1, description="Issued API key; never empty")
    account_id: str = ""
    token_type: str = "api-key"
    message: Optional[str] = None


# --- Wallet / account payloads ---


class AccountInfo(BaseModel):
    """Response of ``GET /api/me``."""

    model_config = ConfigDict(extra="allow")

    account_id: str
    account_name: Optional[str] = None
    status: Optional[str] = None


class WalletBalance(BaseModel):
    """Response of ``GET /api/wallet/{accountId}/balance``. Amounts are millicents."""

    model_config = ConfigDict(extra="allow")

    balance: int
    status: Optional[str] = None


class Receipt(BaseModel):
    """A single wallet transaction receipt.

    The API has shipped both ``publicId``/``id`` and ``created_at``/``createdAt``
    spellings; :attr:`receipt_id` and :attr:`created` hide the difference.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    public_id: Optional[str] = Field(default=None, alias="publicId")
    id: Optional[Any] = None
    type: str = ""
    amount: int = 0
    domain: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[str] = None
    created_at_camel: Optional[str] = Field(default=None, alias="createdAt")
    status: Optional[str] = None
    description: Optional[str] = None

    @property
    def receipt_id(self) -> str:
        if self.public_id:
            return self.public_id
        if self.id is not None:
            return str(self.id)
        return "—"

    @property
    def created(self) -> Optional[str]:
        return self.created_at or self.created_at_camel


class ReceiptPage(BaseModel):
    """Response of ``GET /api/wallet/{accountId}/receipts``."""

    model_config = ConfigDict(extra="allow")

    receipts: list[Receipt] = Field(default_factory=list)
    limit: int = 10
    offset: int = 0
    total: Optional[int] = None


class Agent(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""


# --- Diagnostics ---


class CheckStatus(str, enum.Enum):
    PASS = "pass"
    FAIL = "fail"


class CheckResult(BaseModel):
    """Outcome of one ``doctor`` check.

    Passing checks carry ``details``; failing checks carry ``error`` and
    ``fix`` (and sometimes ``details`` such as connectivity latency).
    """

    name: str
    status: CheckStatus
    details: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    fix: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS


class DiagnosticReport(BaseModel):
    """Aggregate of all ``doctor`` checks in execution order."""

    checks: list[CheckResult] = Field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for c in self.checks if c.passed)

    @property
    def total(self) -> int:
        return len(self.checks)

    @property
    def ok(self) -> bool:
        return self.passed == self.total

    def to_dict(self) -> dict[str, Any]:
        return {
            "checks": [c.model_dump(mode="json", exclude_none=True) for c in self.checks],
            "passed": self.passed,
            "total": self.total,
        }
