"""CLI tests for ``paywalls doctor``."""

from __future__ import annotations

import json

import httpx
import pytest

from paywalls.app import app


@pytest.fixture
def invoke(cli_runner, isolated_config, fake_api):
    def _invoke(*args: str):
        return cli_runner.invoke(app, list(args), obj={"transport": fake_api.transport})

    return _invoke


def _healthy(fake_api) -> None:
    fake_api.add("GET /api/health", httpx.Response(200, json={"status": "ok"}))
    fake_api.add("GET /api/me", httpx.Response(200, json={"account_id": "ACCT-1", "account_name": "Dev"}))
    fake_api.add("GET /api/wallet/ACCT-1/balance", httpx.Response(200, json={"balance": 250000}))
    fake_api.add(
        "GET /api/account/ACCT-1/agents",
        httpx.Response(200, json={"agents": [{"id": "AG-1", "name": "crawler"}]}),
    )


class TestDoctor:
    def test_all_pass(self, invoke, fake_api, monkeypatch) -> None:
        monkeypatch.setenv("PAYWALLS_API_KEY", "TEST-01-APIKEY123")
        _healthy(fake_api)

        result = invoke("doctor")

        assert result.exit_code == 0, result.output
        assert "Paywalls Developer Environment Check" in result.output
        assert "Authenticated as Dev" in result.output
        assert "Wallet balance $2.50" in result.output
        assert "5/5 checks passed." in result.output

    def test_json_report(self, invoke, fake_api, monkeypatch) -> None:
        monkeypatch.setenv("PAYWALLS_API_KEY", "TEST-01-APIKEY123")
        _healthy(fake_api)

        result = invoke("doctor", "--json")

        data = json.loads(result.stdout)
        assert data["passed"] == 5
        assert data["total"] == 5
        assert [c["name"] for c in data["checks"]] == [
            "configuration",
            "connectivity",
            "authentication",
            "wallet",
            "agent",
        ]

    def test_no_key_fails_but_runs_everything(self, invoke, fake_api) -> None:
        fake_api.add("GET /api/health", httpx.Response(200))

        result = invoke("doctor", "--json")

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["total"] == 5
        assert data["passed"] == 1
        assert data["checks"][0]["fix"] == "Set PAYWALLS_API_KEY or run 'paywalls register'."

    def test_api_key_option(self, invoke, fake_api) -> None:
        _healthy(fake_api)

        result = invoke("doctor", "--api-key", "FLAG-KEY", "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["checks"][0]["details"]["api_key_source"] == "override"
        assert fake_api.calls("GET /api/me")[0].headers["authorization"] == "Bearer FLAG-KEY"

    def test_failure_shows_fix(self, invoke, fake_api, monkeypatch) -> None:
        monkeypatch.setenv("PAYWALLS_API_KEY", "TEST-01-APIKEY123")
        _healthy(fake_api)
        fake_api.routes["GET /api/account/ACCT-1/agents"] = [
            httpx.Response(200, json={"agents": []})
        ]

        result = invoke("doctor")

        assert result.exit_code == 1
        assert "Agent: No agents registered." in result.output
        assert "4/5 checks passed." in result.output

    def test_unreachable_api(self, invoke, fake_api, monkeypatch) -> None:
        monkeypatch.setenv("PAYWALLS_API_KEY", "TEST-01-APIKEY123")
        fake_api.add("GET /api/health", httpx.ConnectError("refused"))
        fake_api.add("GET /api/me", httpx.ConnectError("refused"))

        result = invoke("doctor", "--base-url", "https://down.test")

        assert result.exit_code == 1
        assert "Cannot reach API at https://down.test." in result.output
