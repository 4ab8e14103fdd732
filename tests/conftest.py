"""Shared fixtures: clean environment, a tiny bundle and a fake Cloudflare API."""

from __future__ import annotations

import json
import os
from typing import Any

import httpx
import pytest

from core.config import AppSettings
from core.domain.bundles import WordBundle

LEGACY_ENV_VARS = (
    "CLOUDFLARE_API_TOKEN",
    "CLOUDFLARE_ZONE_ID",
    "EMAIL_DOMAIN",
    "DESTINATION_EMAIL",
    "RANDOM_SEED",
    "REQUEST_DELAY_MS",
    "ALIAS_COUNT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment and .env files."""
    for name in LEGACY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.upper().startswith("ALIAS_FORGE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def tiny_bundle():
    """Four possible names: red.fox, red.owl, blue.fox, blue.owl."""
    return WordBundle(
        key="tiny",
        name="Tiny",
        description="test bundle",
        prefixes=("red", "blue"),
        suffixes=("fox", "owl"),
    )


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides: Any) -> AppSettings:
        values: dict[str, Any] = {
            "cloudflare_api_token": "test-token",
            "email_domain": "example.com",
            "destination_email": "me@inbox.test",
            "request_delay_ms": 0,
            "base_retry_delay_ms": 0,
            "export_dir": tmp_path,
        }
        values.update(overrides)
        return AppSettings(_env_file=None, **values)

    return _make


class FakeCloudflare:
    """In-memory stand-in for the Cloudflare v4 API (zones + email routing rules)."""

    API_PREFIX = "/client/v4"
    ZONE_ID = "zone-123"

    def __init__(self, domain: str = "example.com") -> None:
        self.domain = domain
        self.rules: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.create_calls = 0
        # create call number (1-based) -> forced response
        self.scripted_creates: dict[int, httpx.Response] = {}
        self.rejected_addresses: set[str] = set()
        self.undeletable: set[str] = set()
        self._next_id = 1

    # --- helpers ------------------------------------------------------------

    @staticmethod
    def ok(result: Any, **extra: Any) -> httpx.Response:
        body = {"success": True, "errors": [], "messages": [], "result": result}
        body.update(extra)
        return httpx.Response(200, json=body)

    @staticmethod
    def error(status: int, message: str) -> httpx.Response:
        body = {"success": False, "errors": [{"code": 1000, "message": message}], "result": None}
        return httpx.Response(status, json=body)

    def add_rule(self, address: str) -> str:
        rule_id = f"rule-{self._next_id}"
        self._next_id += 1
        self.rules[rule_id] = address
        return rule_id

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _rule_payload(self, rule_id: str, address: str) -> dict[str, Any]:
        return {
            "id": rule_id,
            "name": f"Auto-generated: {address}",
            "enabled": True,
            "matchers": [{"type": "literal", "field": "to", "value": address}],
            "actions": [{"type": "forward", "value": ["me@inbox.test"]}],
        }

    # --- routing ------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(self.API_PREFIX):
            path = path[len(self.API_PREFIX):]
        rules_path = f"/zones/{self.ZONE_ID}/email/routing/rules"

        if request.method == "GET" and path == "/user/tokens/verify":
            return self.ok({"id": "token", "status": "active"})

        if request.method == "GET" and path == "/zones":
            name = request.url.params.get("name")
            zones = [{"id": self.ZONE_ID, "name": self.domain}] if name == self.domain else []
            return self.ok(zones)

        if request.method == "GET" and path.startswith("/zones/") and path.count("/") == 2:
            zone_id = path.rsplit("/", 1)[-1]
            if zone_id != self.ZONE_ID:
                return self.error(404, "Zone not found")
            return self.ok({"id": self.ZONE_ID, "name": self.domain, "status": "active"})

        if request.method == "POST" and path == rules_path:
            self.create_calls += 1
            forced = self.scripted_creates.get(self.create_calls)
            if forced is not None:
                return forced
            body = json.loads(request.content)
            address = body["matchers"][0]["value"]
            if address in self.rejected_addresses:
                return self.error(400, "Invalid rule")
            rule_id = self.add_rule(address)
            return self.ok(self._rule_payload(rule_id, address))

        if request.method == "GET" and path == rules_path:
            page = int(request.url.params.get("page", "1"))
            per_page = int(request.url.params.get("per_page", "50"))
            items = list(self.rules.items())
            total_pages = max(1, -(-len(items) // per_page))
            chunk = items[(page - 1) * per_page: page * per_page]
            return self.ok(
                [self._rule_payload(rule_id, address) for rule_id, address in chunk],
                result_info={"page": page, "per_page": per_page, "total_pages": total_pages},
            )

        if request.method == "DELETE" and path.startswith(rules_path + "/"):
            rule_id = path.rsplit("/", 1)[-1]
            if rule_id in self.undeletable or rule_id not in self.rules:
                return self.error(404, "Rule not found")
            del self.rules[rule_id]
            return self.ok({"id": rule_id})

        return self.error(404, f"No route for {request.method} {path}")


@pytest.fixture
def cloudflare():
    return FakeCloudflare()
