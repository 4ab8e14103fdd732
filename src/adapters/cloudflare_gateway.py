"""Gateway de Cloudflare Email Routing.

Responsabilidad:
- Traducir create/list/delete a la API REST de reglas de la zona.
- Clasificar cada fallo como transitorio (429, 5xx, red) o fatal (resto).
- Resolver el Zone ID a partir del dominio y verificar el token.

No reintenta: eso es trabajo de `core.services.retry.RetryPolicy`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from adapters.http_client import build_api_client
from core.config import AppSettings
from core.domain.models import RoutingRule
from core.errors import ConfigurationError, FatalRemoteError, RemoteError, TransientRemoteError
from core.interfaces.gateway import AliasGateway

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _first_error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
    return None


def _rule_address(rule: dict[str, Any]) -> str | None:
    matchers = rule.get("matchers")
    if not isinstance(matchers, list):
        return None
    literal = [
        m for m in matchers
        if isinstance(m, dict) and m.get("type") == "literal" and m.get("field") == "to"
    ]
    for matcher in literal or matchers:
        if isinstance(matcher, dict) and isinstance(matcher.get("value"), str) and matcher["value"]:
            return matcher["value"]
    return None


class CloudflareEmailRoutingGateway(AliasGateway):
    """Implementación de `AliasGateway` sobre la API v4 de Cloudflare."""

    def __init__(
        self,
        client: httpx.Client,
        *,
        zone_id: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._client = client
        self.zone_id = zone_id
        self._page_size = page_size

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> "CloudflareEmailRoutingGateway":
        client = build_api_client(settings, transport=transport)
        return cls(client, zone_id=settings.cloudflare_zone_id)

    def __enter__(self) -> "CloudflareEmailRoutingGateway":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # --- HTTP ---------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            raise TransientRemoteError(f"Network timeout: {exc}") from exc
        except httpx.TransportError as exc:
            # ConnectError, ReadError, RemoteProtocolError (conexión reseteada)...
            raise TransientRemoteError(f"Network error: {exc}") from exc

        status = response.status_code
        payload = _safe_json(response)
        message = _first_error_message(payload)

        if status == 429:
            raise TransientRemoteError(message or "Rate limited", status_code=status)
        if status >= 500:
            raise TransientRemoteError(message or f"HTTP {status}", status_code=status)
        if not response.is_success:
            raise FatalRemoteError(f"Cloudflare API Error: {message or f'HTTP {status}'}", status_code=status)
        if not isinstance(payload, dict) or not payload.get("success"):
            raise FatalRemoteError(message or "Invalid API response structure", status_code=status)
        return payload

    def _rules_path(self, rule_id: str | None = None) -> str:
        if not self.zone_id:
            raise ConfigurationError("No Cloudflare zone id configured or resolved")
        base = f"/zones/{self.zone_id}/email/routing/rules"
        return f"{base}/{rule_id}" if rule_id else base

    # --- Zona / token -------------------------------------------------------

    def resolve_zone_id(self, domain: str) -> str | None:
        """Zone ID para `domain` (requiere permiso Zone:Read)."""

        try:
            payload = self._request("GET", "/zones", params={"name": domain})
        except RemoteError as exc:
            logger.warning("Automatic zone discovery failed for %s: %s", domain, exc)
            return None
        result = payload.get("result")
        if isinstance(result, list) and result and isinstance(result[0], dict):
            zone_id = result[0].get("id")
            return str(zone_id) if zone_id else None
        return None

    def ensure_zone(self, domain: str) -> str:
        """Usa el Zone ID configurado o lo resuelve; falla si no hay ninguno."""

        if not self.zone_id:
            logger.info("Resolving zone id for %s", domain)
            self.zone_id = self.resolve_zone_id(domain)
        if not self.zone_id:
            raise ConfigurationError(
                f"No zone id found for {domain}. Set CLOUDFLARE_ZONE_ID or grant the token Zone:Read."
            )
        return self.zone_id

    def verify_token(self) -> dict[str, Any]:
        payload = self._request("GET", "/user/tokens/verify")
        result = payload.get("result")
        return result if isinstance(result, dict) else {}

    def get_zone(self, zone_id: str) -> dict[str, Any]:
        """Detalle de la zona (id, name, status); 404 si el id no existe."""

        payload = self._request("GET", f"/zones/{zone_id}")
        result = payload.get("result")
        return result if isinstance(result, dict) else {}

    # --- AliasGateway -------------------------------------------------------

    def create(self, address: str, destination: str) -> str:
        body = {
            "matchers": [{"type": "literal", "field": "to", "value": address}],
            "actions": [{"type": "forward", "value": [destination]}],
            "enabled": True,
            "name": f"Auto-generated: {address}",
        }
        payload = self._request("POST", self._rules_path(), json=body)
        result = payload.get("result")
        if not isinstance(result, dict) or not result.get("id"):
            raise FatalRemoteError("Invalid API response structure")
        return str(result["id"])

    def list(self, domain_filter: str | None = None) -> list[RoutingRule]:
        wanted = domain_filter.strip().lower() if domain_filter else None
        rules: list[RoutingRule] = []
        page = 1
        while True:
            payload = self._request(
                "GET",
                self._rules_path(),
                params={"page": page, "per_page": self._page_size},
            )
            batch = payload.get("result") or []
            for raw in batch:
                if not isinstance(raw, dict) or not raw.get("id"):
                    continue
                address = _rule_address(raw)
                if not address:
                    continue
                rule = RoutingRule(rule_id=str(raw["id"]), address=address)
                if wanted is None or rule.domain == wanted:
                    rules.append(rule)

            info = payload.get("result_info") or {}
            total_pages = info.get("total_pages") if isinstance(info, dict) else None
            if not batch or not isinstance(total_pages, int) or page >= total_pages:
                break
            page += 1
            logger.debug("Fetching rules page %d/%d", page, total_pages)
        return rules

    def delete(self, rule_id: str) -> None:
        self._request("DELETE", self._rules_path(rule_id))
