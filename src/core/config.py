"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- La CLI construye un único `AppSettings` al arrancar y lo pasa por parámetro
  a cada componente; nadie más lee el entorno.

Compatibilidad:
- Las variables heredadas (`CLOUDFLARE_API_TOKEN`, `EMAIL_DOMAIN`, ...) se
  leen sin prefijo; el resto usa el prefijo `ALIAS_FORGE_`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "alias-forge"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "alias-forge"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "alias-forge"
    return Path.home() / ".config" / "alias-forge"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v})

    lines = ["# alias-forge user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


def domain_slug(domain: str) -> str:
    """`example.com` -> `example-com` (stem de los ficheros de export)."""

    return domain.strip().lower().replace(".", "-")


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="ALIAS_FORGE_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    cloudflare_api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CLOUDFLARE_API_TOKEN", "ALIAS_FORGE_CLOUDFLARE_API_TOKEN"),
        description="Bearer token con permisos Zone:Read + Email Routing Rules:Edit.",
    )
    cloudflare_zone_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CLOUDFLARE_ZONE_ID", "ALIAS_FORGE_CLOUDFLARE_ZONE_ID"),
        description="Zone ID; si falta se resuelve a partir del dominio.",
    )
    email_domain: str | None = Field(
        default=None,
        validation_alias=AliasChoices("EMAIL_DOMAIN", "ALIAS_FORGE_EMAIL_DOMAIN"),
        description="Dominio sobre el que se crean los alias.",
    )
    destination_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DESTINATION_EMAIL", "ALIAS_FORGE_DESTINATION_EMAIL"),
        description="Buzón real al que reenvían los alias.",
    )
    random_seed: int | None = Field(
        default=None,
        validation_alias=AliasChoices("RANDOM_SEED", "ALIAS_FORGE_RANDOM_SEED"),
        description="Semilla fija para reproducir un batch (por defecto: reloj en ms).",
    )
    request_delay_ms: int = Field(
        default=100,
        ge=0,
        validation_alias=AliasChoices("REQUEST_DELAY_MS", "ALIAS_FORGE_REQUEST_DELAY_MS"),
        description="Pausa fija entre requests consecutivos (rate limit del proveedor).",
    )
    alias_count: int = Field(
        default=100,
        ge=1,
        le=500,
        validation_alias=AliasChoices("ALIAS_COUNT", "ALIAS_FORGE_ALIAS_COUNT"),
        description="Número de alias sugerido cuando no se pasa --count.",
    )

    api_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        min_length=8,
        description="Base URL de la API de Cloudflare.",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="alias-forge/0.1",
        min_length=1,
        description="User-Agent para las llamadas a la API.",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Reintentos máximos ante fallos transitorios (rate limit, 5xx, red).",
    )
    base_retry_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Espera base del backoff exponencial (se dobla en cada intento).",
    )
    secret_length: int = Field(
        default=12,
        ge=8,
        le=128,
        description="Longitud de las contraseñas generadas.",
    )
    export_dir: Path = Field(
        default=Path("."),
        description="Directorio donde viven los ficheros <dominio>.json/.txt/.toon.",
    )

    @property
    def request_delay_seconds(self) -> float:
        return self.request_delay_ms / 1000.0

    @property
    def base_retry_delay_seconds(self) -> float:
        return self.base_retry_delay_ms / 1000.0

    def require_token(self) -> str:
        if not self.cloudflare_api_token:
            raise ConfigurationError("Missing CLOUDFLARE_API_TOKEN (env, .env or `alias-forge doctor setup`).")
        return self.cloudflare_api_token

    def require_domain(self) -> str:
        if not self.email_domain:
            raise ConfigurationError("Missing EMAIL_DOMAIN (env, .env or --domain).")
        return self.email_domain.strip().lower()

    def require_destination(self) -> str:
        if not self.destination_email:
            raise ConfigurationError("Missing DESTINATION_EMAIL (env, .env or --destination).")
        return self.destination_email.strip()
