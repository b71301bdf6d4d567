from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path

from azure.core.credentials import TokenCredential
from azure.identity import (
    AzureCliCredential,
    ClientSecretCredential,
    DefaultAzureCredential,
    EnvironmentCredential,
    ManagedIdentityCredential,
)

from servicebus_sample.core.config import AzureConfig
from servicebus_sample.core.exceptions import ConfigurationError
from servicebus_sample.core.logging import get_logger

logger = get_logger(__name__)

# Keys of the legacy "key=value" auth file used by the management SDK samples.
_PROPERTY_KEYS = {
    "subscription": "subscription_id",
    "tenant": "tenant_id",
    "client": "client_id",
    "key": "client_secret",
}

# Keys of the JSON file produced by `az ad sp create-for-rbac --sdk-auth`.
_JSON_KEYS = {
    "subscriptionId": "subscription_id",
    "tenantId": "tenant_id",
    "clientId": "client_id",
    "clientSecret": "client_secret",
}


@dataclass(frozen=True)
class AuthFile:
    subscription_id: str | None
    tenant_id: str | None
    client_id: str | None
    client_secret: str | None
    authority_host: str | None = None


def load_auth_file(path: Path | str) -> AuthFile:
    """Read a service principal auth file.

    Both the JSON ``--sdk-auth`` layout and the older properties layout
    (``client=...``, ``key=...``, ``tenant=...``, ``subscription=...``) are
    accepted.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigurationError("azure.auth_file", f"auth file not found: {file_path}")
    raw = file_path.read_text(encoding="utf-8").strip()

    values: dict[str, str] = {}
    authority: str | None = None
    if raw.startswith("{"):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError("azure.auth_file", f"invalid JSON: {exc}") from exc
        for src, dst in _JSON_KEYS.items():
            if data.get(src):
                values[dst] = str(data[src])
        authority = data.get("activeDirectoryEndpointUrl")
    else:
        for line in raw.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            dst = _PROPERTY_KEYS.get(key.strip())
            if dst:
                values[dst] = value.strip()
            elif key.strip() == "authURL":
                authority = value.strip()

    logger.debug("auth_file.loaded", path=str(file_path), fields=sorted(values))
    return AuthFile(
        subscription_id=values.get("subscription_id"),
        tenant_id=values.get("tenant_id"),
        client_id=values.get("client_id"),
        client_secret=values.get("client_secret"),
        authority_host=authority.rstrip("/") if authority else None,
    )


def _require_auth_file(cfg: AzureConfig) -> AuthFile:
    if cfg.auth_file is None:
        raise ConfigurationError(
            "azure.auth_file", "auth_mode is auth_file but AZURE_AUTH_LOCATION is not set"
        )
    return load_auth_file(cfg.auth_file)


def build_credential(cfg: AzureConfig) -> TokenCredential:
    start = time.perf_counter()
    logger.debug("build_credential.start", auth_mode=cfg.auth_mode)

    credential: TokenCredential
    if cfg.auth_mode == "service_principal":
        if not all([cfg.tenant_id, cfg.client_id, cfg.client_secret]):
            raise ValueError(
                "tenant_id, client_id and client_secret are required for service_principal"
            )
        assert cfg.tenant_id is not None
        assert cfg.client_id is not None
        assert cfg.client_secret is not None
        credential = ClientSecretCredential(
            tenant_id=cfg.tenant_id,
            client_id=cfg.client_id,
            client_secret=cfg.client_secret.get_secret_value(),
        )
    elif cfg.auth_mode == "auth_file":
        auth = _require_auth_file(cfg)
        if not all([auth.tenant_id, auth.client_id, auth.client_secret]):
            raise ConfigurationError(
                "azure.auth_file", "auth file must provide tenant, client and key"
            )
        assert auth.tenant_id is not None
        assert auth.client_id is not None
        assert auth.client_secret is not None
        kwargs = {"authority": auth.authority_host} if auth.authority_host else {}
        credential = ClientSecretCredential(
            tenant_id=auth.tenant_id,
            client_id=auth.client_id,
            client_secret=auth.client_secret,
            **kwargs,
        )
    elif cfg.auth_mode == "managed_identity":
        credential = ManagedIdentityCredential(client_id=cfg.client_id)
    elif cfg.auth_mode == "azure_cli":
        credential = AzureCliCredential()
    elif cfg.auth_mode == "environment":
        credential = EnvironmentCredential()
    else:
        credential = DefaultAzureCredential()

    logger.debug(
        "build_credential.end",
        auth_mode=cfg.auth_mode,
        credential_type=type(credential).__name__,
        duration_ms=(time.perf_counter() - start) * 1000.0,
    )
    return credential


def resolve_subscription_id(cfg: AzureConfig) -> str:
    if cfg.subscription_id:
        return cfg.subscription_id
    if cfg.auth_file is not None:
        auth = load_auth_file(cfg.auth_file)
        if auth.subscription_id:
            return auth.subscription_id
    raise ConfigurationError(
        "azure.subscription_id",
        "no subscription configured; set AZURE_SUBSCRIPTION_ID or provide an auth file",
    )
