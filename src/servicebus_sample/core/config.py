from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_LOCATIONS = [
    "westus",
    "westus2",
    "eastus",
    "eastus2",
    "centralus",
    "westeurope",
    "northeurope",
    "uksouth",
]


class AzureConfig(BaseModel):
    subscription_id: str | None = Field(default=None, pattern="^[a-f0-9-]{36}$")
    tenant_id: str | None = Field(default=None, pattern="^[a-f0-9-]{36}$")
    client_id: str | None = None
    client_secret: SecretStr | None = None
    auth_mode: Literal[
        "service_principal",
        "azure_cli",
        "managed_identity",
        "environment",
        "auth_file",
        "default",
    ] = "default"
    auth_file: Path | None = Field(
        default_factory=lambda: Path(p) if (p := os.getenv("AZURE_AUTH_LOCATION")) else None
    )
    location: str = "westus"
    allowed_locations: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_LOCATIONS)
    )
    tags: dict[str, str] = Field(default_factory=lambda: {"provisioned-by": "servicebus-sample"})

    @field_validator("allowed_locations", mode="before")
    @classmethod
    def _normalize_locations(cls, v: Any) -> list[str]:
        if not v:
            return list(DEFAULT_ALLOWED_LOCATIONS)
        return [str(x).lower().strip() for x in v]

    @field_validator("location", mode="before")
    @classmethod
    def _normalize_location(cls, v: Any) -> str:
        return str(v).lower().strip() if v else "westus"

    @model_validator(mode="after")
    def _validate_location(self) -> AzureConfig:
        if self.location not in set(self.allowed_locations):
            raise ValueError("location must be one of allowed_locations")
        return self

    @model_validator(mode="after")
    def _select_auth_file(self) -> AzureConfig:
        # An auth file given without an explicit mode is the credential to use.
        if "auth_mode" not in self.model_fields_set and self.auth_file is not None:
            self.auth_mode = "auth_file"
        return self


class ServiceBusConfig(BaseModel):
    sku: Literal["Basic", "Standard", "Premium"] = "Standard"
    capacity: int | None = Field(default=None, ge=1, le=16)
    queue_max_size_mb: int = Field(default=1024, ge=1024, le=81920)
    topic_max_size_mb: int = Field(default=1024, ge=1024, le=81920)
    requires_session: bool = False
    namespace_rule_name: str = "SendRule"
    queue_rule_name: str = "QueueSendRule"
    topic_rule_name: str = "TopicSendListenRule"

    @model_validator(mode="after")
    def _validate_sku(self) -> ServiceBusConfig:
        # Topics and subscriptions are not available on the Basic tier.
        if self.sku == "Basic":
            raise ValueError("sku Basic does not support topics; use Standard or Premium")
        if self.sku == "Premium" and self.capacity is None:
            self.capacity = 1
        return self


class ScenarioConfig(BaseModel):
    wait_for_cleanup: bool = False
    delete_namespace: bool = True


class ObservabilityConfig(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation_size_mb: int = Field(default=10, ge=1)
    log_retention: int = Field(default=5, ge=1)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "Service Bus Sample"
    app_version: str = "1.0.0"

    azure: AzureConfig = Field(default_factory=AzureConfig)
    servicebus: ServiceBusConfig = Field(default_factory=ServiceBusConfig)
    scenario: ScenarioConfig = Field(default_factory=ScenarioConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    # Flat variables understood by the Azure SDKs and the az CLI.
    azure_subscription_id: str | None = None
    azure_tenant_id: str | None = None
    azure_client_id: str | None = None
    azure_client_secret: SecretStr | None = None

    @model_validator(mode="after")
    def apply_legacy_env(self) -> Settings:
        legacy = {
            "subscription_id": self.azure_subscription_id,
            "tenant_id": self.azure_tenant_id,
            "client_id": self.azure_client_id,
            "client_secret": self.azure_client_secret,
        }
        updates = {
            k: v for k, v in legacy.items() if v and not getattr(self.azure, k)
        }
        if updates:
            # Revalidate so flat values pass the same field rules as nested ones.
            self.azure = AzureConfig.model_validate(
                {**self.azure.model_dump(exclude_unset=True), **updates}
            )
        return self

    def export_safe_config(self) -> dict[str, Any]:
        cfg = self.model_dump(mode="json")
        redactions = [
            ["azure", "client_secret"],
            ["azure_client_secret"],
        ]
        for path in redactions:
            current = cfg
            for key in path[:-1]:
                current = current.get(key, {})
            if current.get(path[-1]) is not None:
                current[path[-1]] = "***REDACTED***"
        return cfg


@lru_cache
def get_settings() -> Settings:
    return Settings()
