"""Pydantic models for the ``secrets`` configuration section.

Only the secrets section is validated here; the rest of the application
config is consumed as an already-validated nested mapping.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from agent_secrets.constants import DEFAULT_PROVIDER_NAME
from agent_secrets.errors import ConfigurationError

# ── Provider descriptors ─────────────────────────────────────────────────


class EnvProviderConfig(BaseModel):
    """A named environment-variable provider."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: Literal["env"]
    allowlist: Optional[List[str]] = Field(
        default=None,
        description="Variable names this provider may read. Unrestricted when omitted.",
    )


class FileProviderConfig(BaseModel):
    """A secrets file, parsed as a JSON object or taken whole as text."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: Literal["file"]
    path: str = Field(..., min_length=1, description="Filesystem path of the secrets file.")
    mode: Literal["json", "text"] = "json"

    @field_validator("path")
    @classmethod
    def _strip_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("path must be a non-empty string")
        return v


# Discriminated union: pick the right model based on "source" field
ProviderConfig = Annotated[
    Union[EnvProviderConfig, FileProviderConfig],
    Field(discriminator="source"),
]


class SecretDefaultsConfig(BaseModel):
    """Default provider name per reference source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    env: Optional[str] = None
    file: Optional[str] = None

    def provider_for(self, source: str) -> str:
        """Return the default provider name for *source*."""
        name = getattr(self, source, None)
        return name or DEFAULT_PROVIDER_NAME


class SecretsConfig(BaseModel):
    """The ``secrets`` section of the application config."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    providers: Dict[str, ProviderConfig] = Field(default_factory=dict)
    defaults: SecretDefaultsConfig = Field(default_factory=SecretDefaultsConfig)


def _format_validation_errors(exc: ValidationError) -> str:
    """Format Pydantic validation errors into a readable multi-line string."""
    lines: List[str] = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        lines.append(f"  • {loc}: {err['msg']}")
    return "\n".join(lines)


def parse_secrets_config(config: Dict[str, Any]) -> SecretsConfig:
    """Validate the ``secrets`` section of *config*.

    A missing section yields an empty :class:`SecretsConfig` (only the
    built-in ``default`` env provider is available).

    Raises:
        ConfigurationError: If the section is present but invalid.
    """
    section = config.get("secrets")
    if section is None:
        return SecretsConfig()
    try:
        return SecretsConfig.model_validate(section)
    except ValidationError as exc:
        error_summary = _format_validation_errors(exc)
        raise ConfigurationError(
            f"Secrets configuration validation failed ({len(exc.errors())} error(s)):\n"
            f"{error_summary}"
        ) from exc
