"""Secret reference resolution.

Resolves ``SecretRef`` values in known config slots and in per-agent auth
profile stores into an immutable :class:`RuntimeSnapshot`, and holds the
process-wide active snapshot.
"""

from agent_secrets.secrets.activation import (
    SecretsRuntime,
    activate_secrets_runtime_snapshot,
    clear_secrets_runtime_snapshot,
    get_active_secrets_runtime_snapshot,
    get_default_runtime,
)
from agent_secrets.secrets.manifest import CONFIG_SECRET_SLOTS, SecretSlot
from agent_secrets.secrets.providers import FileSecretCache, ProviderRegistry
from agent_secrets.secrets.refs import InlinePlaceholder, SecretRef, coerce_secret_ref
from agent_secrets.secrets.resolver import find_config_secret_refs, resolve_config_secrets
from agent_secrets.secrets.runtime import prepare_secrets_runtime_snapshot
from agent_secrets.secrets.snapshot import AgentAuthStore, RuntimeSnapshot

__all__ = [
    "AgentAuthStore",
    "CONFIG_SECRET_SLOTS",
    "FileSecretCache",
    "InlinePlaceholder",
    "ProviderRegistry",
    "RuntimeSnapshot",
    "SecretRef",
    "SecretSlot",
    "SecretsRuntime",
    "activate_secrets_runtime_snapshot",
    "clear_secrets_runtime_snapshot",
    "coerce_secret_ref",
    "find_config_secret_refs",
    "get_active_secrets_runtime_snapshot",
    "get_default_runtime",
    "prepare_secrets_runtime_snapshot",
    "resolve_config_secrets",
]
