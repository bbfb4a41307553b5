"""The immutable result of one snapshot preparation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple

if TYPE_CHECKING:
    from agent_secrets.agents.auth_profiles import AuthStore


def freeze(value: Any) -> Any:
    """Deep read-only view: mappings become proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Mutable deep copy of a (possibly frozen) structure."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True, init=False)
class AgentAuthStore:
    """A resolved auth store and the agent directory it belongs to.

    The store is copied on the way in and on every read of :attr:`store`, so
    nothing outside can change what the snapshot holds.
    """

    agent_dir: str
    _store: "AuthStore" = field(repr=False)

    def __init__(self, agent_dir: str, store: "AuthStore") -> None:
        object.__setattr__(self, "agent_dir", agent_dir)
        object.__setattr__(self, "_store", store.model_copy(deep=True))

    @property
    def store(self) -> "AuthStore":
        """A private deep copy of the resolved store."""
        return self._store.model_copy(deep=True)


@dataclass(frozen=True)
class RuntimeSnapshot:
    """Resolved config, resolved per-agent auth stores, and warnings."""

    config: Mapping[str, Any]
    auth_stores: Tuple[AgentAuthStore, ...] = ()
    warnings: Tuple[str, ...] = ()
    _by_dir: Dict[str, AgentAuthStore] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", freeze(self.config))
        object.__setattr__(self, "auth_stores", tuple(self.auth_stores))
        object.__setattr__(self, "warnings", tuple(self.warnings))
        by_dir = {}
        for entry in self.auth_stores:
            by_dir.setdefault(os.path.abspath(os.path.expanduser(entry.agent_dir)), entry)
        object.__setattr__(self, "_by_dir", by_dir)

    def config_dict(self) -> Dict[str, Any]:
        """A mutable copy of the resolved config."""
        return thaw(self.config)

    def auth_store_for(self, agent_dir: str) -> Optional["AuthStore"]:
        """A private copy of the resolved store for *agent_dir*, or ``None``."""
        entry = self._by_dir.get(os.path.abspath(os.path.expanduser(agent_dir)))
        return entry.store if entry is not None else None
