"""Runtime activation slot for the resolved secrets snapshot.

:class:`SecretsRuntime` is the explicit holder; pass one to accessors
(``load_config(runtime=...)``, ``get_auth_profile_store(runtime=...)``) to
keep state local.  The module-level functions operate on a default instance
for call sites that rely on ambient process-wide state.

Writers (``activate``/``clear``) are serialised by a lock, but callers are
expected to keep a single writer (process start-up, test teardown).
Readers need no synchronisation: a published snapshot is never mutated.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Optional

from .snapshot import RuntimeSnapshot

if TYPE_CHECKING:
    from agent_secrets.agents.auth_profiles import AuthStore

logger = logging.getLogger(__name__)


class SecretsRuntime:
    """Holds at most one active :class:`RuntimeSnapshot`."""

    def __init__(self, snapshot: Optional[RuntimeSnapshot] = None) -> None:
        self._lock = threading.Lock()
        self._snapshot = snapshot

    @property
    def snapshot(self) -> Optional[RuntimeSnapshot]:
        return self._snapshot

    @property
    def is_active(self) -> bool:
        return self._snapshot is not None

    def activate(self, snapshot: RuntimeSnapshot) -> None:
        """Install *snapshot*, replacing any previously active one."""
        if not isinstance(snapshot, RuntimeSnapshot):
            raise TypeError(f"expected RuntimeSnapshot, got {type(snapshot).__name__}")
        with self._lock:
            replaced = self._snapshot is not None
            self._snapshot = snapshot
        logger.info(
            "Secrets runtime snapshot activated (%d auth store(s), %d warning(s)%s).",
            len(snapshot.auth_stores),
            len(snapshot.warnings),
            ", replacing previous snapshot" if replaced else "",
        )

    def clear(self) -> None:
        """Drop the active snapshot; accessors fall back to direct loading."""
        with self._lock:
            was_active = self._snapshot is not None
            self._snapshot = None
        if was_active:
            logger.info("Secrets runtime snapshot cleared.")

    def config(self) -> Optional[Dict[str, Any]]:
        """A mutable copy of the active resolved config, or ``None``."""
        snapshot = self._snapshot
        return snapshot.config_dict() if snapshot is not None else None

    def auth_store(self, agent_dir: str) -> Optional["AuthStore"]:
        """A private copy of the active store for *agent_dir*, or ``None``."""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        return snapshot.auth_store_for(agent_dir)


_default_runtime = SecretsRuntime()


def get_default_runtime() -> SecretsRuntime:
    return _default_runtime


def activate_secrets_runtime_snapshot(snapshot: RuntimeSnapshot) -> None:
    _default_runtime.activate(snapshot)


def clear_secrets_runtime_snapshot() -> None:
    _default_runtime.clear()


def get_active_secrets_runtime_snapshot() -> Optional[RuntimeSnapshot]:
    return _default_runtime.snapshot
