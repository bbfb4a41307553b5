"""Per-agent auth-profile stores.

A store lives at ``<agent_dir>/auth-profiles.json``::

    {
        "version": 1,
        "profiles": {
            "openai:default": {"type": "api_key", "provider": "openai",
                               "keyRef": {"source": "env", "provider": "default",
                                          "id": "OPENAI_API_KEY"}}
        }
    }

Everything in this module reads; nothing writes.  An agent without its own
store file may inherit another agent's store, in memory only.
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_secrets.constants import AUTH_STORE_FILENAME, AUTH_STORE_VERSION
from agent_secrets.errors import AuthStoreLoadError

from .paths import main_agent_dir, normalize_agent_dir

if TYPE_CHECKING:
    from agent_secrets.secrets.activation import SecretsRuntime

logger = logging.getLogger(__name__)


class AuthProfile(BaseModel):
    """One stored credential.

    ``api_key`` profiles carry ``key``/``keyRef``; ``token`` profiles carry
    ``token``/``tokenRef``.  Other profile types and unknown fields are kept
    as-is.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    type: str
    provider: str = ""
    key: Optional[str] = None
    key_ref: Optional[Any] = Field(default=None, alias="keyRef")
    token: Optional[str] = None
    token_ref: Optional[Any] = Field(default=None, alias="tokenRef")


class AuthStore(BaseModel):
    """An agent's collection of auth profiles keyed by ``<provider>:<id>``."""

    model_config = ConfigDict(frozen=True, extra="allow")

    version: int = AUTH_STORE_VERSION
    profiles: Dict[str, AuthProfile] = Field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise in the on-disk shape (camelCase ref fields)."""
        return self.model_dump(by_alias=True, exclude_none=True)


def coerce_auth_store(value: Any, source: str = "") -> AuthStore:
    """Validate a loader's return value into an :class:`AuthStore`."""
    if isinstance(value, AuthStore):
        return value
    if value is None:
        return AuthStore()
    try:
        return AuthStore.model_validate(value)
    except ValidationError as exc:
        raise AuthStoreLoadError(
            f"invalid store ({len(exc.errors())} validation error(s))", store_path=source or None
        ) from exc


def auth_store_path(agent_dir: str) -> str:
    return os.path.join(normalize_agent_dir(agent_dir), AUTH_STORE_FILENAME)


def read_auth_store_file(path: str) -> Optional[AuthStore]:
    """Read a store file, or return ``None`` if it does not exist.

    Raises:
        AuthStoreLoadError: If the file exists but cannot be read or parsed.
    """
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise AuthStoreLoadError(str(exc), store_path=path) from exc
    return coerce_auth_store(raw, source=path)


def load_auth_profile_store(agent_dir: str, *, inherit_from: Optional[str] = None) -> AuthStore:
    """Load *agent_dir*'s store from disk without creating anything.

    When the agent has no store file and *inherit_from* names another agent
    directory, that agent's store is returned instead.  A missing store
    yields an empty one.
    """
    store = read_auth_store_file(auth_store_path(agent_dir))
    if store is not None:
        return store
    if inherit_from and normalize_agent_dir(inherit_from) != normalize_agent_dir(agent_dir):
        inherited = read_auth_store_file(auth_store_path(inherit_from))
        if inherited is not None:
            logger.debug("Agent dir %s has no auth store; inheriting from %s", agent_dir, inherit_from)
            return inherited
    return AuthStore()


def make_disk_auth_store_loader(main_dir: Optional[str] = None) -> Callable[[str], AuthStore]:
    """Build the default read-only loader; derived agents inherit from *main_dir*."""
    base_dir = main_dir if main_dir is not None else main_agent_dir()

    def _load(agent_dir: str) -> AuthStore:
        return load_auth_profile_store(agent_dir, inherit_from=base_dir)

    return _load


def get_auth_profile_store(
    agent_dir: str, *, runtime: Optional["SecretsRuntime"] = None
) -> AuthStore:
    """Return the auth store for *agent_dir*.

    With an active snapshot the resolved store from the snapshot is returned
    (as a private copy); otherwise the store is loaded from disk.
    """
    from agent_secrets.secrets.activation import get_default_runtime

    rt = runtime if runtime is not None else get_default_runtime()
    store = rt.auth_store(agent_dir)
    if store is not None:
        return store
    return load_auth_profile_store(agent_dir, inherit_from=main_agent_dir())
