"""Snapshot preparer — builds a :class:`RuntimeSnapshot` from raw inputs.

Usage::

    snapshot = await prepare_secrets_runtime_snapshot(
        config,
        env={"OPENAI_API_KEY": "..."},
        agent_dirs=["/path/to/agent"],
        load_auth_store=my_loader,
    )
    activate_secrets_runtime_snapshot(snapshot)

Preparation is all-or-nothing: any resolution failure raises and no
snapshot is produced.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from agent_secrets.agents.auth_profiles import AuthStore, make_disk_auth_store_loader
from agent_secrets.agents.paths import main_agent_dir, resolve_agent_dirs
from agent_secrets.config.schema import parse_secrets_config

from .auth_merge import resolve_auth_store
from .providers import FileSecretCache, ProviderRegistry
from .resolver import resolve_config_secrets
from .snapshot import AgentAuthStore, RuntimeSnapshot, thaw

logger = logging.getLogger(__name__)

AuthStoreLoader = Callable[
    [str], Union[AuthStore, Dict[str, Any], None, Awaitable[Union[AuthStore, Dict[str, Any], None]]]
]


async def _load_store(load_auth_store: AuthStoreLoader, agent_dir: str) -> Any:
    # Loader errors propagate unchanged.
    result = load_auth_store(agent_dir)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _prepare_agent_store(
    agent_dir: str,
    load_auth_store: AuthStoreLoader,
    registry: ProviderRegistry,
) -> Tuple[AgentAuthStore, List[str]]:
    raw = await _load_store(load_auth_store, agent_dir)
    store, warnings = await resolve_auth_store(raw, registry, agent_dir=agent_dir)
    return AgentAuthStore(agent_dir=agent_dir, store=store), warnings


async def prepare_secrets_runtime_snapshot(
    config: Mapping[str, Any],
    env: Optional[Mapping[str, str]] = None,
    agent_dirs: Optional[Sequence[str]] = None,
    load_auth_store: Optional[AuthStoreLoader] = None,
) -> RuntimeSnapshot:
    """Resolve all secret references in *config* and the agents' auth stores.

    Args:
        config: Parsed application config (not mutated).
        env: Environment mapping for env references.  Defaults to a copy
            of ``os.environ``.
        agent_dirs: Agent directories whose stores to merge.  Defaults to
            the main agent plus every ``agents.list`` entry.
        load_auth_store: ``agent_dir -> store`` (sync or async).  Defaults
            to the read-only disk loader, where agents without their own
            store file inherit the main agent's store.

    Returns:
        The prepared snapshot.  Identical inputs give equal snapshots.

    Raises:
        ConfigurationError: The ``secrets`` section is invalid.
        SecretResolutionError: A config slot or auth profile failed to
            resolve (subclass names the cause and location).
        Exception: Whatever the auth store loader raised, unchanged.
    """
    raw_config = thaw(config)
    env_map: Mapping[str, str] = dict(os.environ) if env is None else env
    secrets_config = parse_secrets_config(raw_config)
    registry = ProviderRegistry(secrets_config, env_map, FileSecretCache())

    if agent_dirs is None:
        agent_dirs = resolve_agent_dirs(raw_config)
    if load_auth_store is None:
        load_auth_store = make_disk_auth_store_loader(main_agent_dir())

    logger.debug(
        "Preparing secrets runtime snapshot (%d provider(s), %d agent dir(s)).",
        len(secrets_config.providers),
        len(agent_dirs),
    )

    results = await asyncio.gather(
        resolve_config_secrets(raw_config, registry),
        *(_prepare_agent_store(d, load_auth_store, registry) for d in agent_dirs),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            logger.error("Secrets runtime snapshot preparation failed: %s", result)
            raise result

    resolved_config = results[0]
    stores: List[AgentAuthStore] = []
    warnings: List[str] = []
    for entry, store_warnings in results[1:]:
        stores.append(entry)
        warnings.extend(store_warnings)

    for warning in warnings:
        logger.warning("%s", warning)
    logger.info(
        "Secrets runtime snapshot prepared: %d auth store(s), %d warning(s), %d file read(s).",
        len(stores),
        len(warnings),
        registry.cache.reads,
    )
    return RuntimeSnapshot(config=resolved_config, auth_stores=tuple(stores), warnings=tuple(warnings))
