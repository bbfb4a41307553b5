"""Config slot resolver — replaces secret references in manifest slots.

Usage::

    registry = ProviderRegistry(parse_secrets_config(config), env)
    resolved = await resolve_config_secrets(config, registry)
    # resolved["models"]["providers"]["openai"]["apiKey"] == "<plaintext>"

Only the locations listed in :data:`~.manifest.CONFIG_SECRET_SLOTS` are
inspected.  Literal strings pass through unchanged.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Dict, List, Tuple

from agent_secrets.errors import SecretResolutionError

from .manifest import (
    CONFIG_SECRET_SLOTS,
    SecretSlot,
    SlotLocation,
    get_at,
    iter_slot_locations,
    set_at,
)
from .providers import ProviderRegistry
from .refs import SecretRef, coerce_secret_ref

logger = logging.getLogger(__name__)


def _collect_refs(
    config: Dict[str, Any], slots: Tuple[SecretSlot, ...]
) -> List[Tuple[SlotLocation, SecretRef]]:
    found: List[Tuple[SlotLocation, SecretRef]] = []
    for loc in iter_slot_locations(config, slots):
        try:
            ref = coerce_secret_ref(get_at(config, loc.keys))
        except SecretResolutionError as exc:
            raise exc.at(loc.dotted) from exc
        if ref is not None:
            found.append((loc, ref))
    return found


def find_config_secret_refs(
    config: Dict[str, Any], slots: Tuple[SecretSlot, ...] = CONFIG_SECRET_SLOTS
) -> List[Tuple[str, SecretRef]]:
    """Return ``(dotted_path, ref)`` for every slot in *config* holding a reference."""
    return [(loc.dotted, ref) for loc, ref in _collect_refs(config, slots)]


async def resolve_config_secrets(
    config: Dict[str, Any],
    registry: ProviderRegistry,
    slots: Tuple[SecretSlot, ...] = CONFIG_SECRET_SLOTS,
) -> Dict[str, Any]:
    """Return a deep copy of *config* with every slot reference resolved.

    Slots are resolved concurrently.  If any slot fails, the failure of
    the first failing slot in manifest order is raised and no partially
    resolved config is returned.

    Raises:
        SecretResolutionError: A subclass naming the offending slot.
    """
    resolved = copy.deepcopy(config)
    pending = _collect_refs(resolved, slots)
    if not pending:
        logger.debug("No secret references found in config slots.")
        return resolved

    results = await asyncio.gather(
        *(registry.resolve(ref, location=loc.dotted) for loc, ref in pending),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result

    for (loc, _ref), value in zip(pending, results):
        set_at(resolved, loc.keys, value)
    logger.info("Resolved %d config secret slot(s).", len(pending))
    return resolved
