"""Auth store merger — resolves secret references inside auth profiles.

For each profile the secret field is chosen by profile type (``api_key`` →
``key``/``keyRef``, ``token`` → ``token``/``tokenRef``):

* a ``*Ref`` field wins: it is resolved and overwrites the plaintext field
  in the in-memory copy.  If the plaintext held a real (non-placeholder)
  value, a warning is recorded, since the on-disk store still carries the
  superseded plaintext.
* otherwise a plaintext value of exactly ``${NAME}`` is resolved as an env
  reference, without a warning.
* anything else passes through untouched.

The merger only ever sees the loader's return value; it never writes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from agent_secrets.agents.auth_profiles import AuthProfile, AuthStore, coerce_auth_store
from agent_secrets.errors import SecretResolutionError

from .providers import ProviderRegistry
from .refs import coerce_secret_ref, parse_inline_placeholder

logger = logging.getLogger(__name__)

# profile type -> (plaintext attribute, ref attribute, ref key as stored)
_SECRET_FIELDS: Dict[str, Tuple[str, str, str]] = {
    "api_key": ("key", "key_ref", "keyRef"),
    "token": ("token", "token_ref", "tokenRef"),
}


def _profile_location(agent_dir: str, profile_id: str) -> str:
    if agent_dir:
        return f"auth profile '{profile_id}' ({agent_dir})"
    return f"auth profile '{profile_id}'"


async def resolve_auth_profile(
    profile_id: str,
    profile: AuthProfile,
    registry: ProviderRegistry,
    agent_dir: str = "",
) -> Tuple[AuthProfile, Optional[str]]:
    """Resolve one profile.  Returns the (possibly new) profile and an optional warning."""
    fields = _SECRET_FIELDS.get(profile.type)
    if fields is None:
        return profile, None
    attr, ref_attr, ref_key = fields
    location = _profile_location(agent_dir, profile_id)
    current = getattr(profile, attr)

    try:
        ref = coerce_secret_ref(getattr(profile, ref_attr), allow_inline=True)
    except SecretResolutionError as exc:
        raise exc.at(f"{location} {ref_key}") from exc

    if ref is not None:
        value = await registry.resolve(ref, location=f"{location} {ref_key}")
        warning = None
        if current and parse_inline_placeholder(current) is None:
            warning = (
                f"{location}: has both {attr} and {ref_key}; the stored plaintext "
                f"{attr} is ignored in favour of the reference"
            )
        return profile.model_copy(update={attr: value}), warning

    placeholder = parse_inline_placeholder(current)
    if placeholder is not None:
        value = await registry.resolve(placeholder.to_ref(), location=f"{location} {attr}")
        return profile.model_copy(update={attr: value}), None

    return profile, None


async def resolve_auth_store(
    store: Any,
    registry: ProviderRegistry,
    agent_dir: str = "",
) -> Tuple[AuthStore, List[str]]:
    """Resolve every profile in *store*; return the resolved copy and warnings.

    Profiles resolve concurrently; warnings keep profile order.  The first
    failing profile (in store order) aborts the merge.
    """
    base = coerce_auth_store(store, source=agent_dir)
    items = list(base.profiles.items())
    results = await asyncio.gather(
        *(resolve_auth_profile(pid, profile, registry, agent_dir) for pid, profile in items),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result

    profiles: Dict[str, AuthProfile] = {}
    warnings: List[str] = []
    for (pid, _profile), (resolved, warning) in zip(items, results):
        profiles[pid] = resolved
        if warning:
            warnings.append(warning)

    if items:
        logger.debug(
            "Resolved auth store for %s: %d profile(s), %d warning(s)",
            agent_dir or "<unnamed>",
            len(items),
            len(warnings),
        )
    return base.model_copy(update={"profiles": profiles}), warnings
