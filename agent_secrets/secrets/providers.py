"""Secret providers: backends that turn a :class:`SecretRef` into a string.

Built-in providers:

* ``env`` — reads from the environment mapping handed to the registry
  (never ``os.environ`` directly).  The ``default`` env provider always
  exists, even when a file provider is also named ``default``; named env providers may restrict reads with an allowlist.
* ``file`` — a declared secrets file, parsed as a JSON object (``json``
  mode, ``id`` is a slash-delimited pointer) or taken whole (``text`` mode).

File payloads are cached per ``(path, mode)`` in a :class:`FileSecretCache`
that lives for one snapshot preparation.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Tuple

from agent_secrets.config.schema import EnvProviderConfig, FileProviderConfig, SecretsConfig
from agent_secrets.constants import DEFAULT_PROVIDER_NAME
from agent_secrets.display.logging_config import secret_redaction_filter
from agent_secrets.errors import (
    InvalidFilePayloadError,
    MissingEnvVarError,
    MissingFileKeyError,
    SecretRefError,
    SecretResolutionError,
    UnknownProviderError,
)

from .refs import SecretRef

logger = logging.getLogger(__name__)

_BUILTIN_ENV = EnvProviderConfig(source="env")


# ── File payload loading ─────────────────────────────────────────────────


def _read_payload(path: str, mode: str) -> Any:
    """Read and parse one secrets file.  Runs in a worker thread."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as exc:
        raise InvalidFilePayloadError(
            f"cannot read secrets file {path}: {exc.strerror or exc}"
        ) from exc

    if mode == "text":
        text = raw.strip()
        if not text:
            raise InvalidFilePayloadError(f"secrets file {path} is empty")
        return text

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidFilePayloadError(
            f"secrets file {path} is not valid JSON (line {exc.lineno}, column {exc.colno})"
        ) from exc
    if not isinstance(payload, dict):
        raise InvalidFilePayloadError(
            f"secrets file {path}: payload is not a JSON object "
            f"(top level is {type(payload).__name__})"
        )
    return payload


class FileSecretCache:
    """Path-keyed cache of parsed secrets files.

    Holds the in-flight task per ``(path, mode)``, so concurrent lookups of
    the same file share a single read.  Scope one instance to one snapshot
    preparation; it is never shared across preparations.
    """

    def __init__(self) -> None:
        self._tasks: Dict[Tuple[str, str], asyncio.Future] = {}
        self.reads = 0

    async def load(self, path: str, mode: str) -> Any:
        key = (os.path.abspath(os.path.expanduser(path)), mode)
        task = self._tasks.get(key)
        if task is None:
            self.reads += 1
            logger.debug("Loading secrets file %s (mode=%s)", key[0], mode)
            task = asyncio.ensure_future(asyncio.to_thread(_read_payload, key[0], mode))
            self._tasks[key] = task
        # shield: one caller being cancelled must not cancel the shared read
        return await asyncio.shield(task)


def _decode_pointer_segment(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def lookup_json_pointer(payload: Dict[str, Any], pointer: str) -> Any:
    """Follow a slash-delimited *pointer* into *payload*.

    A leading ``/`` is optional.  ``~1`` and ``~0`` decode to ``/`` and
    ``~``.  Raises :class:`MissingFileKeyError` when a segment is absent or
    an intermediate value is not an object.
    """
    path = pointer[1:] if pointer.startswith("/") else pointer
    if not path:
        raise MissingFileKeyError("empty JSON pointer")
    node: Any = payload
    walked = ""
    for raw_segment in path.split("/"):
        segment = _decode_pointer_segment(raw_segment)
        if not isinstance(node, dict):
            raise MissingFileKeyError(f"'{walked or '/'}' is not an object (pointer {pointer})")
        if segment not in node:
            raise MissingFileKeyError(f"key '{segment}' not found (pointer {pointer})")
        node = node[segment]
        walked += "/" + raw_segment
    return node


# ── Registry ─────────────────────────────────────────────────────────────


class ProviderRegistry:
    """Resolves references against the env mapping and declared providers.

    Parameters
    ----------
    secrets_config:
        The validated ``secrets`` section.
    env:
        Environment mapping used for every env lookup.
    cache:
        File payload cache; a fresh one is created when omitted.
    """

    def __init__(
        self,
        secrets_config: SecretsConfig,
        env: Mapping[str, str],
        cache: Optional[FileSecretCache] = None,
    ) -> None:
        self._config = secrets_config
        self._env = env
        self._cache = cache if cache is not None else FileSecretCache()

    @property
    def cache(self) -> FileSecretCache:
        return self._cache

    def provider_for(self, ref: SecretRef) -> Tuple[str, EnvProviderConfig | FileProviderConfig]:
        """Return ``(name, descriptor)`` of the provider serving *ref*."""
        name = ref.provider or self._config.defaults.provider_for(ref.source)
        descriptor = self._config.providers.get(name)
        if ref.source == "env" and name == DEFAULT_PROVIDER_NAME:
            # "default" always reaches the environment unless an env provider claims it
            if descriptor is None or descriptor.source != "env":
                return name, _BUILTIN_ENV
        if descriptor is None:
            raise UnknownProviderError(f"{ref.source} provider '{name}' is not declared")
        if descriptor.source != ref.source:
            raise UnknownProviderError(
                f"provider '{name}' serves {descriptor.source} references, "
                f"not {ref.source} references"
            )
        return name, descriptor

    async def resolve(self, ref: SecretRef, location: Optional[str] = None) -> str:
        """Resolve *ref* to its plaintext value.

        Raises a :class:`SecretResolutionError` subclass attributed to
        *location* when the value cannot be produced.
        """
        try:
            name, descriptor = self.provider_for(ref)
            if isinstance(descriptor, FileProviderConfig):
                value = await self._resolve_file(ref, descriptor)
            else:
                value = self._resolve_env(ref, name, descriptor)
        except SecretResolutionError as exc:
            if location and exc.location is None:
                raise exc.at(location) from exc
            raise

        secret_redaction_filter.register(value)
        logger.debug("Resolved %s for %s", ref.describe(), location or "<unnamed>")
        return value

    def _resolve_env(self, ref: SecretRef, name: str, descriptor: EnvProviderConfig) -> str:
        var = ref.id.strip()
        if descriptor.allowlist is not None and var not in descriptor.allowlist:
            raise SecretRefError(f"environment variable '{var}' is not allowed by provider '{name}'")
        value = self._env.get(var)
        if not value:
            raise MissingEnvVarError(f"environment variable '{var}' is not set")
        return value

    async def _resolve_file(self, ref: SecretRef, descriptor: FileProviderConfig) -> str:
        payload = await self._cache.load(descriptor.path, descriptor.mode)
        if descriptor.mode == "text":
            return payload
        value = lookup_json_pointer(payload, ref.id)
        if not isinstance(value, str):
            raise InvalidFilePayloadError(
                f"value at '{ref.id}' in {descriptor.path} is not a string"
            )
        return value
