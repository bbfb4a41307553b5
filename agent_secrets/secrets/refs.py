"""Secret reference encodings.

Two encodings are accepted wherever a reference may appear:

* a structured mapping ``{"source": "env"|"file", "provider": ..., "id": ...}``
* an inline placeholder string ``"${NAME}"`` (auth profiles only), which is
  shorthand for an env reference on the default env provider.

:func:`coerce_secret_ref` funnels both into a :class:`SecretRef` so that
lookup and warning logic has one code path.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from agent_secrets.errors import SecretRefError

_INLINE_RE = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


class SecretRef(BaseModel):
    """A reference to a secret held by a provider."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: Literal["env", "file"]
    provider: str = ""
    id: str = ""

    @model_validator(mode="after")
    def _check_id(self) -> "SecretRef":
        if self.source == "env" and not self.id.strip():
            raise ValueError("env references require a variable name in 'id'")
        return self

    def describe(self) -> str:
        """Identifier-only rendering, safe for logs and errors."""
        return f"{self.source}:{self.provider or '<default>'}:{self.id}"


@dataclass(frozen=True)
class InlinePlaceholder:
    """A ``${NAME}`` string standing in for an env reference."""

    name: str

    def to_ref(self) -> SecretRef:
        """An env reference on the configured default env provider."""
        return SecretRef(source="env", id=self.name)


def parse_inline_placeholder(value: Any) -> Optional[InlinePlaceholder]:
    """Return the placeholder if *value* is exactly ``${NAME}``."""
    if not isinstance(value, str):
        return None
    match = _INLINE_RE.fullmatch(value)
    if not match:
        return None
    return InlinePlaceholder(match.group(1))


def coerce_secret_ref(value: Any, *, allow_inline: bool = False) -> Optional[SecretRef]:
    """Turn *value* into a :class:`SecretRef`, or ``None`` if it is not one.

    Plain strings (and ``None``) are not references.  Mappings that carry a
    ``source`` key are validated strictly: a malformed reference raises
    :class:`SecretRefError` instead of passing through unresolved.
    """
    if value is None:
        return None
    if isinstance(value, SecretRef):
        return value
    if isinstance(value, str):
        if allow_inline:
            placeholder = parse_inline_placeholder(value)
            if placeholder is not None:
                return placeholder.to_ref()
        return None
    if isinstance(value, dict) and "source" in value:
        try:
            return SecretRef.model_validate(value)
        except ValidationError as exc:
            reasons = "; ".join(err["msg"] for err in exc.errors())
            raise SecretRefError(f"invalid secret reference ({reasons})") from exc
    raise SecretRefError(
        f"expected a string or secret reference, got {type(value).__name__}"
    )
