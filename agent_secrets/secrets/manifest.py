"""Closed manifest of config locations that may hold a secret reference.

Each :class:`SecretSlot` is a fixed path into the config tree.  A ``*``
segment stands for every key of the mapping found at that position (named
model providers, skills, channel accounts).  Nothing outside this manifest
is ever treated as secret-bearing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple

WILDCARD = "*"


@dataclass(frozen=True)
class SecretSlot:
    """One known secret-bearing config location."""

    path: Tuple[str, ...]
    description: str = ""

    @classmethod
    def parse(cls, dotted: str, description: str = "") -> "SecretSlot":
        return cls(tuple(dotted.split(".")), description)

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class SlotLocation:
    """A concrete, wildcard-free location of a slot in one config."""

    slot: SecretSlot
    keys: Tuple[Any, ...]

    @property
    def dotted(self) -> str:
        return ".".join(str(key) for key in self.keys)


CONFIG_SECRET_SLOTS: Tuple[SecretSlot, ...] = (
    SecretSlot.parse("models.providers.*.apiKey", "model provider API key"),
    SecretSlot.parse("skills.entries.*.apiKey", "per-skill API key"),
    SecretSlot.parse("hooks.token", "webhook auth token"),
    SecretSlot.parse("gateway.auth.token", "gateway auth token"),
    SecretSlot.parse("gateway.auth.password", "gateway auth password"),
    SecretSlot.parse("gateway.remote.token", "remote gateway token"),
    SecretSlot.parse("gateway.remote.password", "remote gateway password"),
    SecretSlot.parse("channels.telegram.botToken", "Telegram bot token"),
    SecretSlot.parse("channels.telegram.accounts.*.botToken", "Telegram account bot token"),
    SecretSlot.parse("channels.discord.token", "Discord bot token"),
    SecretSlot.parse("channels.discord.accounts.*.token", "Discord account bot token"),
    SecretSlot.parse("channels.slack.botToken", "Slack bot token"),
    SecretSlot.parse("channels.slack.appToken", "Slack app token"),
    SecretSlot.parse("channels.slack.accounts.*.botToken", "Slack account bot token"),
    SecretSlot.parse("channels.slack.accounts.*.appToken", "Slack account app token"),
    SecretSlot.parse("tools.web.search.apiKey", "web search API key"),
    SecretSlot.parse("tools.web.fetch.firecrawl.apiKey", "Firecrawl API key"),
    SecretSlot.parse("talk.apiKey", "text-to-speech API key"),
)


def _expand(node: Any, path: Tuple[str, ...], keys: Tuple[str, ...]) -> Iterator[Tuple[str, ...]]:
    if not path:
        yield keys
        return
    if not isinstance(node, dict):
        return
    head, rest = path[0], path[1:]
    if head == WILDCARD:
        for key in node:
            yield from _expand(node[key], rest, keys + (key,))
    elif head in node:
        yield from _expand(node[head], rest, keys + (head,))


def iter_slot_locations(
    config: Dict[str, Any], slots: Tuple[SecretSlot, ...] = CONFIG_SECRET_SLOTS
) -> Iterator[SlotLocation]:
    """Yield every location in *config* matched by *slots*.

    Absent slots are skipped; a slot whose value is ``None`` is also
    treated as absent.  Order follows the manifest, then mapping order.
    """
    for slot in slots:
        for keys in _expand(config, slot.path, ()):
            if get_at(config, keys) is not None:
                yield SlotLocation(slot, keys)


def get_at(config: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    node: Any = config
    for key in keys:
        node = node[key]
    return node


def set_at(config: Dict[str, Any], keys: Tuple[str, ...], value: Any) -> None:
    parent = get_at(config, keys[:-1])
    parent[keys[-1]] = value
