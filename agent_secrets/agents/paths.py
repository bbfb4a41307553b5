"""Agent directory layout under the state directory.

Each agent keeps its working files (including ``auth-profiles.json``) in
``<state_dir>/agents/<agent_id>/agent`` unless its ``agents.list`` entry
names an explicit ``agentDir``.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Mapping, Optional

from agent_secrets.constants import DEFAULT_AGENT_ID, DEFAULT_STATE_DIR, STATE_DIR_ENV


def resolve_state_dir(env: Optional[Mapping[str, str]] = None) -> str:
    """Return the absolute state directory (``$AGENT_SECRETS_STATE_DIR`` or the default)."""
    if env is None:
        env = os.environ
    raw = env.get(STATE_DIR_ENV) or DEFAULT_STATE_DIR
    return os.path.abspath(os.path.expanduser(raw))


def normalize_agent_dir(agent_dir: str) -> str:
    return os.path.abspath(os.path.expanduser(agent_dir))


def resolve_agent_dir(agent_id: str, state_dir: Optional[str] = None) -> str:
    base = state_dir if state_dir is not None else resolve_state_dir()
    return os.path.join(base, "agents", agent_id, "agent")


def main_agent_dir(state_dir: Optional[str] = None) -> str:
    return resolve_agent_dir(DEFAULT_AGENT_ID, state_dir)


def _agent_entries(config: Mapping[str, Any]) -> List[Dict[str, Any]]:
    agents = config.get("agents") or {}
    entries = agents.get("list") or []
    return [entry for entry in entries if isinstance(entry, Mapping) and entry.get("id")]


def resolve_agent_dirs(config: Mapping[str, Any], state_dir: Optional[str] = None) -> List[str]:
    """Agent directories for *config*: the main agent first, then each listed agent.

    Duplicates are dropped, keeping first-seen order.
    """
    dirs = [main_agent_dir(state_dir)]
    for entry in _agent_entries(config):
        explicit = entry.get("agentDir")
        if explicit:
            dirs.append(normalize_agent_dir(str(explicit)))
        else:
            dirs.append(resolve_agent_dir(str(entry["id"]).strip(), state_dir))

    seen = set()
    unique: List[str] = []
    for agent_dir in dirs:
        if agent_dir not in seen:
            seen.add(agent_dir)
            unique.append(agent_dir)
    return unique
