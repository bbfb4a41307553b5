"""Agent directories and their auth-profile stores."""

from agent_secrets.agents.auth_profiles import (
    AuthProfile,
    AuthStore,
    get_auth_profile_store,
    load_auth_profile_store,
)
from agent_secrets.agents.paths import resolve_agent_dirs, resolve_state_dir

__all__ = [
    "AuthProfile",
    "AuthStore",
    "get_auth_profile_store",
    "load_auth_profile_store",
    "resolve_agent_dirs",
    "resolve_state_dir",
]
