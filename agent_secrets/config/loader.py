"""Configuration file loading and the snapshot-aware config accessor.

:func:`load_config` is what the rest of the application calls.  While a
secrets runtime snapshot is active it returns a copy of the snapshot's
resolved config; otherwise it reads the config file directly, in which case
secret references in it are left unresolved.
"""

import json
import logging
import os
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import yaml

from agent_secrets.agents.paths import resolve_state_dir
from agent_secrets.constants import CONFIG_PATH_ENV, DEFAULT_CONFIG_FILE
from agent_secrets.errors import ConfigurationError

if TYPE_CHECKING:
    from agent_secrets.secrets.activation import SecretsRuntime

logger = logging.getLogger(__name__)

# Recognised config file extensions.
_YAML_EXTS = frozenset({".yaml", ".yml"})
_JSON_EXTS = frozenset({".json"})


def resolve_config_path(
    cfg_fpath: Optional[str] = None, env: Optional[Mapping[str, str]] = None
) -> str:
    """Resolve the config path: argument → ``$AGENT_SECRETS_CONFIG`` → state dir."""
    if env is None:
        env = os.environ
    if cfg_fpath is None:
        cfg_fpath = env.get(CONFIG_PATH_ENV)
    if cfg_fpath is None:
        cfg_fpath = os.path.join(resolve_state_dir(env), DEFAULT_CONFIG_FILE)
    return os.path.abspath(os.path.expanduser(cfg_fpath))


def read_config_file(cfg_fpath: str) -> Dict[str, Any]:
    """Read and parse a YAML or JSON config file from *cfg_fpath*.

    Raises :class:`ConfigurationError` on I/O or parse errors.
    """
    if not os.path.exists(cfg_fpath):
        raise ConfigurationError(f"Configuration file does not exist: {cfg_fpath}")

    ext = os.path.splitext(cfg_fpath)[1].lower()
    if ext not in _YAML_EXTS and ext not in _JSON_EXTS:
        raise ConfigurationError(
            f"Unsupported config file extension '{ext}'. "
            "Only YAML (.yaml, .yml) and JSON (.json) files are supported."
        )

    try:
        with open(cfg_fpath, "r", encoding="utf-8") as f:
            raw_data = json.load(f) if ext in _JSON_EXTS else yaml.safe_load(f)
    except Exception as exc:
        raise ConfigurationError(f"Error reading configuration file: {cfg_fpath}\n  {exc}") from exc

    if raw_data is None:
        raw_data = {}
    if not isinstance(raw_data, dict):
        raise ConfigurationError("Top-level configuration content must be a mapping (dictionary).")
    return raw_data


def load_config(
    cfg_fpath: Optional[str] = None, *, runtime: Optional["SecretsRuntime"] = None
) -> Dict[str, Any]:
    """Return the application config.

    With an active secrets snapshot (on *runtime*, or the process default)
    the resolved config is returned as a private mutable copy and no file
    is read.  Otherwise the config file is loaded directly.
    """
    from agent_secrets.secrets.activation import get_default_runtime

    rt = runtime if runtime is not None else get_default_runtime()
    resolved = rt.config()
    if resolved is not None:
        return resolved

    path = resolve_config_path(cfg_fpath)
    logger.debug("Loading configuration file: %s", path)
    return read_config_file(path)
