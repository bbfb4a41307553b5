"""Logging configuration setup."""

import copy
import logging
import logging.config
import os
import re
from datetime import datetime
from typing import Optional, Set, Tuple  # noqa: UP035

from agent_secrets.constants import LOG_DIR

logger = logging.getLogger(__name__)

# ── Secret redaction filter ──────────────────────────────────────────────

_REDACTED = "***REDACTED***"


class SecretRedactionFilter(logging.Filter):
    """Logging filter that replaces resolved secret values with a placeholder.

    Call :meth:`register` to add values that should be scrubbed.  The match
    pattern is rebuilt lazily, once per batch of registrations, the next
    time something is scrubbed.  Registered values are kept for the life of
    the process: a value stays redacted after the snapshot that resolved it
    is cleared or replaced.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: Set[str] = set()
        self._pattern: Optional[re.Pattern[str]] = None
        self._dirty = False

    def register(self, value: str) -> None:
        """Register a secret value for redaction."""
        if value and len(value) >= 4 and value not in self._secrets:  # skip trivially short values
            self._secrets.add(value)
            self._dirty = True

    def _current_pattern(self) -> Optional[re.Pattern[str]]:
        if self._dirty:
            self._dirty = False
            # Longest first, so a secret containing another is replaced whole
            escaped = sorted((re.escape(s) for s in tuple(self._secrets)), key=len, reverse=True)
            self._pattern = re.compile("|".join(escaped))
        return self._pattern

    def scrub(self, text: str) -> str:
        """Return *text* with every registered value replaced."""
        pattern = self._current_pattern()
        if pattern is None:
            return text
        return pattern.sub(_REDACTED, text)

    def filter(self, record: logging.LogRecord) -> bool:
        if self._current_pattern() is not None:
            if isinstance(record.msg, str):
                record.msg = self.scrub(record.msg)
            if record.args:
                if isinstance(record.args, dict):
                    record.args = {
                        k: self.scrub(v) if isinstance(v, str) else v
                        for k, v in record.args.items()
                    }
                elif isinstance(record.args, tuple):
                    record.args = tuple(
                        self.scrub(a) if isinstance(a, str) else a for a in record.args
                    )
        return True


# Module-level singleton so providers can register values at resolve time.
secret_redaction_filter = SecretRedactionFilter()

BASE_LOG_CFG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple_file": {
            "format": "%(asctime)s - %(name)30s:%(lineno)-4d - %(levelname)-7s - %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
        },
    },
    "handlers": {
        "file_handler": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "formatter": "simple_file",
            "filename": "agent_secrets.log",
            "encoding": "utf-8",
        },
    },
    "loggers": {
        "agent_secrets": {
            "handlers": ["file_handler"],
            "propagate": False,
            "level": "INFO",
        },
    },
    "root": {
        "handlers": ["file_handler"],
        "level": "WARNING",
    },
}

_VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def setup_logging(log_lvl_str: str, *, log_dir: str = LOG_DIR) -> Tuple[str, str]:
    """
    Write application logs to a timestamped file in *log_dir*.

    Every handler carries :data:`secret_redaction_filter`, so resolved
    secret values never reach the file.  An unknown level falls back to
    ``INFO`` and is reported in the log itself.

    Returns:
        A tuple of (log_file_path, validated_log_level).
    """
    log_lvl_valid = log_lvl_str.upper()
    invalid_level = log_lvl_valid not in _VALID_LEVELS
    if invalid_level:
        log_lvl_valid = "INFO"

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    os.makedirs(log_dir, exist_ok=True)
    log_fpath = os.path.join(log_dir, f"agent_secrets_{ts}_{log_lvl_valid}.log")

    log_cfg: dict = copy.deepcopy(BASE_LOG_CFG)
    log_cfg["handlers"]["file_handler"]["filename"] = log_fpath
    log_cfg["loggers"]["agent_secrets"]["level"] = log_lvl_valid
    log_cfg["root"]["level"] = log_lvl_valid if log_lvl_valid == "DEBUG" else "WARNING"

    logging.config.dictConfig(log_cfg)
    # The app logger does not propagate; filter its handlers as well as root's.
    seen = set()
    for logger_name in ("agent_secrets", None):
        for handler in logging.getLogger(logger_name).handlers:
            if id(handler) not in seen:
                seen.add(id(handler))
                handler.addFilter(secret_redaction_filter)

    if invalid_level:
        logger.warning("Invalid log level %r; using INFO.", log_lvl_str)
    logger.debug("Logging initialized at %s: %s", log_lvl_valid, log_fpath)
    return log_fpath, log_lvl_valid
