"""
Agent Secrets - runtime resolution of secret references.

Resolves ``SecretRef`` values in the application config and in per-agent
auth-profile stores into one immutable snapshot, and installs that
snapshot as the process-wide source for config and auth-store accessors.
"""

from agent_secrets.constants import APP_NAME, APP_VERSION

__version__ = APP_VERSION
__app_name__ = APP_NAME

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "__version__",
    "__app_name__",
]
