"""Shared constants for Agent Secrets."""

APP_NAME = "Agent Secrets"
APP_VERSION = "0.1.0"

# Environment variables read at the process edge
STATE_DIR_ENV = "AGENT_SECRETS_STATE_DIR"
CONFIG_PATH_ENV = "AGENT_SECRETS_CONFIG"

# Filesystem layout
DEFAULT_STATE_DIR = "~/.agent-secrets"
DEFAULT_CONFIG_FILE = "config.yaml"
AUTH_STORE_FILENAME = "auth-profiles.json"
AUTH_STORE_VERSION = 1

# Agents
DEFAULT_AGENT_ID = "main"

# Secret providers
DEFAULT_PROVIDER_NAME = "default"

# Logging defaults
LOG_DIR = "logs"
