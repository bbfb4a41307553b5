"""Custom exception classes for Agent Secrets."""

from typing import Optional


class AgentSecretsError(Exception):
    """Base class for all custom exceptions in Agent Secrets."""

    pass


class ConfigurationError(AgentSecretsError):
    """Raised when loading or validating the configuration file fails."""

    pass


class SecretResolutionError(AgentSecretsError):
    """
    Raised when a secret reference cannot be resolved.

    ``location`` names the config slot or auth profile that required the
    value.  Messages carry identifiers only, never resolved values.
    """

    def __init__(self, message: str, location: Optional[str] = None):
        self.detail = message
        self.location = location
        full_msg = f"{location}: {message}" if location else message
        super().__init__(full_msg)

    def at(self, location: str) -> "SecretResolutionError":
        """Return a copy of this error attributed to *location*."""
        return type(self)(self.detail, location=location)


class MissingEnvVarError(SecretResolutionError):
    """Raised when an env reference names a variable that is not set."""

    pass


class UnknownProviderError(SecretResolutionError):
    """Raised when a reference names a provider that is not declared."""

    pass


class InvalidFilePayloadError(SecretResolutionError):
    """Raised when a file provider's payload cannot be read or has the wrong shape."""

    pass


class MissingFileKeyError(SecretResolutionError):
    """Raised when a JSON pointer does not lead to a value in the payload."""

    pass


class SecretRefError(SecretResolutionError):
    """Raised when a value in a reference position is not a valid reference."""

    pass


class AuthStoreLoadError(AgentSecretsError):
    """Raised when an agent's auth-profile store file cannot be read or parsed."""

    def __init__(self, message: str, store_path: Optional[str] = None):
        self.store_path = store_path
        full_msg = "Auth profile store error"
        if store_path:
            full_msg += f" ({store_path})"
        full_msg += f": {message}"
        super().__init__(full_msg)
