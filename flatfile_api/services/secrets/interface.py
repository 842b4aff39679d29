from abc import ABC, abstractmethod


class SecretsInterface(ABC):
    """Provides access to secrets and environment-level settings."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Get a value by key. Returns None if not found."""
        ...

    @abstractmethod
    def get_or_default(self, key: str, default: str) -> str:
        """Get a value, returning default if not found."""
        ...

    @abstractmethod
    def require(self, key: str) -> str:
        """Get a value, raising KeyError if not found."""
        ...
