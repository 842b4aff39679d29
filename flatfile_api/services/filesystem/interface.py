from abc import ABC, abstractmethod

# Top-level directory a backend may use for its own bookkeeping. Names under
# it are rejected by every backend so listings stay identical across them.
STAGING_DIR = ".staging"


class FileSystemInterface(ABC):
    """Key/blob storage addressed by names relative to a storage root."""

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Read file contents. Raises FileNotFoundError if missing."""
        ...

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Write data to a file, replacing any previous contents."""
        ...

    @abstractmethod
    def write_new(self, path: str, data: bytes) -> None:
        """Create a file only if it is absent. Raises FileExistsError otherwise.

        The existence check and the write happen as one step, so two racing
        callers cannot both succeed.
        """
        ...

    @abstractmethod
    def list(self, prefix: str = "") -> list[str]:
        """List all files under the given prefix (recursive). Returns relative paths."""
        ...

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete a file. Returns True if deleted, False if it didn't exist."""
        ...

    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def health_check(self) -> bool: ...
