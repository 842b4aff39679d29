from flatfile_api.services.filesystem.interface import STAGING_DIR, FileSystemInterface


class MemoryFileSystem(FileSystemInterface):
    """In-memory storage root for unit testing."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self._files: dict[str, bytes] = dict(files or {})

    def _check(self, path: str) -> None:
        if not path or ".." in path.split("/"):
            raise ValueError(f"Path traversal not allowed: {path!r}")
        if path.split("/", 1)[0] == STAGING_DIR:
            raise ValueError(f"Reserved name not allowed: {path!r}")

    def read(self, path: str) -> bytes:
        self._check(path)
        if path not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[path]

    def write(self, path: str, data: bytes) -> None:
        self._check(path)
        self._files[path] = data

    def write_new(self, path: str, data: bytes) -> None:
        self._check(path)
        if path in self._files:
            raise FileExistsError(f"File already exists: {path}")
        self._files[path] = data

    def list(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._files if k.startswith(prefix))

    def delete(self, path: str) -> bool:
        self._check(path)
        if path in self._files:
            del self._files[path]
            return True
        return False

    def exists(self, path: str) -> bool:
        self._check(path)
        return path in self._files

    def health_check(self) -> bool:
        return True
