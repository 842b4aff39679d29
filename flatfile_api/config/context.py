from typing import Any


class ModuleConfig:
    """Parsed module arguments with dict-style access."""

    def __init__(self, args: dict[str, Any]) -> None:
        self._args = args

    def get(self, key: str, default: Any = None) -> Any:
        return self._args.get(key, default)

    def __contains__(self, key: str) -> bool:
        return key in self._args

    def __repr__(self) -> str:
        return f"ModuleConfig({self._args})"
