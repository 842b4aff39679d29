import inspect
from typing import Any, TypeVar, get_type_hints

T = TypeVar("T")


class Container:
    """Constructor-based DI container.

    Holds pre-built objects keyed by type and injects them into class
    constructors by matching parameter type hints. A parameter with a default
    value is left to its default when nothing is registered for its type.
    """

    def __init__(self) -> None:
        self._registry: dict[type, Any] = {}

    def register_instance(self, type_key: type, instance: Any) -> None:
        self._registry[type_key] = instance

    def get(self, type_key: type[T]) -> T:
        """Return the registered instance for *type_key*."""
        try:
            return self._registry[type_key]
        except KeyError:
            raise TypeError(f"No registration found for type {type_key.__name__!r}") from None

    def has(self, type_key: type) -> bool:
        return type_key in self._registry

    def resolve(self, cls: type[T]) -> T:
        """Instantiate *cls*, injecting registered dependencies into its constructor."""
        try:
            hints = get_type_hints(cls.__init__)
        except Exception as exc:
            raise TypeError(f"Cannot read type hints for {cls.__name__}.__init__: {exc}") from exc

        hints.pop("return", None)

        sig = inspect.signature(cls.__init__)
        kwargs: dict[str, Any] = {}
        for name, param in sig.parameters.items():
            if name == "self" or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            hint = hints.get(name)
            if hint is None:
                raise TypeError(
                    f"Parameter '{name}' of {cls.__name__}.__init__ has no type hint"
                )
            if hint in self._registry:
                kwargs[name] = self._registry[hint]
            elif param.default is param.empty:
                hint_name = getattr(hint, "__name__", repr(hint))
                raise TypeError(
                    f"No registration found for type {hint_name!r} "
                    f"(parameter '{name}' of {cls.__name__}.__init__)"
                )

        return cls(**kwargs)
