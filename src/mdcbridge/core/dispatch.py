"""Kind-to-handler dispatch tables with exhaustiveness checks and a safe fallback"""

from typing import Any, Callable, Generic, Hashable, Iterable, TypeVar


K = TypeVar('K', bound=Hashable)
Handler = Callable[..., Any]


class DispatchTable(Generic[K]):
    """Map node kinds (tags or node classes) to conversion handlers.

    Handlers are registered with the `register` decorator, either as plain functions
    or as methods in a class body (they are then called with the instance first).
    Lookups of an unregistered kind return the fallback; without one, KeyError.
    """

    def __init__(self, name: str, fallback: Handler | None = None) -> None:
        self.name = name
        self._handlers: dict[K, Handler] = {}
        self._fallback = fallback

    def register(self, *kinds: K) -> Callable[[Handler], Handler]:
        def decorator(fn: Handler) -> Handler:
            for kind in kinds:
                if kind in self._handlers:
                    raise ValueError(f"{self.name}: duplicate handler for {kind!r}")
                self._handlers[kind] = fn
            return fn
        return decorator

    def set_fallback(self, fn: Handler) -> Handler:
        self._fallback = fn
        return fn

    def __contains__(self, kind: object) -> bool:
        return kind in self._handlers

    def kinds(self) -> frozenset[K]:
        return frozenset(self._handlers)

    def lookup(self, kind: K) -> Handler:
        handler = self._handlers.get(kind, self._fallback)
        if handler is None:
            raise KeyError(f"{self.name}: no handler for {kind!r}")
        return handler

    def require(self, kinds: Iterable[K]) -> None:
        """Raise RuntimeError unless every kind has a dedicated handler (checked at import)."""
        missing = [k for k in kinds if k not in self._handlers]
        if missing:
            names = ', '.join(getattr(k, '__name__', repr(k)) for k in missing)
            raise RuntimeError(f"{self.name}: missing handlers for {names}")
