"""
Backend registry and selection.

A BackendRegistry owns a set of backends and an ArrayConfig. Resolving
'auto' probes is_available() on every registered backend, takes the one
with the highest priority, and pins it: later 'auto' requests get the same
backend for the life of the registry. Requests by name or by Backend
instance bypass the pin.

There is no ambient mutable state besides the default registry, which is
built lazily on first use and can be replaced with set_default_registry()
(for example in tests, or to run with a different ArrayConfig).
"""

from __future__ import annotations

import inspect
import threading

from pystrided.backends.cpu import LapackBackend, ReferenceBackend
from pystrided.backends.gpu import TorchBackend
from pystrided.core.config import ArrayConfig
from pystrided.core.exceptions import BackendUnavailableError, ValidationError
from pystrided.core.protocols import Backend

_BACKEND_MEMBERS = (
    'name',
    'priority',
    'kernel',
    'is_available',
    'element_factory',
    'elementwise_routines',
    'linear_algebra_routines',
)
_MISSING = object()


def _is_backend(obj: object) -> bool:
    # getattr_static: probing must not evaluate properties such as a lazy kernel
    return all(inspect.getattr_static(obj, m, _MISSING) is not _MISSING for m in _BACKEND_MEMBERS)


class BackendRegistry:
    """
    Named backends with priority-based 'auto' selection.

    Args:
        config: Configuration handed to the shipped backends and consulted
            for the default backend choice
        register_defaults: Register the reference, lapack and gpu backends

    Example:
        >>> registry = BackendRegistry(ArrayConfig(mixed_operand_policy='copy'))
        >>> registry.resolve('auto').name
        'lapack'
    """

    def __init__(self, config: ArrayConfig | None = None, register_defaults: bool = True):
        self.config = config or ArrayConfig()
        self._backends: dict[str, Backend] = {}
        self._pinned: Backend | None = None
        self._lock = threading.Lock()
        if register_defaults:
            self.register(ReferenceBackend(self.config))
            self.register(LapackBackend(self.config))
            self.register(TorchBackend(config=self.config))

    def __repr__(self) -> str:
        return f"BackendRegistry(backends={self.names()}, pinned={self.pinned_name!r})"

    # ═════════════════════════════════════════════════════════════════════
    # Registration
    # ═════════════════════════════════════════════════════════════════════

    def register(self, backend: Backend, replace: bool = False) -> None:
        """
        Add a backend.

        An existing 'auto' pin is kept; call reset() to re-probe.

        Raises:
            ValidationError: If `backend` does not implement the Backend
                protocol, or the name is taken and replace is False
        """
        if not _is_backend(backend):
            raise ValidationError(
                f"backend: expected an object implementing the Backend protocol, "
                f"got {type(backend).__name__}"
            )
        with self._lock:
            if backend.name in self._backends and not replace:
                raise ValidationError(
                    f"backend {backend.name!r} is already registered; pass replace=True"
                )
            self._backends[backend.name] = backend

    def unregister(self, name: str) -> Backend:
        """Remove and return the backend registered under `name`."""
        with self._lock:
            backend = self._lookup(name)
            del self._backends[name]
            if self._pinned is backend:
                self._pinned = None
            return backend

    def names(self) -> list[str]:
        """Registered names, highest priority first."""
        return [b.name for b in sorted(self._backends.values(), key=lambda b: -b.priority)]

    def get(self, name: str) -> Backend:
        """
        Backend registered under `name`, available or not.

        Raises:
            ValidationError: If no backend has that name
        """
        with self._lock:
            return self._lookup(name)

    def _lookup(self, name: str) -> Backend:
        try:
            return self._backends[name]
        except KeyError:
            raise ValidationError(
                f"backend: unknown name {name!r}; registered: {self.names()}"
            ) from None

    def available(self) -> list[Backend]:
        """Available backends, highest priority first."""
        return [b for b in sorted(self._backends.values(), key=lambda b: -b.priority) if b.is_available()]

    # ═════════════════════════════════════════════════════════════════════
    # Selection
    # ═════════════════════════════════════════════════════════════════════

    @property
    def pinned_name(self) -> str | None:
        return None if self._pinned is None else self._pinned.name

    def resolve(self, choice: str | Backend | None = None) -> Backend:
        """
        Backend for a caller's choice.

        Args:
            choice: 'auto', a registered name, a Backend instance, or None
                (use config.backend)

        Raises:
            BackendUnavailableError: If the chosen backend cannot run here,
                or 'auto' finds no available backend
            ValidationError: If the name is unknown
        """
        if choice is None:
            choice = self.config.backend
        if not isinstance(choice, str):
            if not _is_backend(choice):
                raise ValidationError(
                    f"backend: expected 'auto', a name or a Backend, got {type(choice).__name__}"
                )
            return choice
        if choice == 'auto':
            if self.config.backend != 'auto':
                return self.resolve(self.config.backend)
            return self._resolve_auto()

        backend = self.get(choice)
        if not backend.is_available():
            raise BackendUnavailableError(
                f"backend {choice!r} is not available on this machine; "
                f"available: {[b.name for b in self.available()]}",
                backend=choice,
            )
        return backend

    def _resolve_auto(self) -> Backend:
        with self._lock:
            if self._pinned is not None:
                return self._pinned
            candidates = sorted(self._backends.values(), key=lambda b: -b.priority)
            for backend in candidates:
                if backend.is_available():
                    self._pinned = backend
                    return backend
        raise BackendUnavailableError(
            f"no registered backend is available; registered: {self.names()}"
        )

    def reset(self) -> None:
        """Forget the pinned 'auto' backend."""
        with self._lock:
            self._pinned = None


_default: BackendRegistry | None = None
_default_lock = threading.Lock()


def default_registry() -> BackendRegistry:
    """The process-wide registry, built with the default ArrayConfig on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = BackendRegistry()
        return _default


def set_default_registry(registry: BackendRegistry | None) -> BackendRegistry | None:
    """
    Replace the process-wide registry.

    Passing None discards it; the next default_registry() call builds a
    fresh one.

    Returns:
        The previous registry (or None if none had been built)
    """
    global _default
    if registry is not None and not isinstance(registry, BackendRegistry):
        raise ValidationError(
            f"registry: expected a BackendRegistry, got {type(registry).__name__}"
        )
    with _default_lock:
        previous, _default = _default, registry
    return previous
