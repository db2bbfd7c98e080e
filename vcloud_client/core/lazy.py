"""
Lazily built, cacheable values for vCloud Director Client.
Each value is either unresolved or resolved, and clearing it also clears
every value derived from it.
"""

import threading
from typing import Any, Callable, List


_UNRESOLVED = object()


class LazyValue:
    """
    Holds a value that is built on first access and cached afterwards.

    A value can declare the values it is derived from with ``depends_on``;
    clearing a parent then resets the whole chain to unresolved so that no
    derived value outlives the data it was built from. Every value in a chain
    shares one re-entrant lock, so a build and a clear on the same chain
    never interleave.
    """

    def __init__(self, builder: Callable[[], Any], name: str = None):
        """
        Initialize the holder.

        Args:
            builder: Zero-argument callable producing the value
            name: Label used in repr and debug output
        """
        self._builder = builder
        self.name = name or getattr(builder, '__name__', 'value')
        self._value = _UNRESOLVED
        self._lock = threading.RLock()
        self._parents: List['LazyValue'] = []
        self._dependents: List['LazyValue'] = []

    def __repr__(self):
        state = 'resolved' if self.is_resolved else 'unresolved'
        return f"<LazyValue {self.name} {state}>"

    def depends_on(self, *parents: 'LazyValue') -> 'LazyValue':
        """
        Register this value as derived from each of ``parents``.

        Call while wiring values up, before any of them is shared across threads.
        """
        for parent in parents:
            parent._dependents.append(self)
            self._parents.append(parent)
            self._share_lock(parent._lock)
        return self

    def _share_lock(self, lock):
        seen = set()
        pending = [self]
        while pending:
            value = pending.pop()
            if id(value) in seen:
                continue
            seen.add(id(value))
            value._lock = lock
            pending.extend(value._parents)
            pending.extend(value._dependents)

    @property
    def is_resolved(self) -> bool:
        return self._value is not _UNRESOLVED

    def get(self) -> Any:
        """
        Return the cached value, building it first if needed.

        A builder that raises leaves the value unresolved.
        """
        if self._value is _UNRESOLVED:
            with self._lock:
                if self._value is _UNRESOLVED:
                    self._value = self._builder()
        return self._value

    def set(self, value: Any) -> None:
        """Replace the value; derived values are cleared."""
        with self._lock:
            self._value = value
            self._clear_dependents()

    def clear(self) -> None:
        """Reset this value and everything derived from it."""
        with self._lock:
            self._value = _UNRESOLVED
            self._clear_dependents()

    def _clear_dependents(self):
        for dependent in self._dependents:
            dependent.clear()
