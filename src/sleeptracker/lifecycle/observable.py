"""Observable value holders with explicit subscriptions."""

from __future__ import annotations

import asyncio
import threading
from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")

Observer = Callable[[T], None]

_UNSET = object()


class Subscription:
    """Handle returned by ``observe``; disposing it detaches the observer."""

    def __init__(self, detach: Callable[[], None]) -> None:
        self._detach: Optional[Callable[[], None]] = detach

    @property
    def disposed(self) -> bool:
        return self._detach is None

    def dispose(self) -> None:
        detach, self._detach = self._detach, None
        if detach is not None:
            detach()


class Observable(Generic[T]):
    """Read-only view of a value that notifies observers when it changes."""

    def __init__(self) -> None:
        self._value: object = _UNSET
        self._observers: List[Observer[T]] = []
        self._lock = threading.Lock()

    @property
    def value(self) -> Optional[T]:
        if self._value is _UNSET:
            return None
        return self._value  # type: ignore[return-value]

    @property
    def is_set(self) -> bool:
        return self._value is not _UNSET

    @property
    def has_observers(self) -> bool:
        return bool(self._observers)

    def observe(self, observer: Observer[T]) -> Subscription:
        """Register ``observer`` and replay the current value if there is one."""

        with self._lock:
            self._observers.append(observer)
        if self._value is not _UNSET:
            observer(self._value)  # type: ignore[arg-type]
        return Subscription(lambda: self._remove_observer(observer))

    def _remove_observer(self, observer: Observer[T]) -> None:
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                pass

    def _set(self, value: T) -> None:
        self._value = value
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            observer(value)


class MutableObservable(Observable[T]):
    """Observable slot owned by a single writer.

    ``value = ...`` notifies synchronously on the caller's thread.
    ``post_value`` hands the update to the bound event loop so observers always
    run on the foreground loop even when the write comes from a worker thread.
    """

    def __init__(self, initial: object = _UNSET, *, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        super().__init__()
        self._value = initial
        self._loop = loop

    @property
    def value(self) -> Optional[T]:
        return super().value

    @value.setter
    def value(self, new_value: Optional[T]) -> None:
        self._set(new_value)  # type: ignore[arg-type]

    def post_value(self, new_value: T) -> None:
        self._dispatch(self._set, new_value)

    def _dispatch(self, callback: Callable[..., None], *args: object) -> None:
        loop = self._loop
        if loop is None or loop.is_closed() or _running_loop() is loop:
            callback(*args)
            return
        loop.call_soon_threadsafe(callback, *args)


class MappedObservable(Observable[R]):
    def __init__(self, source: Observable[T], transform: Callable[[T], R]) -> None:
        super().__init__()
        self._transform = transform
        self._subscription = source.observe(self._on_source_changed)

    def _on_source_changed(self, value: T) -> None:
        self._set(self._transform(value))

    def close(self) -> None:
        self._subscription.dispose()


def map_observable(source: Observable[T], transform: Callable[[T], R]) -> MappedObservable:
    """Derive an observable whose value is ``transform(source.value)``.

    The transform reruns on every upstream change; ``close()`` detaches it.
    """

    return MappedObservable(source, transform)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


__all__ = [
    "MappedObservable",
    "MutableObservable",
    "Observable",
    "Observer",
    "Subscription",
    "map_observable",
]
