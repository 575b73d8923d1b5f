"""Observables, dispatchers and task scopes shared by state holders."""

from sleeptracker.lifecycle.dispatch import Dispatchers, LifecycleScope, ScopeClosedError
from sleeptracker.lifecycle.observable import (
    MappedObservable,
    MutableObservable,
    Observable,
    Subscription,
    map_observable,
)

__all__ = [
    "Dispatchers",
    "LifecycleScope",
    "MappedObservable",
    "MutableObservable",
    "Observable",
    "ScopeClosedError",
    "Subscription",
    "map_observable",
]
