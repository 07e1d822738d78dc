"""Source watching: per-root debounced change aggregation."""

from tern.watch.debounce import Debouncer
from tern.watch.watcher import ChangeAggregator, ChangeEvent, WatchBinding

__all__ = [
    "ChangeAggregator",
    "ChangeEvent",
    "Debouncer",
    "WatchBinding",
]
