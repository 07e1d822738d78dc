"""Shared type definitions for tern."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from tern.watch.watcher import WatchBinding

# Process-wide build mode, fixed at startup
type BuildMode = Literal["dev", "prod"]

# Restriction on the markup stage (None rebuilds everything)
type Scope = Literal["pages", "index"] | None

# What the scheduler does with a trigger that lands mid-build
type RebuildPolicy = Literal["drop", "rescan"]

# Kind of build target
type TargetKind = Literal["style", "script", "markup", "subsite"]

# SSE client identifier
type ClientID = str

# Callback fired once per debounced burst on a watched root
type TriggerFunc = Callable[[WatchBinding], object]
