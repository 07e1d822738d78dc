"""Build subsystem.

Components:
    BuildPipeline   runs the fixed sequence of stages for one pass
    BuildScheduler  debounces requests and owns the single build slot
    files           write-if-changed, mirroring, and cleanup helpers
"""

from tern.builder.pipeline import STAGE_NAMES, BuildPipeline, BuildReport, StageResult
from tern.builder.scheduler import BuildScheduler, BuildState

__all__ = [
    "STAGE_NAMES",
    "BuildPipeline",
    "BuildReport",
    "BuildScheduler",
    "BuildState",
    "StageResult",
]
