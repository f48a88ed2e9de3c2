"""Pipeline orchestration: the search pipeline and its progress channels."""

from setlistscout.pipeline.orchestrator import SetlistPipeline
from setlistscout.pipeline.progress_broker import ProgressBroker

__all__ = [
    "ProgressBroker",
    "SetlistPipeline",
]
