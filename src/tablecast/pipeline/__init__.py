"""Upload orchestration."""

from tablecast.pipeline.orchestrator import (
    STRATEGIES,
    Orchestrator,
    PipelineState,
    ProcessResult,
    Strategy,
)

__all__ = ["STRATEGIES", "Orchestrator", "PipelineState", "ProcessResult", "Strategy"]
