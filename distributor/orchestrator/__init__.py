"""Orchestrator package - coordinates distribution workflows."""
from .core import DistributionOrchestrator
from .batch import BatchDistributionHandler, BatchDistributionProcess
from .single import SingleDistributionHandler
from .models import BatchState, RunMode

__all__ = [
    "DistributionOrchestrator",
    "BatchDistributionHandler",
    "BatchDistributionProcess",
    "SingleDistributionHandler",
    "BatchState",
    "RunMode",
]
