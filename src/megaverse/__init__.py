"""
megaverse - Goal-driven megaverse builder.

Translate a goal map, create every object with retries, report what failed.
"""

from megaverse.domain import (
    Cometh,
    ComethDirection,
    ObjectKind,
    Polyanet,
    Position,
    Soloon,
    SoloonColor,
    TargetObjectSet,
)
from megaverse.errors import (
    InvalidGoalError,
    RateLimitError,
    TransientSubmissionError,
    UnknownCellWarning,
)
from megaverse.orchestrator import CreationOrchestrator
from megaverse.results import BatchResult, SubmissionOutcome, aggregate
from megaverse.submitter import ObjectSubmitter
from megaverse.translator import analyze_goal, translate

__version__ = "0.3.0"
__all__ = [
    "BatchResult",
    "Cometh",
    "ComethDirection",
    "CreationOrchestrator",
    "InvalidGoalError",
    "ObjectKind",
    "ObjectSubmitter",
    "Polyanet",
    "Position",
    "RateLimitError",
    "Soloon",
    "SoloonColor",
    "SubmissionOutcome",
    "TargetObjectSet",
    "TransientSubmissionError",
    "UnknownCellWarning",
    "__version__",
    "aggregate",
    "analyze_goal",
    "translate",
]
