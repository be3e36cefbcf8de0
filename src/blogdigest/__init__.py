from .models import Address, PipelineResult, Stage, StageName, StageStatus
from .orchestrator import PipelineOrchestrator, PipelineStateError
from .validation import Rejection, RejectionReason, validate

__all__ = [
    "Address",
    "PipelineOrchestrator",
    "PipelineResult",
    "PipelineStateError",
    "Rejection",
    "RejectionReason",
    "Stage",
    "StageName",
    "StageStatus",
    "validate",
]
