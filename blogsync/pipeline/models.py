"""Pipeline result models."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import UpdatePlan


class Phase(str, Enum):
    """Pipeline phase a step belongs to."""

    FETCH = "fetch"
    UPDATE = "update"
    UPLOAD = "upload"


class StepResult(BaseModel):
    """Output of a single step run."""

    data: Any = None
    duration: float = 0.0


class StepSummary(BaseModel):
    """Outcome of one step, kept for reporting."""

    name: str
    description: str = ""
    duration: float = 0.0
    success: bool = False
    error: Optional[str] = None
    stats: Dict[str, Any] = Field(default_factory=dict)


class PhaseResult(BaseModel):
    """Timing and step outcomes of one phase."""

    duration: float = 0.0
    steps: List[StepSummary] = Field(default_factory=list)


class DiffResult(BaseModel):
    """Timing and plan of the diff step."""

    duration: float = 0.0
    plan: Optional[UpdatePlan] = None


class PhaseResults(BaseModel):
    fetch: PhaseResult = Field(default_factory=PhaseResult)
    diff: DiffResult = Field(default_factory=DiffResult)
    update: PhaseResult = Field(default_factory=PhaseResult)
    upload: PhaseResult = Field(default_factory=PhaseResult)


class PipelineResult(BaseModel):
    """Aggregate outcome of a pipeline run."""

    success: bool = False
    total_duration: float = Field(0.0, description="Wall-clock seconds for the whole run")
    failed_phase: Optional[str] = None
    error: Optional[str] = None
    phases: PhaseResults = Field(default_factory=PhaseResults)
