"""
Pydantic models for declarative pipelines and performance reports.
"""

from typing import Any, Callable, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from enum import Enum


class StageType(str, Enum):
    """Stage operations that can be declared"""
    FILTER = "filter"
    TRANSFORM = "transform"
    FLAT_EXPAND = "flat_expand"
    LIMIT = "limit"
    SKIP = "skip"
    DISTINCT = "distinct"
    PEEK = "peek"
    TAKE_WHILE = "take_while"
    DROP_WHILE = "drop_while"
    BATCH = "batch"
    SORTED = "sorted"


_NEEDS_FN = {
    StageType.FILTER, StageType.TRANSFORM, StageType.FLAT_EXPAND,
    StageType.PEEK, StageType.TAKE_WHILE, StageType.DROP_WHILE,
}
_NEEDS_COUNT = {StageType.LIMIT, StageType.SKIP}


class StageSpec(BaseModel):
    """One declared stage of a pipeline"""
    type: StageType = Field(..., description="Stage operation")
    fn: Optional[Callable[..., Any]] = Field(
        None,
        description="Predicate, transformer or consumer for the stage"
    )
    count: Optional[int] = Field(
        None,
        description="Element count for limit/skip"
    )
    size: Optional[int] = Field(
        None,
        description="Batch size",
        ge=1
    )
    key: Optional[Callable[..., Any]] = Field(
        None,
        description="Key function for distinct/sorted"
    )
    reverse: bool = Field(False, description="Reverse order for sorted")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"type": "limit", "count": 5}
        }
    )

    @model_validator(mode='after')
    def validate_arguments(self):
        """Each stage type carries the argument it needs"""
        if self.type in _NEEDS_FN and self.fn is None:
            raise ValueError(f"Stage '{self.type.value}' requires fn")
        if self.type in _NEEDS_COUNT and self.count is None:
            raise ValueError(f"Stage '{self.type.value}' requires count")
        if self.type == StageType.BATCH and self.size is None:
            raise ValueError("Stage 'batch' requires size")
        return self


class PerformanceReport(BaseModel):
    """Timing and memory of one measured operation"""
    operation: str = Field(..., description="Operation name")
    execution_time_ms: float = Field(..., description="Wall time in milliseconds", ge=0)
    memory_usage_mb: float = Field(..., description="Peak traced memory in megabytes", ge=0)
    success: bool = Field(..., description="Whether the operation returned normally")
    result_size: Optional[int] = Field(None, description="len() of the result, when it has one")
    error: Optional[str] = Field(None, description="Error message on failure")
    timestamp: float = Field(..., description="Unix time when the measurement finished")


class PerformanceSummary(BaseModel):
    """Totals over every recorded PerformanceReport"""
    total_operations: int = Field(0, ge=0)
    failed_operations: int = Field(0, ge=0)
    total_time_ms: float = Field(0.0, ge=0)
    total_memory_mb: float = Field(0.0, ge=0)
    avg_time_ms: float = Field(0.0, ge=0)
    avg_memory_mb: float = Field(0.0, ge=0)
