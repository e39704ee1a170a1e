"""Typed result rows produced by a pipeline run."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SECTION_NAMES = (
    "status_code_analysis",
    "performance_analysis",
    "status_chart_data",
    "schema_fields",
    "summary",
)


def validate_sections(sections: Sequence[str] | None) -> list[str] | None:
    """Check section names; None or empty means all sections."""
    if not sections:
        return None
    unknown = [s for s in sections if s not in SECTION_NAMES]
    if unknown:
        valid = ", ".join(SECTION_NAMES)
        raise ValueError(f"Unknown section(s): {', '.join(unknown)}. Valid values: {valid}.")
    return list(sections)


class PerformanceAnalysis(BaseModel):
    request: str = Field(description="Normalized request template.")
    total_requests: int = Field(ge=1)
    avg_time: float
    max_time: float
    min_time: float
    p95_time: float
    p99_time: float
    total_time: float
    original_patterns: list[str] = Field(
        default_factory=list,
        description="Distinct raw requests that differ from the template, first-seen order.",
    )


class StatusCodeAnalysis(BaseModel):
    request: str
    status: int
    count: int = Field(ge=1)


class StatusChartData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request: str
    success: int = Field(ge=0, description="2xx responses (1xx folded in).")
    redirect: int = Field(ge=0, description="3xx responses.")
    client_error: int = Field(ge=0, alias="clientError", description="4xx responses.")
    server_error: int = Field(ge=0, alias="serverError", description="5xx and above.")
    total: int = Field(ge=1)


class SchemaField(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    inferred_type: str = Field(alias="inferredType")
    nullable: bool


class RequestHits(BaseModel):
    request: str
    hits: int


class StatusCount(BaseModel):
    status: int
    count: int


class RequestTimeStats(BaseModel):
    avg_time: float | None = None
    var_time: float | None = Field(default=None, description="Population variance.")


class DatasetSummary(BaseModel):
    total_records: int = 0
    skipped_records: int = 0
    group_count: int = 0
    top_requests: list[RequestHits] = Field(default_factory=list)
    status_distribution: list[StatusCount] = Field(default_factory=list)
    request_time: RequestTimeStats = Field(default_factory=RequestTimeStats)


class AnalysisResult(BaseModel):
    """Everything one run publishes."""

    status_code_analysis: list[StatusCodeAnalysis] = Field(default_factory=list)
    performance_analysis: list[PerformanceAnalysis] = Field(default_factory=list)
    status_chart_data: list[StatusChartData] = Field(default_factory=list)
    schema_fields: list[SchemaField] = Field(default_factory=list)
    summary: DatasetSummary = Field(default_factory=DatasetSummary)

    def to_dict(self, sections: Sequence[str] | None = None) -> dict[str, Any]:
        """Return JSON-ready data (wire key names), optionally limited to some sections."""
        wanted = validate_sections(sections)
        data = self.model_dump(mode="json", by_alias=True)
        if wanted is None:
            return data
        return {name: data[name] for name in SECTION_NAMES if name in wanted}
