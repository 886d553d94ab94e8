"""Wire format of an analysis result.

The same camelCase shape is used by the Gemini response schema, the
durable cache's ``geminiAnswer`` field, and the HTTP API.
"""

from pydantic import BaseModel, ConfigDict, Field

from impact_cache.entities import AnalysisResult, ImpactMetric


class ImpactMetricPayload(BaseModel):
    """Single scored dimension (in breakdown array)."""

    metric: str = Field(..., description="Name of the impact dimension")
    score: float = Field(..., description="Score for this dimension")
    explanation: str = Field(..., description="Why this score was given")


class AnalysisResultPayload(BaseModel):
    """Environmental-impact assessment as exchanged with the outside world."""

    model_config = ConfigDict(populate_by_name=True)

    overall_score: str = Field(
        ...,
        alias="overallScore",
        description="Overall impact label (format chosen by the model)",
    )
    summary: str = Field(..., description="Short overview of the assessment")
    breakdown: list[ImpactMetricPayload] = Field(
        default_factory=list,
        description="Per-dimension scores in display order",
    )
    recommendations: list[str] = Field(
        default_factory=list,
        description="Suggestions for reducing impact, in display order",
    )

    @classmethod
    def from_entity(cls, result: AnalysisResult) -> "AnalysisResultPayload":
        """Build the payload from a domain entity."""
        return cls(
            overall_score=result.overall_score,
            summary=result.summary,
            breakdown=[
                ImpactMetricPayload(
                    metric=item.metric,
                    score=item.score,
                    explanation=item.explanation,
                )
                for item in result.breakdown
            ],
            recommendations=list(result.recommendations),
        )

    def to_entity(self) -> AnalysisResult:
        """Convert the payload to a domain entity."""
        return AnalysisResult(
            overall_score=self.overall_score,
            summary=self.summary,
            breakdown=tuple(
                ImpactMetric(
                    metric=item.metric,
                    score=item.score,
                    explanation=item.explanation,
                )
                for item in self.breakdown
            ),
            recommendations=tuple(self.recommendations),
        )


def serialize_result(result: AnalysisResult) -> str:
    """Encode an AnalysisResult as camelCase JSON."""
    return AnalysisResultPayload.from_entity(result).model_dump_json(by_alias=True)


def deserialize_result(raw: str | bytes) -> AnalysisResult:
    """Decode camelCase JSON into an AnalysisResult.

    Raises:
        pydantic.ValidationError: If the JSON is invalid or does not match
            the AnalysisResult shape
    """
    return AnalysisResultPayload.model_validate_json(raw).to_entity()
