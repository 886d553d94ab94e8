"""Analysis result domain entities."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImpactMetric:
    """One scored dimension of an environmental-impact assessment.

    Attributes:
        metric: Name of the dimension (e.g. "Carbon Footprint")
        score: Numeric score assigned by the analyzer
        explanation: Free-text justification for the score
    """

    metric: str
    score: float
    explanation: str


@dataclass(frozen=True)
class AnalysisResult:
    """Structured environmental-impact assessment of a product.

    ``breakdown`` and ``recommendations`` keep the analyzer's order, which
    is the display order. Metric names are not required to be unique.

    Attributes:
        overall_score: Opaque score label (e.g. "B+" or "6/10")
        summary: Free-text overview
        breakdown: Per-dimension scores
        recommendations: Suggestions for a lower-impact choice
    """

    overall_score: str
    summary: str
    breakdown: tuple[ImpactMetric, ...] = field(default_factory=tuple)
    recommendations: tuple[str, ...] = field(default_factory=tuple)
